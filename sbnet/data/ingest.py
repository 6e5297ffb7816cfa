"""Dataset ingestion: labelled per-feature series to a normalised, split :class:`Dataset`.

Each source holds one 1-D series per variable and a single label (1 for
simulated signal, 0 for real background).  Sources are stacked row-wise, rows
whose diagnostic mass disagrees with their label are cut, the rows are shuffled
once and every training feature is divided by its maximum.  The mass variable is
used for the cut only and never reaches the network.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence

import numpy as np

from ..errors import DatasetIntegrityError
from .dataset import Dataset

logger = logging.getLogger(__name__)

DEFAULT_MASS_CENTER = 5619.60
DEFAULT_MASS_WINDOW = 300.0


@dataclass(frozen=True)
class LabelledSource:
    name: str
    columns: Mapping[str, np.ndarray]
    label: int


def stack_source(source: LabelledSource, variables: Sequence[str], *, max_workers: Optional[int] = None) -> np.ndarray:
    """Stack the requested variables of one source into a ``(rows, len(variables))`` matrix.

    Raises:
        DatasetIntegrityError: if the variables do not all have the same length.
    """

    missing = [name for name in variables if name not in source.columns]
    if missing:
        raise KeyError(f"source {source.name} lacks variables {missing}")

    def _read(name: str) -> np.ndarray:
        return np.asarray(source.columns[name], dtype=np.float64).reshape(-1)

    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        series = list(pool.map(_read, variables))

    expected = series[0].shape[0]
    for name, values in zip(variables, series):
        if values.shape[0] != expected:
            raise DatasetIntegrityError(
                f"Inconsistent variable counts in source {source.name}: "
                f"{variables[0]} has {expected} values, {name} has {values.shape[0]}"
            )
        logger.debug("read %d %s %s values", values.shape[0], "simulated" if source.label else "real", name)
    return np.stack(series, axis=1)


def mass_window_mask(
    mass: np.ndarray,
    labels: np.ndarray,
    *,
    center: float = DEFAULT_MASS_CENTER,
    window: float = DEFAULT_MASS_WINDOW,
) -> np.ndarray:
    """Rows to keep: inside the window iff labelled signal."""

    inside = np.abs(mass - center) < window
    return inside == (labels != 0)


def normalize_by_max(features: np.ndarray) -> np.ndarray:
    maxima = np.max(features, axis=0)
    # A column with a zero maximum is left as is.
    divisor = np.where(maxima == 0.0, 1.0, maxima)
    return features / divisor


def build_dataset(
    sources: Sequence[LabelledSource],
    features: Sequence[str],
    mass_feature: str,
    *,
    mass_center: float = DEFAULT_MASS_CENTER,
    mass_window: float = DEFAULT_MASS_WINDOW,
    train_fraction: float = 0.9,
    rng: Optional[np.random.Generator] = None,
) -> Dataset:
    if not sources:
        raise ValueError("at least one source is required")
    if not features:
        raise ValueError("at least one feature is required")
    variables = list(features) + [mass_feature]
    rng = rng if rng is not None else np.random.default_rng()

    blocks: List[np.ndarray] = []
    labels: List[np.ndarray] = []
    for source in sources:
        logger.info("reading from source %s", source.name)
        block = stack_source(source, variables)
        blocks.append(block)
        labels.append(np.full(block.shape[0], float(source.label)))
    rows = np.concatenate(blocks, axis=0)
    label_column = np.concatenate(labels)

    keep = mass_window_mask(rows[:, -1], label_column, center=mass_center, window=mass_window)
    rows = rows[keep, :-1]
    label_column = label_column[keep]
    logger.info("mass window cut kept %d of %d events", rows.shape[0], keep.shape[0])

    order = rng.permutation(rows.shape[0])
    rows = normalize_by_max(rows[order])
    label_column = label_column[order]

    dataset = Dataset(rows, label_column, train_fraction=train_fraction)
    logger.info(
        "created data. %d real and %d simulated events",
        len(dataset) - dataset.signal_count,
        dataset.signal_count,
    )
    return dataset


def load_npz_source(path: Path, label: int, *, name: Optional[str] = None) -> LabelledSource:
    """Read every array of a ``.npz`` archive as one variable series."""

    path = Path(path)
    with np.load(path) as archive:
        columns: Dict[str, np.ndarray] = {key: np.asarray(archive[key]) for key in archive.files}
    return LabelledSource(name=name or path.name, columns=columns, label=int(label))


def make_synthetic_sources(
    n_events: int,
    n_features: int,
    rng: np.random.Generator,
    *,
    signal_fraction: float = 0.3,
    mass_center: float = DEFAULT_MASS_CENTER,
    mass_window: float = DEFAULT_MASS_WINDOW,
) -> List[LabelledSource]:
    """Two Gaussian blobs with a mass column that always survives the window cut."""

    if n_events < 2 or n_features < 1:
        raise ValueError("synthetic data needs at least two events and one feature")
    n_signal = max(1, min(n_events - 1, int(round(n_events * signal_fraction))))
    n_background = n_events - n_signal

    def _columns(count: int, mean: float, mass: np.ndarray) -> Dict[str, np.ndarray]:
        values = np.abs(rng.normal(mean, 0.15, size=(count, n_features)))
        columns = {f"x{idx}": values[:, idx] for idx in range(n_features)}
        columns["mass"] = mass
        return columns

    signal_mass = mass_center + rng.uniform(-0.9, 0.9, size=n_signal) * mass_window
    offsets = mass_window + rng.uniform(10.0, 1000.0, size=n_background)
    background_mass = mass_center + np.where(rng.random(n_background) < 0.5, -offsets, offsets)
    return [
        LabelledSource(name="synthetic_real", columns=_columns(n_background, 0.35, background_mass), label=0),
        LabelledSource(name="synthetic_sim", columns=_columns(n_signal, 0.65, signal_mass), label=1),
    ]


def make_synthetic_dataset(
    n_events: int,
    n_features: int,
    *,
    rng: Optional[np.random.Generator] = None,
    signal_fraction: float = 0.3,
    train_fraction: float = 0.9,
) -> Dataset:
    rng = rng if rng is not None else np.random.default_rng()
    sources = make_synthetic_sources(n_events, n_features, rng, signal_fraction=signal_fraction)
    features = [f"x{idx}" for idx in range(n_features)]
    return build_dataset(sources, features, "mass", train_fraction=train_fraction, rng=rng)


__all__ = [
    "DEFAULT_MASS_CENTER",
    "DEFAULT_MASS_WINDOW",
    "LabelledSource",
    "stack_source",
    "mass_window_mask",
    "normalize_by_max",
    "build_dataset",
    "load_npz_source",
    "make_synthetic_sources",
    "make_synthetic_dataset",
]

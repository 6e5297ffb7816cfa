"""Dataset containers and ingestion helpers."""

from .dataset import Dataset, EvaluationSubset, Event
from .ingest import (
    DEFAULT_MASS_CENTER,
    DEFAULT_MASS_WINDOW,
    LabelledSource,
    build_dataset,
    load_npz_source,
    make_synthetic_dataset,
    make_synthetic_sources,
    mass_window_mask,
    normalize_by_max,
)

__all__ = [
    "Dataset",
    "EvaluationSubset",
    "Event",
    "DEFAULT_MASS_CENTER",
    "DEFAULT_MASS_WINDOW",
    "LabelledSource",
    "build_dataset",
    "load_npz_source",
    "make_synthetic_dataset",
    "make_synthetic_sources",
    "mass_window_mask",
    "normalize_by_max",
]

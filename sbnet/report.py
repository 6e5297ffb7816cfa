"""Evaluation artefacts: weighted score histogram and ROC curve with its AUC.

Both consume predictions aligned index-for-index with the evaluation subset.
Images are rendered with matplotlib's Agg backend into ``out_dir``.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Tuple

import numpy as np

from .data import EvaluationSubset
from .errors import ReportSizeMismatchError

logger = logging.getLogger(__name__)

HISTOGRAM_BUCKETS = 1000
ROC_POINTS = 10000


def _check_sizes(predictions: np.ndarray, labels: np.ndarray) -> None:
    if predictions.shape[0] != labels.shape[0]:
        raise ReportSizeMismatchError(
            f"sizes of predictions ({predictions.shape[0]}) and data ({labels.shape[0]}) not equal"
        )


def score_histogram(predictions: np.ndarray, labels: np.ndarray, *, buckets: int = HISTOGRAM_BUCKETS) -> np.ndarray:
    """Class-weighted counts of shape ``(buckets, 2)``; column 0 background, column 1 signal."""

    predictions = np.asarray(predictions, dtype=np.float64)
    labels = np.asarray(labels)
    _check_sizes(predictions, labels)
    histogram = np.zeros((buckets, 2), dtype=np.float64)
    if labels.shape[0] == 0:
        return histogram
    targets = (labels != 0).astype(np.intp)
    fraction_background = float(np.count_nonzero(targets == 0)) / targets.shape[0]
    weights = np.where(targets == 1, fraction_background, 1.0 - fraction_background)
    slots = np.clip((predictions * buckets).astype(np.intp), 0, buckets - 1)
    np.add.at(histogram, (slots, targets), weights)
    return histogram


def roc_curve(
    predictions: np.ndarray,
    labels: np.ndarray,
    *,
    points: int = ROC_POINTS,
) -> Tuple[np.ndarray, np.ndarray, float]:
    """Sweep the cut ``i / points`` for ``i = 1..points``.

    Returns the false positive rates, true positive rates and the trapezoid
    area, starting from the (1, 1) corner.
    """

    predictions = np.asarray(predictions, dtype=np.float64)
    labels = np.asarray(labels)
    _check_sizes(predictions, labels)
    signal = np.sort(predictions[labels != 0])
    background = np.sort(predictions[labels == 0])
    if signal.size == 0 or background.size == 0:
        logger.warning("ROC curve needs both classes, got %d signal and %d background", signal.size, background.size)
        return np.empty(0), np.empty(0), float("nan")

    cuts = np.arange(1, points + 1, dtype=np.float64) / points
    tpr = (signal.size - np.searchsorted(signal, cuts, side="left")) / signal.size
    fpr = (background.size - np.searchsorted(background, cuts, side="left")) / background.size
    prev_tpr = np.concatenate(([1.0], tpr[:-1]))
    prev_fpr = np.concatenate(([1.0], fpr[:-1]))
    area = float(np.sum((prev_fpr - fpr) * (tpr + prev_tpr) / 2.0))
    return fpr, tpr, area


def _pyplot():
    import matplotlib

    matplotlib.use("Agg")
    import matplotlib.pyplot as plt

    return plt


def emit_score_histogram(
    predictions: np.ndarray,
    evaluation_subset: EvaluationSubset,
    artifact_name: str,
    out_dir: Path,
) -> Path:
    histogram = score_histogram(predictions, evaluation_subset.labels)
    positions = np.arange(histogram.shape[0], dtype=np.float64) / histogram.shape[0]
    plt = _pyplot()
    fig, ax = plt.subplots(figsize=(15, 9.5))
    for column, colour, label in ((1, "blue", "signal"), (0, "red", "background")):
        filled = histogram[:, column] > 0
        ax.plot(positions[filled], np.log10(histogram[filled, column]), color=colour, label=label)
    ax.set_title(artifact_name)
    ax.set_xlabel("score")
    ax.set_ylabel("log(count)")
    ax.legend()
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    path = out_dir / f"{artifact_name}.png"
    fig.savefig(path)
    plt.close(fig)
    logger.info("saved histogram to %s", path)
    return path


def emit_roc_curve(
    predictions: np.ndarray,
    evaluation_subset: EvaluationSubset,
    artifact_name: str,
    out_dir: Path,
) -> float:
    """Render the ROC curve and return its AUC."""

    fpr, tpr, area = roc_curve(predictions, evaluation_subset.labels)
    plt = _pyplot()
    fig, ax = plt.subplots(figsize=(15, 9.5))
    ax.plot(fpr, tpr)
    ax.text(0.5, 0.5, f"AUC = {area:f}", transform=ax.transAxes)
    ax.set_title(artifact_name)
    ax.set_xlabel("False positive rate")
    ax.set_ylabel("True positive rate")
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    path = out_dir / f"{artifact_name}.png"
    fig.savefig(path)
    plt.close(fig)
    logger.info("saved ROC curve to %s", path)
    return area


class EvaluationReporter:
    """Writes both artefacts after every evaluation round."""

    def __init__(
        self,
        out_dir: Path,
        *,
        histogram_name: str = "log_predictions",
        roc_name: str = "ROC_curve",
    ) -> None:
        self.out_dir = Path(out_dir)
        self.histogram_name = histogram_name
        self.roc_name = roc_name

    def emit(self, predictions: np.ndarray, evaluation_subset: EvaluationSubset) -> float:
        emit_score_histogram(predictions, evaluation_subset, self.histogram_name, self.out_dir)
        return emit_roc_curve(predictions, evaluation_subset, self.roc_name, self.out_dir)


__all__ = [
    "HISTOGRAM_BUCKETS",
    "ROC_POINTS",
    "score_histogram",
    "roc_curve",
    "emit_score_histogram",
    "emit_roc_curve",
    "EvaluationReporter",
]

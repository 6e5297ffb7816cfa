from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np


@dataclass(frozen=True)
class Event:
    """One labelled example: normalised features plus signal (1) / background (0)."""

    features: np.ndarray
    label: float


class Dataset:
    """Immutable labelled feature matrix split into a training prefix and an evaluation suffix."""

    def __init__(
        self,
        features: np.ndarray,
        labels: np.ndarray,
        *,
        training_cutoff: Optional[int] = None,
        train_fraction: float = 0.9,
    ) -> None:
        features = np.array(features, dtype=np.float64)
        labels = np.array(labels, dtype=np.float64).reshape(-1)
        if features.ndim != 2:
            raise ValueError(f"features must be 2-D, got shape {features.shape}")
        if features.shape[0] != labels.shape[0]:
            raise ValueError("features and labels must have the same number of rows")
        if features.shape[0] < 2 or features.shape[1] < 1:
            raise ValueError("dataset needs at least two events and one feature")
        if not np.all((labels == 0.0) | (labels == 1.0)):
            raise ValueError("labels must be 0 (background) or 1 (signal)")
        if training_cutoff is None:
            training_cutoff = int(np.floor(features.shape[0] * train_fraction + 1e-9))
        if not (0 < training_cutoff < features.shape[0]):
            raise ValueError(
                f"training cutoff {training_cutoff} must leave both splits non-empty (size {features.shape[0]})"
            )
        features.setflags(write=False)
        labels.setflags(write=False)
        self.features = features
        self.labels = labels
        self.training_cutoff = int(training_cutoff)
        background = int(np.count_nonzero(labels == 0.0))
        self.fraction_background = background / labels.shape[0]
        self.fraction_signal = 1.0 - self.fraction_background

    def __len__(self) -> int:
        return int(self.features.shape[0])

    @property
    def feature_count(self) -> int:
        return int(self.features.shape[1])

    @property
    def training_size(self) -> int:
        return self.training_cutoff

    @property
    def evaluation_size(self) -> int:
        return len(self) - self.training_cutoff

    @property
    def signal_count(self) -> int:
        return int(np.count_nonzero(self.labels == 1.0))

    def class_bias(self, label: float) -> float:
        # Signal is weighted by the background share and vice versa.
        return self.fraction_background if label else self.fraction_signal

    def event(self, index: int) -> Event:
        return Event(features=self.features[index], label=float(self.labels[index]))

    def evaluation_subset(self) -> "EvaluationSubset":
        return EvaluationSubset(
            features=self.features[self.training_cutoff:],
            labels=self.labels[self.training_cutoff:],
        )


@dataclass(frozen=True)
class EvaluationSubset:
    features: np.ndarray
    labels: np.ndarray

    def __len__(self) -> int:
        return int(self.labels.shape[0])

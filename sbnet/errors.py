"""Exceptions for conditions that end a training run."""


class SbnetError(RuntimeError):
    """Base class for fatal trainer errors."""


class DatasetIntegrityError(SbnetError):
    """Per-feature row counts of one source disagree."""


class ReportSizeMismatchError(SbnetError):
    """Prediction count differs from the evaluation subset size."""


__all__ = ["SbnetError", "DatasetIntegrityError", "ReportSizeMismatchError"]

"""共享计数器分发工作、汇合点同步的信号/本底多层感知机训练器。"""

from .config import TrainerConfig, get_logging_level, get_trainer_config, load_config
from .console import OperatorConsole
from .controller import Controller
from .counter import SharedCounter
from .data import Dataset, Event, build_dataset, make_synthetic_dataset
from .errors import DatasetIntegrityError, ReportSizeMismatchError, SbnetError
from .network import derivative_from_logistic, forward, init_weights, logistic, score_event, train_event
from .report import EvaluationReporter, emit_roc_curve, emit_score_histogram, roc_curve
from .state import Mode, RoundSummary, TrainerState
from .trainer import Trainer, build_trainer

__all__ = [
    "TrainerConfig",
    "get_logging_level",
    "get_trainer_config",
    "load_config",
    "OperatorConsole",
    "Controller",
    "SharedCounter",
    "Dataset",
    "Event",
    "build_dataset",
    "make_synthetic_dataset",
    "SbnetError",
    "DatasetIntegrityError",
    "ReportSizeMismatchError",
    "logistic",
    "derivative_from_logistic",
    "init_weights",
    "forward",
    "score_event",
    "train_event",
    "EvaluationReporter",
    "emit_score_histogram",
    "emit_roc_curve",
    "roc_curve",
    "Mode",
    "RoundSummary",
    "TrainerState",
    "Trainer",
    "build_trainer",
]

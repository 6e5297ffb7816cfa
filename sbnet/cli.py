"""Command line entry point: build the dataset, then hand the terminal to the operator loop."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import numpy as np
import yaml

from .config import get_dataset_config, get_trainer_config, load_config, load_yaml_config
from .console import OperatorConsole
from .data import (
    DEFAULT_MASS_CENTER,
    DEFAULT_MASS_WINDOW,
    Dataset,
    LabelledSource,
    build_dataset,
    load_npz_source,
    make_synthetic_dataset,
)
from .errors import SbnetError
from .report import EvaluationReporter
from .trainer import build_trainer

LOGGER = logging.getLogger("sbnet")


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Barrier-synchronised signal/background MLP trainer")
    parser.add_argument("--config", type=Path, default=None, help="Path to configuration file")
    parser.add_argument("--threads", type=int, help="Override worker thread count")
    parser.add_argument("--depth", type=int, help="Override network depth (layers including input)")
    parser.add_argument("--artifacts-dir", type=Path, help="Directory for histogram and ROC images")
    parser.add_argument("--seed", type=int, help="Seed for shuffling, weights and worker sampling")
    parser.add_argument("--synthetic", type=int, metavar="N", help="Train on N synthetic events instead of files")
    parser.add_argument("--synthetic-features", type=int, default=12, help="Feature count for synthetic data")
    parser.add_argument("--log-level", type=str, default=None, help="Logging level (default from config)")
    return parser.parse_args(argv)


def setup_logging(level: Optional[str], config_data: Dict[str, Any]) -> None:
    logging_cfg = config_data.get("logging") if isinstance(config_data.get("logging"), dict) else {}
    level_name = level or logging_cfg.get("level", "INFO")
    resolved_level = getattr(logging, str(level_name).upper(), logging.INFO)
    logging.basicConfig(level=resolved_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


def load_dataset(dataset_cfg: Dict[str, Any], *, train_fraction: float, rng: np.random.Generator) -> Dataset:
    raw_sources = dataset_cfg.get("sources") or []
    if not isinstance(raw_sources, list) or not raw_sources:
        raise ValueError("`dataset.sources` must be a non-empty list")
    features = dataset_cfg.get("features") or []
    if not features:
        raise ValueError("`dataset.features` must list the training variables")
    sources: List[LabelledSource] = []
    for entry in raw_sources:
        if not isinstance(entry, dict) or "path" not in entry or "label" not in entry:
            raise ValueError("each dataset source needs `path` and `label`")
        sources.append(load_npz_source(Path(entry["path"]), int(entry["label"])))
    return build_dataset(
        sources,
        [str(name) for name in features],
        str(dataset_cfg.get("mass_feature", "Lb_M")),
        mass_center=float(dataset_cfg.get("mass_center", DEFAULT_MASS_CENTER)),
        mass_window=float(dataset_cfg.get("mass_window", DEFAULT_MASS_WINDOW)),
        train_fraction=train_fraction,
        rng=rng,
    )


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    try:
        config_data = load_yaml_config(args.config) if args.config is not None else load_config()
    except (OSError, ValueError, yaml.YAMLError) as exc:
        setup_logging(args.log_level, {})
        LOGGER.error("ERROR: cannot read configuration: %s", exc)
        return 1
    setup_logging(args.log_level, config_data)

    overrides: Dict[str, Any] = {}
    if args.threads is not None:
        overrides["threads"] = args.threads
    if args.depth is not None:
        overrides["depth"] = args.depth
    if args.artifacts_dir is not None:
        overrides["artifacts_dir"] = str(args.artifacts_dir)
    if args.seed is not None:
        overrides["seed"] = args.seed

    try:
        trainer_section = config_data.get("trainer") if isinstance(config_data.get("trainer"), dict) else {}
        trainer_config = get_trainer_config({**config_data, "trainer": {**trainer_section, **overrides}})
        rng = np.random.default_rng(trainer_config.seed)
        if args.synthetic is not None:
            dataset = make_synthetic_dataset(
                args.synthetic,
                args.synthetic_features,
                rng=rng,
                train_fraction=trainer_config.train_fraction,
            )
        else:
            dataset = load_dataset(
                get_dataset_config(config_data),
                train_fraction=trainer_config.train_fraction,
                rng=rng,
            )
        trainer = build_trainer(
            dataset,
            trainer_config,
            console=OperatorConsole(),
            reporter=EvaluationReporter(trainer_config.artifacts_dir),
        )
        trainer.run()
    except (SbnetError, OSError, ValueError) as exc:
        LOGGER.error("ERROR: %s", exc)
        return 1
    except KeyboardInterrupt:
        LOGGER.info("Training interrupted by user")
        return 130
    return 0


if __name__ == "__main__":
    sys.exit(main())

"""配置加载与训练器、数据集选项解析工具。"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

logger = logging.getLogger(__name__)

_CONFIG_PATH = Path(__file__).resolve().parent.parent / "config.yaml"


@dataclass(frozen=True)
class TrainerConfig:
    """训练器运行参数。"""

    depth: int = 5
    threads: int = 1
    train_fraction: float = 0.9
    round_budget: int = 100
    init_scale: float = 2.0
    seed: Optional[int] = None
    artifacts_dir: Path = Path("cache")


def default_thread_count() -> int:
    """硬件并行度减一，至少为 1。"""

    return max(1, (os.cpu_count() or 1) - 1)


def load_yaml_config(path: Path) -> Dict[str, Any]:
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    if not isinstance(data, dict):
        raise ValueError("configuration root must be a mapping")
    return data


@lru_cache(maxsize=1)
def load_config() -> Dict[str, Any]:
    """加载项目配置文件，发生错误时返回空字典。"""

    if not _CONFIG_PATH.exists():
        return {}

    try:
        return load_yaml_config(_CONFIG_PATH)
    except (OSError, ValueError, yaml.YAMLError) as exc:
        logger.warning("读取配置文件失败：%s", exc)
        return {}


def _section(config: Optional[Dict[str, Any]], name: str) -> Dict[str, Any]:
    source = load_config() if config is None else config
    block = source.get(name)
    if isinstance(block, dict):
        return block
    return {}


def get_logging_level(default_level: int = logging.INFO, config: Optional[Dict[str, Any]] = None) -> int:
    """根据配置返回日志等级，未配置时使用默认值。"""

    level_name = _section(config, "logging").get("level")
    if isinstance(level_name, str):
        level_value = getattr(logging, level_name.upper(), None)
        if isinstance(level_value, int):
            return level_value
    return default_level


def get_trainer_config(config: Optional[Dict[str, Any]] = None) -> TrainerConfig:
    """解析 ``trainer`` 配置块，缺失项使用默认值。"""

    raw = _section(config, "trainer")
    threads_raw = raw.get("threads")
    seed_raw = raw.get("seed")
    trainer_config = TrainerConfig(
        depth=int(raw.get("depth", TrainerConfig.depth)),
        threads=int(threads_raw) if threads_raw is not None else default_thread_count(),
        train_fraction=float(raw.get("train_fraction", TrainerConfig.train_fraction)),
        round_budget=int(raw.get("round_budget", TrainerConfig.round_budget)),
        init_scale=float(raw.get("init_scale", TrainerConfig.init_scale)),
        seed=int(seed_raw) if seed_raw is not None else None,
        artifacts_dir=Path(raw.get("artifacts_dir", TrainerConfig.artifacts_dir)),
    )
    if trainer_config.depth < 2:
        raise ValueError("trainer.depth 必须不小于 2")
    if trainer_config.threads < 1:
        raise ValueError("trainer.threads 必须为正整数")
    if not (0.0 < trainer_config.train_fraction < 1.0):
        raise ValueError("trainer.train_fraction 需位于 (0, 1) 区间")
    if trainer_config.round_budget < 1:
        raise ValueError("trainer.round_budget 必须为正整数")
    return trainer_config


def get_dataset_config(config: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """返回数据集配置块，未设置时返回空字典。"""

    return _section(config, "dataset")


__all__ = [
    "TrainerConfig",
    "default_thread_count",
    "load_yaml_config",
    "load_config",
    "get_logging_level",
    "get_trainer_config",
    "get_dataset_config",
]

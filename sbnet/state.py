"""训练器共享状态：权重、累加器、模式与计数器集中在一个对象中。"""

from __future__ import annotations

import enum
import logging
from collections import deque
from dataclasses import dataclass
from typing import Deque, List, Optional

import numpy as np

from .counter import SharedCounter
from .data import Dataset
from .network import init_weights, zeros_like_weights

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_LIMIT = 1000


class Mode(enum.Enum):
    TRAIN = "train"
    EVALUATE = "evaluate"


@dataclass(frozen=True)
class RoundSummary:
    """一轮结束时的汇总信息。"""

    index: int
    mode: Mode
    claims: int


class TrainerState:
    """所有工作线程与控制器共享的状态。

    访问纪律依靠阶段划分而非锁：``weights``、``mode``、``pending_repetitions`` 仅由
    控制器在全部线程停驻时修改；``accumulators[i]`` 与 ``claims[i]`` 只由第 i 个
    工作线程写入；``predictions`` 的每个位置在一轮评估中最多被一个线程写入一次。
    """

    def __init__(
        self,
        dataset: Dataset,
        *,
        depth: int,
        threads: int,
        rng: Optional[np.random.Generator] = None,
        init_scale: float = 2.0,
        weights: Optional[np.ndarray] = None,
        history_limit: int = DEFAULT_HISTORY_LIMIT,
    ) -> None:
        if threads < 1:
            raise ValueError("threads 必须为正整数")
        if depth < 2:
            raise ValueError("depth 必须不小于 2")
        if history_limit < 1:
            raise ValueError("history_limit 必须为正整数")
        rng = rng if rng is not None else np.random.default_rng()
        self.dataset = dataset
        self.depth = int(depth)
        self.threads = int(threads)
        if weights is None:
            weights = init_weights(dataset.feature_count, depth, rng, scale=init_scale)
        else:
            weights = np.array(weights, dtype=np.float64)
            expected = (depth - 1, dataset.feature_count, dataset.feature_count)
            if weights.shape != expected:
                raise ValueError(f"weights 形状应为 {expected}，实际为 {weights.shape}")
        self.weights = weights
        self.accumulators: List[np.ndarray] = [zeros_like_weights(weights) for _ in range(self.threads)]
        self.claims: List[int] = [0] * self.threads
        self.predictions = np.full(dataset.evaluation_size, np.nan, dtype=np.float64)
        self.counter = SharedCounter(0)
        self.mode = Mode.TRAIN
        self.pending_repetitions = 0
        self.stopped = False
        # 只保留最近的若干轮汇总。
        self.history: Deque[RoundSummary] = deque(maxlen=int(history_limit))
        self._rounds_completed = 0
        logger.debug(
            "训练器状态初始化：特征数=%d, 深度=%d, 线程数=%d",
            dataset.feature_count,
            self.depth,
            self.threads,
        )

    @property
    def round_index(self) -> int:
        return self._rounds_completed

    def record_round(self, mode: Mode, claims: int) -> RoundSummary:
        summary = RoundSummary(index=self._rounds_completed, mode=mode, claims=int(claims))
        self.history.append(summary)
        self._rounds_completed += 1
        return summary


__all__ = ["DEFAULT_HISTORY_LIMIT", "Mode", "RoundSummary", "TrainerState"]

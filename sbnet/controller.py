"""汇合点上由单个被选线程执行的控制器。"""

from __future__ import annotations

import logging
from typing import Optional

import numpy as np

from .console import OperatorConsole
from .network import format_weights
from .report import EvaluationReporter
from .state import Mode, TrainerState

logger = logging.getLogger(__name__)

DEFAULT_ROUND_BUDGET = 100


class Controller:
    """每轮执行一次：合并梯度、报告、操作员命令循环、重置计数器。

    仅在所有工作线程停驻于汇合点时被调用，因此可以直接修改共享状态。
    计数器在此处重置，必须早于汇合点释放。
    """

    def __init__(
        self,
        state: TrainerState,
        console: OperatorConsole,
        *,
        round_budget: int = DEFAULT_ROUND_BUDGET,
        reporter: Optional[EvaluationReporter] = None,
    ) -> None:
        if round_budget < 1:
            raise ValueError("round_budget 必须为正整数")
        self.state = state
        self.console = console
        self.round_budget = int(round_budget)
        self.reporter = reporter

    def aggregate(self) -> None:
        """将每个线程的累加器逐元素加到权重上。"""

        for accumulator in self.state.accumulators:
            self.state.weights += accumulator

    def run_round(self) -> None:
        state = self.state
        completed_mode = state.mode
        self.aggregate()

        summary = state.record_round(completed_mode, sum(state.claims))
        logger.debug(
            "第 %d 轮结束：模式=%s, 领取数=%d, 剩余重复=%d",
            summary.index,
            summary.mode.value,
            summary.claims,
            state.pending_repetitions,
        )

        if state.pending_repetitions == 0:
            if completed_mode is Mode.EVALUATE:
                self._report()
            try:
                self._command_loop()
            except EOFError:
                logger.info("操作员输入结束，停止训练")
                state.stopped = True
                state.counter.store(0)
                return

        budget = min(state.pending_repetitions, self.round_budget)
        state.pending_repetitions -= budget
        state.counter.store(budget)

    def _command_loop(self) -> None:
        state = self.state
        while True:
            command = self.console.read_command()
            if command == "P":
                self.console.write(format_weights(state.weights))
                continue
            if command == "E":
                state.mode = Mode.EVALUATE
                state.counter.store(0)
                state.predictions.fill(np.nan)
                logger.info("切换到评估模式：评估事件数=%d", state.dataset.evaluation_size)
                return
            if command == "R":
                state.mode = Mode.TRAIN
                state.pending_repetitions = self.console.read_count()
                logger.info("切换到训练模式：重复次数=%d", state.pending_repetitions)
                return
            self.console.reject("Invalid input")

    def _report(self) -> None:
        state = self.state
        written = int(np.count_nonzero(~np.isnan(state.predictions)))
        logger.info("评估完成：预测数=%d/%d", written, state.predictions.shape[0])
        if self.reporter is None:
            return
        auc = self.reporter.emit(state.predictions, state.dataset.evaluation_subset())
        logger.info("ROC 曲线下面积 AUC=%.6f", auc)


__all__ = ["Controller", "DEFAULT_ROUND_BUDGET"]

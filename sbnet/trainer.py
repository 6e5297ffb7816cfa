"""固定线程池训练器：共享计数器分发工作，汇合点上运行控制器。

每个工作线程反复执行：按当前模式领取事件直到计数器耗尽 → 在汇合点等待 →
释放后清零自己的累加器。最后到达汇合点的线程执行控制器，其余线程此时全部停驻，
因此控制器可以在无锁的情况下修改权重与计数器。
"""

from __future__ import annotations

import logging
import threading
from typing import List, Optional

import numpy as np

from .config import TrainerConfig
from .console import OperatorConsole
from .controller import Controller
from .data import Dataset
from .network import score_event, train_event
from .report import EvaluationReporter
from .state import Mode, TrainerState

logger = logging.getLogger(__name__)


class Trainer:
    """持有线程池与汇合点；:meth:`run` 在操作员输入结束前一直阻塞。"""

    def __init__(self, state: TrainerState, controller: Controller, *, seed: Optional[int] = None) -> None:
        if controller.state is not state:
            raise ValueError("controller 必须绑定同一个 TrainerState")
        self.state = state
        self.controller = controller
        seeds = np.random.SeedSequence(seed).spawn(state.threads)
        self._rngs = [np.random.default_rng(child) for child in seeds]
        self._barrier = threading.Barrier(state.threads, action=controller.run_round)
        self._threads: List[threading.Thread] = []
        self._failures: List[BaseException] = []

    def run(self) -> None:
        if self._threads:
            raise RuntimeError("训练器只能运行一次")
        logger.info(
            "启动训练线程：线程数=%d, 训练事件=%d, 评估事件=%d",
            self.state.threads,
            self.state.dataset.training_size,
            self.state.dataset.evaluation_size,
        )
        for thread_no in range(self.state.threads):
            thread = threading.Thread(
                target=self._worker,
                args=(thread_no,),
                name=f"sbnet-worker-{thread_no}",
                daemon=True,
            )
            self._threads.append(thread)
            thread.start()
        for thread in self._threads:
            thread.join()
        if self._failures:
            raise self._failures[0]
        logger.info("训练结束，共 %d 轮", self.state.round_index)

    def _worker(self, thread_no: int) -> None:
        try:
            self._worker_loop(thread_no)
        except threading.BrokenBarrierError:
            logger.debug("汇合点已中断，工作线程 %d 退出", thread_no)
        except Exception as exc:
            logger.error("工作线程 %d 异常退出：%s", thread_no, exc)
            self._failures.append(exc)
            # 让仍停驻或即将到达汇合点的线程收到 BrokenBarrierError。
            self._barrier.abort()

    def _worker_loop(self, thread_no: int) -> None:
        state = self.state
        while True:
            if state.mode is Mode.TRAIN:
                state.claims[thread_no] = self._train_claims(thread_no)
            else:
                state.claims[thread_no] = self._evaluate_claims()
            self._barrier.wait()
            state.accumulators[thread_no].fill(0.0)
            state.claims[thread_no] = 0
            if state.stopped:
                return

    def _train_claims(self, thread_no: int) -> int:
        state = self.state
        dataset = state.dataset
        accumulator = state.accumulators[thread_no]
        rng = self._rngs[thread_no]
        claims = 0
        while state.counter.fetch_sub(1) > 0:
            index = int(rng.integers(0, dataset.training_cutoff))
            label = float(dataset.labels[index])
            train_event(state.weights, dataset.features[index], label, dataset.class_bias(label), accumulator)
            claims += 1
        return claims

    def _evaluate_claims(self) -> int:
        state = self.state
        dataset = state.dataset
        claims = 0
        while True:
            position = state.counter.fetch_add(1)
            index = dataset.training_cutoff + position
            if index >= len(dataset):
                return claims
            state.predictions[position] = score_event(state.weights, dataset.features[index])
            claims += 1


def build_trainer(
    dataset: Dataset,
    config: TrainerConfig,
    *,
    console: Optional[OperatorConsole] = None,
    reporter: Optional[EvaluationReporter] = None,
) -> Trainer:
    """按配置组装状态、控制器与训练器。"""

    weight_seed, worker_seed = np.random.SeedSequence(config.seed).spawn(2)
    state = TrainerState(
        dataset,
        depth=config.depth,
        threads=config.threads,
        rng=np.random.default_rng(weight_seed),
        init_scale=config.init_scale,
    )
    controller = Controller(
        state,
        console or OperatorConsole(),
        round_budget=config.round_budget,
        reporter=reporter,
    )
    return Trainer(state, controller, seed=int(worker_seed.generate_state(1)[0]))


__all__ = ["Trainer", "build_trainer"]

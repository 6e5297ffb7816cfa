import io
import logging
import unittest
from typing import List

import numpy as np

from sbnet.console import OperatorConsole
from sbnet.controller import Controller
from sbnet.data import EvaluationSubset
from sbnet.state import Mode, TrainerState

from .helpers import ScriptedInput, tiny_dataset


logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)
if not logger.handlers:
    handler = logging.StreamHandler()
    handler.setLevel(logging.INFO)
    logger.addHandler(handler)
logger.propagate = False


class RecordingReporter:
    def __init__(self) -> None:
        self.calls: List[np.ndarray] = []

    def emit(self, predictions: np.ndarray, evaluation_subset: EvaluationSubset) -> float:
        self.calls.append(predictions.copy())
        return 0.75


class ControllerTests(unittest.TestCase):
    def _controller(self, lines, *, threads: int = 2, reporter=None, round_budget: int = 100):
        state = TrainerState(tiny_dataset(), depth=3, threads=threads, rng=np.random.default_rng(1))
        self.output = io.StringIO()
        self.scripted = ScriptedInput(lines)
        console = OperatorConsole(self.scripted, self.output)
        controller = Controller(state, console, reporter=reporter, round_budget=round_budget)
        return state, controller

    def test_zero_accumulators_leave_weights_unchanged(self) -> None:
        logger.info("开始测试：合并全零累加器不应改变权重")
        state, controller = self._controller([])
        before = state.weights.copy()
        controller.aggregate()
        np.testing.assert_array_equal(state.weights, before)

    def test_aggregate_adds_every_accumulator(self) -> None:
        state, controller = self._controller([], threads=3)
        before = state.weights.copy()
        rng = np.random.default_rng(2)
        for accumulator in state.accumulators:
            accumulator[...] = rng.normal(size=accumulator.shape)
        expected = before + sum(state.accumulators)
        controller.aggregate()
        np.testing.assert_allclose(state.weights, expected, rtol=1e-12, atol=1e-12)

    def test_print_does_not_mutate_and_reprompts(self) -> None:
        state, controller = self._controller(["P", "R 4"])
        before = state.weights.copy()
        controller.run_round()
        np.testing.assert_array_equal(state.weights, before)
        self.assertIn("connections layer 1:", self.output.getvalue())
        self.assertEqual(state.mode, Mode.TRAIN)
        self.assertEqual(state.counter.load(), 4)
        self.assertEqual(state.pending_repetitions, 0)

    def test_invalid_input_is_rejected(self) -> None:
        logger.info("开始测试：非法命令应提示后重新读取")
        state, controller = self._controller(["X", "train", "R", "abc", "-2", "7"])
        controller.run_round()
        text = self.output.getvalue()
        self.assertEqual(text.count("Invalid input"), 2)
        self.assertEqual(text.count("Invalid rep count"), 2)
        self.assertEqual(state.counter.load(), 7)
        self.assertEqual(len(state.history), 1)

    def test_large_request_is_split_into_bounded_rounds(self) -> None:
        state, controller = self._controller(["R 250"])
        controller.run_round()
        self.assertEqual((state.counter.load(), state.pending_repetitions), (100, 150))
        controller.run_round()
        self.assertEqual((state.counter.load(), state.pending_repetitions), (100, 50))
        controller.run_round()
        self.assertEqual((state.counter.load(), state.pending_repetitions), (50, 0))
        # 预算已耗尽，下一轮应重新提示；输入结束后停止。
        self.assertEqual(len(self.scripted.prompts), 1)
        controller.run_round()
        self.assertEqual(len(self.scripted.prompts), 2)
        self.assertTrue(state.stopped)

    def test_round_budget_is_configurable(self) -> None:
        state, controller = self._controller(["R 25"], round_budget=10)
        controller.run_round()
        self.assertEqual((state.counter.load(), state.pending_repetitions), (10, 15))

    def test_evaluate_command_resets_counter_and_predictions(self) -> None:
        state, controller = self._controller(["E"])
        state.counter.store(-3)
        state.predictions[:] = 0.5
        controller.run_round()
        self.assertEqual(state.mode, Mode.EVALUATE)
        self.assertEqual(state.counter.load(), 0)
        self.assertTrue(np.all(np.isnan(state.predictions)))

    def test_round_history_is_bounded(self) -> None:
        logger.info("开始测试：长时间训练只保留最近的轮次汇总")
        state = TrainerState(tiny_dataset(), depth=3, threads=2, rng=np.random.default_rng(1), history_limit=3)
        controller = Controller(state, OperatorConsole(ScriptedInput(["R 700"]), io.StringIO()))
        for _ in range(8):
            controller.run_round()
        self.assertEqual(state.round_index, 8)
        self.assertEqual([summary.index for summary in state.history], [5, 6, 7])
        self.assertEqual(state.pending_repetitions, 0)
        self.assertEqual(set(vars(controller)), {"state", "console", "round_budget", "reporter"})
        self.assertFalse(callable(controller))

    def test_end_of_input_stops(self) -> None:
        state, controller = self._controller([])
        controller.run_round()
        self.assertTrue(state.stopped)
        self.assertEqual(state.counter.load(), 0)

    def test_reports_only_after_evaluation_round(self) -> None:
        logger.info("开始测试：仅在评估轮结束后生成报告")
        reporter = RecordingReporter()
        state, controller = self._controller(["E", "R 1"], reporter=reporter)
        controller.run_round()
        self.assertEqual(reporter.calls, [])
        state.predictions[:] = 0.25
        state.claims[0] = state.dataset.evaluation_size
        controller.run_round()
        self.assertEqual(len(reporter.calls), 1)
        self.assertEqual(state.history[-1].mode, Mode.EVALUATE)
        self.assertEqual(state.history[-1].claims, state.dataset.evaluation_size)



class OperatorConsoleTests(unittest.TestCase):
    def test_count_on_same_or_next_line(self) -> None:
        console = OperatorConsole(ScriptedInput(["R 3", "R", "9"]), io.StringIO())
        self.assertEqual(console.read_command(), "R")
        self.assertEqual(console.read_count(), 3)
        self.assertEqual(console.read_command(), "R")
        self.assertEqual(console.read_count(), 9)

    def test_command_letter_may_be_joined_to_count(self) -> None:
        logger.info("开始测试：R3 应等价于 R 3")
        console = OperatorConsole(ScriptedInput(["R3", "PE", "R", "12"]), io.StringIO())
        self.assertEqual(console.read_command(), "R")
        self.assertEqual(console.read_count(), 3)
        self.assertEqual(console.read_command(), "P")
        self.assertEqual(console.read_command(), "E")
        self.assertEqual(console.read_command(), "R")
        self.assertEqual(console.read_count(), 12)

    def test_joined_count_drives_controller(self) -> None:
        state = TrainerState(tiny_dataset(), depth=3, threads=1, rng=np.random.default_rng(1))
        console = OperatorConsole(ScriptedInput(["R3"]), io.StringIO())
        Controller(state, console).run_round()
        self.assertEqual(state.mode, Mode.TRAIN)
        self.assertEqual(state.counter.load(), 3)

    def test_blank_lines_are_skipped(self) -> None:
        console = OperatorConsole(ScriptedInput(["", "   ", "E"]), io.StringIO())
        self.assertEqual(console.read_command(), "E")

    def test_eof_propagates(self) -> None:
        console = OperatorConsole(ScriptedInput([]), io.StringIO())
        with self.assertRaises(EOFError):
            console.read_command()


if __name__ == "__main__":
    unittest.main()

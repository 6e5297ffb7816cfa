import logging
import threading
import unittest
from typing import List

from sbnet.counter import SharedCounter


logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)
if not logger.handlers:
    handler = logging.StreamHandler()
    handler.setLevel(logging.INFO)
    logger.addHandler(handler)
logger.propagate = False


def _run_threads(count: int, target) -> None:
    threads = [threading.Thread(target=target, args=(idx,)) for idx in range(count)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()


class SharedCounterTests(unittest.TestCase):
    def test_fetch_operations_return_previous_value(self) -> None:
        counter = SharedCounter(5)
        self.assertEqual(counter.fetch_sub(1), 5)
        self.assertEqual(counter.fetch_add(3), 4)
        self.assertEqual(counter.load(), 7)
        counter.store(-2)
        self.assertEqual(counter.load(), -2)

    def test_train_protocol_authorises_exactly_budget(self) -> None:
        logger.info("开始测试：训练协议应恰好授权 K 次领取")
        budget = 500
        threads = 6
        counter = SharedCounter(budget)
        authorised: List[int] = [0] * threads

        def _worker(thread_no: int) -> None:
            while counter.fetch_sub(1) > 0:
                authorised[thread_no] += 1

        _run_threads(threads, _worker)
        self.assertEqual(sum(authorised), budget)
        # 每个线程恰好多做一次失败的递减。
        self.assertEqual(counter.load(), -threads)
        self.assertLessEqual(counter.fetch_sub(1), 0)
        logger.info("各线程领取数=%s", authorised)

    def test_zero_budget_authorises_nothing(self) -> None:
        counter = SharedCounter(0)
        self.assertLessEqual(counter.fetch_sub(1), 0)
        self.assertLessEqual(counter.fetch_sub(1), 0)

    def test_evaluate_protocol_claims_each_index_once(self) -> None:
        logger.info("开始测试：评估协议应使每个位置恰好被领取一次")
        size = 337
        threads = 5
        counter = SharedCounter(0)
        claimed: List[List[int]] = [[] for _ in range(threads)]

        def _worker(thread_no: int) -> None:
            while True:
                position = counter.fetch_add(1)
                if position >= size:
                    return
                claimed[thread_no].append(position)

        _run_threads(threads, _worker)
        merged = sorted(position for positions in claimed for position in positions)
        self.assertEqual(merged, list(range(size)))
        self.assertEqual(counter.load(), size + threads)


if __name__ == "__main__":
    unittest.main()

"""训练与评估两种领取协议共用的共享计数器。"""

from __future__ import annotations

import threading


class SharedCounter:
    """单个整数上的原子读-改-写操作。

    训练模式下工作线程调用 :meth:`fetch_sub`，返回值大于 0 时获得一次领取资格；
    评估模式下调用 :meth:`fetch_add`，返回值即评估后缀中的位置。两种协议共用同一个
    整数且没有代次标记，因此重置必须发生在所有线程停驻于汇合点期间。
    """

    def __init__(self, value: int = 0) -> None:
        self._value = int(value)
        self._lock = threading.Lock()

    def fetch_sub(self, amount: int = 1) -> int:
        """减去 ``amount`` 并返回减之前的值。"""

        with self._lock:
            previous = self._value
            self._value = previous - amount
        return previous

    def fetch_add(self, amount: int = 1) -> int:
        """加上 ``amount`` 并返回加之前的值。"""

        with self._lock:
            previous = self._value
            self._value = previous + amount
        return previous

    def store(self, value: int) -> None:
        with self._lock:
            self._value = int(value)

    def load(self) -> int:
        with self._lock:
            return self._value

    def __repr__(self) -> str:
        return f"SharedCounter({self.load()})"


__all__ = ["SharedCounter"]

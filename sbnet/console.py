"""操作员控制台：在控制器职责内阻塞读取单字符命令。"""

from __future__ import annotations

import sys
from collections import deque
from typing import Callable, Deque, Optional, TextIO

COMMAND_PROMPT = "Input: Print current connections, perform a tEst, or tRain for an optional number of iterations? "
COUNT_PROMPT = "\nInput rep count: "


class OperatorConsole:
    """按空白切分的记号读取器，输入结束时抛出 ``EOFError``。

    ``R 3`` 可以写在同一行，也可以分两行输入；命令只取记号首字符，
    其余部分留作下一个记号，因此 ``R3`` 等价于 ``R 3``。
    """

    def __init__(
        self,
        input_fn: Optional[Callable[[str], str]] = None,
        output: Optional[TextIO] = None,
    ) -> None:
        self._input = input_fn or input
        self._output = output
        self._tokens: Deque[str] = deque()

    @property
    def output(self) -> TextIO:
        return self._output or sys.stdout

    def write(self, text: str) -> None:
        self.output.write(text)
        self.output.flush()

    def _next_token(self, prompt: str) -> str:
        while not self._tokens:
            line = self._input(prompt)
            self._tokens.extend(line.split())
        return self._tokens.popleft()

    def read_command(self) -> str:
        token = self._next_token(COMMAND_PROMPT)
        if len(token) > 1:
            self._tokens.appendleft(token[1:])
        return token[0]

    def read_count(self) -> int:
        """读取非负整数重复次数，非法输入提示后重新读取。"""

        while True:
            token = self._next_token(COUNT_PROMPT)
            try:
                count = int(token)
            except ValueError:
                count = -1
            if count >= 0:
                return count
            self.reject(f"Invalid rep count: {token!r}")

    def reject(self, message: str) -> None:
        self._tokens.clear()
        self.write(f"{message}\n")


__all__ = ["OperatorConsole", "COMMAND_PROMPT", "COUNT_PROMPT"]

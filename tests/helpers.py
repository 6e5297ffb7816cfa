from typing import Callable, Iterable, List, Optional

import numpy as np

from sbnet.data import Dataset


class ScriptedInput:
    """按顺序返回预设输入行，耗尽后抛出 EOFError。"""

    def __init__(self, lines: Iterable[str], on_line: Optional[Callable[[str], None]] = None) -> None:
        self._lines = list(lines)
        self._on_line = on_line
        self.prompts: List[str] = []

    def __call__(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if not self._lines:
            raise EOFError
        line = self._lines.pop(0)
        if self._on_line is not None:
            self._on_line(line)
        return line


def tiny_dataset(size: int = 20, features: int = 3, seed: int = 0) -> Dataset:
    rng = np.random.default_rng(seed)
    labels = np.arange(size) % 2
    values = rng.uniform(0.0, 1.0, size=(size, features)) * 0.5 + labels[:, None] * 0.5
    return Dataset(values, labels)

from __future__ import annotations

from dataclasses import dataclass
from typing import List

import numpy as np


def logistic(x):
    """Zero-centred logistic ``1 / (1 + exp(-x)) - 0.5`` with codomain (-0.5, 0.5)."""
    return 0.5 * np.tanh(0.5 * np.asarray(x, dtype=np.float64))


def derivative_from_logistic(y):
    """Derivative of :func:`logistic` expressed through its output ``y``."""
    y = np.asarray(y, dtype=np.float64)
    return (0.5 + y) * (0.5 - y)


def init_weights(feature_count: int, depth: int, rng: np.random.Generator, *, scale: float = 2.0) -> np.ndarray:
    """WeightTensor of shape ``(depth - 1, F, F)``; ``[i, j, k]`` links node k of layer i to node j of layer i+1."""
    if feature_count <= 0:
        raise ValueError("feature_count must be positive")
    if depth < 2:
        raise ValueError("depth must be at least 2")
    shape = (depth - 1, feature_count, feature_count)
    return rng.uniform(-scale, scale, size=shape) / feature_count


def zeros_like_weights(weights: np.ndarray) -> np.ndarray:
    return np.zeros_like(weights, dtype=np.float64)


@dataclass
class _ForwardCache:
    nodes: List[np.ndarray]
    score: float


def forward(weights: np.ndarray, features: np.ndarray) -> _ForwardCache:
    nodes = [np.asarray(features, dtype=np.float64)]
    for layer in weights:
        nodes.append(logistic(layer @ nodes[-1]))
    score = float(logistic(np.sum(nodes[-1]))) + 0.5
    return _ForwardCache(nodes=nodes, score=score)


def score_event(weights: np.ndarray, features: np.ndarray) -> float:
    return forward(weights, features).score


def backward(
    weights: np.ndarray,
    cache: _ForwardCache,
    label: float,
    bias: float,
    accumulator: np.ndarray,
) -> None:
    """Add the gradient contribution of one event into ``accumulator`` in place.

    ``weights`` is only read.  ``accumulator`` must be owned by the calling thread.
    """
    nodes = cache.nodes
    feature_count = nodes[0].shape[0]
    error = (label - cache.score) * bias * float(derivative_from_logistic(cache.score - 0.5))

    errors: List[np.ndarray] = [np.empty(0)] * len(nodes)
    errors[-1] = error / feature_count * derivative_from_logistic(nodes[-1])
    for i in range(len(nodes) - 2, 0, -1):
        errors[i] = (weights[i].T @ errors[i + 1]) * derivative_from_logistic(nodes[i])

    for i in range(len(nodes) - 1):
        accumulator[i] += np.outer(errors[i + 1], nodes[i])


def train_event(
    weights: np.ndarray,
    features: np.ndarray,
    label: float,
    bias: float,
    accumulator: np.ndarray,
) -> float:
    cache = forward(weights, features)
    backward(weights, cache, label, bias, accumulator)
    return cache.score


def format_weights(weights: np.ndarray) -> str:
    lines: List[str] = []
    for index, layer in enumerate(weights):
        lines.append("")
        lines.append(f"connections layer {index}:")
        for row in layer:
            lines.append("".join(f"{value: f}  " for value in row))
    return "\n".join(lines) + "\n"


__all__ = [
    "logistic",
    "derivative_from_logistic",
    "init_weights",
    "zeros_like_weights",
    "forward",
    "score_event",
    "backward",
    "train_event",
    "format_weights",
]

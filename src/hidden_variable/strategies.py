"""Randomization strategies.

A strategy is any callable `(state, draw) -> next_state`. It must be pure:
the same state and draw always give the same successor, and nothing is
remembered between calls. Anything that accumulates belongs in the state.

A strategy may also expose `check(state)`, raising StrategyExhausted when the
state has no successor. The container calls it before taking a draw.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Hashable, Mapping, Optional, Sequence, Tuple, TypeVar

import numpy as np

from .entropy import DRAW_BITS, RawEntropy, generator_from, unit_interval
from .errors import StrategyExhausted

S = TypeVar("S")

Strategy = Callable[[S, RawEntropy], S]


def pick_index(draw: RawEntropy, n: int) -> int:
    """Maps a draw onto range(n) by multiply-shift."""
    return (int(draw) * int(n)) >> DRAW_BITS


def identity(state: S, draw: RawEntropy) -> S:
    return state


def cycle(modulus: int, step: int = 1) -> Strategy[int]:
    """Advances an integer state by `step` modulo `modulus`, ignoring entropy."""
    if modulus <= 0:
        raise ValueError("modulus must be positive")

    def _next(state: int, draw: RawEntropy) -> int:
        return (int(state) + step) % modulus

    return _next


def uniform_replacement(domain: Sequence[S]) -> Strategy[S]:
    """Replaces the state with a uniform pick from a finite domain.

    The previous state is ignored, so the chance of drawing the same value
    twice in a row is 1/len(domain).
    """
    items = tuple(domain)
    if not items:
        raise ValueError("domain must be non-empty")
    n = len(items)

    def _next(state: S, draw: RawEntropy) -> S:
        return items[pick_index(draw, n)]

    return _next


def shuffle(state: Sequence[S], draw: RawEntropy) -> Tuple[S, ...]:
    """Uniform permutation of a sequence state."""
    seq = tuple(state)
    perm = generator_from(draw).permutation(len(seq))
    return tuple(seq[int(i)] for i in perm)


class MarkovChain:
    """Transition weighted by the current state's row of a weight matrix.

    Rows are normalised internally. A row whose weights sum to zero is a
    dead end: asking it for a successor raises StrategyExhausted, as does a
    state that is not one of the chain's labels.
    """

    __slots__ = ("_labels", "_index", "_cumulative", "_live")

    def __init__(self, matrix: Any, labels: Optional[Sequence[Hashable]] = None) -> None:
        m = np.asarray(matrix, dtype=float)
        if m.ndim != 2 or m.shape[0] != m.shape[1] or m.shape[0] == 0:
            raise ValueError(f"transition matrix must be square and non-empty, got shape {m.shape}")
        if not np.isfinite(m).all() or (m < 0).any():
            raise ValueError("transition weights must be finite and non-negative")

        n = m.shape[0]
        lab = tuple(range(n)) if labels is None else tuple(labels)
        if len(lab) != n:
            raise ValueError(f"expected {n} labels, got {len(lab)}")
        index = {label: i for i, label in enumerate(lab)}
        if len(index) != n:
            raise ValueError("labels must be unique")

        totals = m.sum(axis=1)
        live = totals > 0
        cum = np.zeros_like(m)
        cum[live] = np.cumsum(m[live], axis=1) / totals[live][:, None]
        cum[live, -1] = 1.0
        cum.setflags(write=False)
        live.setflags(write=False)

        self._labels = lab
        self._index = index
        self._cumulative = cum
        self._live = live

    @classmethod
    def from_mapping(cls, transitions: Mapping[Hashable, Mapping[Hashable, float]]) -> "MarkovChain":
        """Builds a chain from `{state: {successor: weight}}`."""
        labels = list(transitions)
        for row in transitions.values():
            for succ in row:
                if succ not in transitions:
                    labels.append(succ)
        labels = list(dict.fromkeys(labels))
        pos = {label: i for i, label in enumerate(labels)}
        m = np.zeros((len(labels), len(labels)), dtype=float)
        for src, row in transitions.items():
            for dst, w in row.items():
                m[pos[src], pos[dst]] = float(w)
        return cls(m, labels)

    @property
    def labels(self) -> Tuple[Hashable, ...]:
        return self._labels

    def _row(self, state: Hashable) -> int:
        try:
            i = self._index[state]
        except (KeyError, TypeError):
            raise StrategyExhausted("state is not part of the chain") from None
        if not self._live[i]:
            raise StrategyExhausted("state has no outgoing transitions")
        return i

    def check(self, state: Hashable) -> None:
        self._row(state)

    def transition_probabilities(self, state: Hashable) -> Dict[Hashable, float]:
        i = self._row(state)
        probs = np.diff(self._cumulative[i], prepend=0.0)
        return {label: float(p) for label, p in zip(self._labels, probs)}

    def __call__(self, state: Hashable, draw: RawEntropy) -> Hashable:
        i = self._row(state)
        j = int(np.searchsorted(self._cumulative[i], unit_interval(draw), side="right"))
        return self._labels[min(j, len(self._labels) - 1)]

    def __repr__(self) -> str:
        return f"MarkovChain(labels={self._labels!r})"


class Depletion:
    """Removes one uniformly chosen element from a tuple pool.

    An empty pool has no successor.
    """

    __slots__ = ()

    def check(self, state: Sequence[Any]) -> None:
        if len(state) == 0:
            raise StrategyExhausted("pool is empty")

    def __call__(self, state: Sequence[S], draw: RawEntropy) -> Tuple[S, ...]:
        self.check(state)
        pool = tuple(state)
        k = pick_index(draw, len(pool))
        return pool[:k] + pool[k + 1:]

    def __repr__(self) -> str:
        return "Depletion()"

from __future__ import annotations

import secrets
import threading
from typing import Iterable, List, Protocol, Sequence, runtime_checkable

import numpy as np

from .errors import EntropyExhausted

# A raw draw is an unsigned 64-bit integer.
RawEntropy = int

DRAW_BITS = 64
DRAW_MAX = (1 << DRAW_BITS) - 1


def unit_interval(draw: RawEntropy) -> float:
    """Maps a raw draw to a float in [0, 1) using its top 53 bits."""
    return (int(draw) >> (DRAW_BITS - 53)) * (1.0 / (1 << 53))


def generator_from(draw: RawEntropy) -> np.random.Generator:
    """Deterministic numpy Generator seeded from a single draw.

    For strategies that need more than one random value (shuffles, sampling)
    while still consuming exactly one draw per interaction.
    """
    return np.random.default_rng(int(draw))


def _check_draw(value: int) -> int:
    v = int(value)
    if v < 0 or v > DRAW_MAX:
        raise ValueError(f"entropy draw out of range: {value}")
    return v


@runtime_checkable
class EntropySource(Protocol):
    def next(self) -> RawEntropy:
        ...


class _LockedSource:
    """Serializes draws and keeps a stack of refunded draws.

    `lock` is re-entrant so a container can hold it across draw, apply and
    refund while `next()` re-acquires it.
    """

    def __init__(self) -> None:
        self.lock = threading.RLock()
        self._refunded: List[int] = []

    def _draw(self) -> RawEntropy:
        raise NotImplementedError

    def next(self) -> RawEntropy:
        with self.lock:
            if self._refunded:
                return self._refunded.pop()
            return self._draw()

    def unread(self, draw: RawEntropy) -> None:
        """Pushes back a draw that was taken by a failed interaction."""
        with self.lock:
            self._refunded.append(_check_draw(draw))


class SeededEntropySource(_LockedSource):
    """Reproducible source backed by numpy's PCG64.

    Two sources built from the same seed produce the same draw sequence.
    The sequence can be restarted with `reseed`, never rewound.
    """

    def __init__(self, seed: int | np.random.SeedSequence) -> None:
        super().__init__()
        self._seed_seq = self._as_seed_sequence(seed)
        self._rng = np.random.default_rng(self._seed_seq)

    @staticmethod
    def _as_seed_sequence(seed: int | np.random.SeedSequence) -> np.random.SeedSequence:
        if isinstance(seed, np.random.SeedSequence):
            return seed
        if isinstance(seed, bool) or not isinstance(seed, (int, np.integer)):
            raise ValueError(f"seed must be a non-negative integer, got {seed!r}")
        if int(seed) < 0:
            raise ValueError("seed must be non-negative")
        return np.random.SeedSequence(int(seed))

    @property
    def seed(self) -> int | Sequence[int]:
        return self._seed_seq.entropy

    def _draw(self) -> RawEntropy:
        return int(self._rng.integers(0, DRAW_MAX, dtype=np.uint64, endpoint=True))

    def reseed(self, seed: int | np.random.SeedSequence) -> None:
        with self.lock:
            self._seed_seq = self._as_seed_sequence(seed)
            self._rng = np.random.default_rng(self._seed_seq)
            self._refunded.clear()

    def spawn(self, n: int) -> List["SeededEntropySource"]:
        """Independent child sources, deterministic given this source's seed."""
        if n < 0:
            raise ValueError("n must be non-negative")
        with self.lock:
            children = self._seed_seq.spawn(int(n))
        return [SeededEntropySource(c) for c in children]

    def __repr__(self) -> str:
        return f"SeededEntropySource(seed={self.seed!r})"


class SystemEntropySource(_LockedSource):
    """Non-reproducible source drawing from the operating system."""

    def _draw(self) -> RawEntropy:
        return secrets.randbits(DRAW_BITS)

    def __repr__(self) -> str:
        return "SystemEntropySource()"


class SequenceEntropySource(_LockedSource):
    """Bounded source replaying a fixed list of draws.

    Raises EntropyExhausted once the list is used up.
    """

    def __init__(self, values: Iterable[int]) -> None:
        super().__init__()
        self._values = [_check_draw(v) for v in values]
        self._pos = 0

    @property
    def remaining(self) -> int:
        with self.lock:
            return len(self._values) - self._pos + len(self._refunded)

    def _draw(self) -> RawEntropy:
        if self._pos >= len(self._values):
            raise EntropyExhausted(f"sequence of {len(self._values)} draws exhausted")
        v = self._values[self._pos]
        self._pos += 1
        return v

    def __repr__(self) -> str:
        return f"SequenceEntropySource(len={len(self._values)}, pos={self._pos})"

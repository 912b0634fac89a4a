from __future__ import annotations

import threading
from contextlib import nullcontext
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Generic, List, Optional, Tuple, TypeVar

from .entropy import EntropySource, RawEntropy
from .errors import HiddenVariableError, InteractionInProgress
from .logger import InteractionLogger

S = TypeVar("S")
O = TypeVar("O")


class Phase(str, Enum):
    IDLE = "idle"
    INTERACTING = "interacting"


@dataclass(frozen=True)
class InteractionRecord(Generic[S, O]):
    """One interaction: the state it read, what it reported, the state it left."""

    state_before: S
    output: O
    state_after: S


def _describe(obj: Any) -> str:
    return getattr(obj, "__qualname__", None) or type(obj).__name__


class HiddenVariable(Generic[S, O]):
    """Container for a hidden state that is re-randomized after every interaction.

    An interaction evaluates `projection(state)`, then installs
    `strategy(state, entropy.next())` and returns the projected output. The
    whole sequence runs under a per-instance lock, so interactions on one
    instance are totally ordered and none of them reads a state another one
    has already consumed.

    If anything fails (the strategy has no successor, the entropy source is
    exhausted, or projection/strategy raise) the state is left unchanged and
    the error propagates. Strategies exposing `check(state)` are checked
    before any entropy is drawn; a draw taken by an interaction that fails
    later is returned to sources that support `unread`.

    There is deliberately no getter for the state. `peek_for_testing` and
    `interact_for_testing` exist for test assertions only.
    """

    def __init__(
        self,
        initial_state: S,
        strategy: Callable[[S, RawEntropy], S],
        projection: Callable[[S], O],
        entropy: EntropySource,
        *,
        logger: Optional[InteractionLogger] = None,
    ) -> None:
        if not callable(strategy):
            raise TypeError("strategy must be callable")
        if not callable(projection):
            raise TypeError("projection must be callable")
        if not callable(getattr(entropy, "next", None)):
            raise TypeError("entropy source must provide next()")

        self._state = initial_state
        self._strategy = strategy
        self._projection = projection
        self._entropy = entropy
        self._logger = logger
        self._lock = threading.Lock()
        self._count = 0

    @property
    def interactions(self) -> int:
        """Number of completed state transitions."""
        return self._count

    @property
    def phase(self) -> Phase:
        return Phase.INTERACTING if self._lock.locked() else Phase.IDLE

    def _refund(self, draws: List[RawEntropy]) -> None:
        unread = getattr(self._entropy, "unread", None)
        if unread is None:
            return
        # unread is a stack: push back newest first so the oldest comes out first
        for draw in reversed(draws):
            unread(draw)

    def _advance(self, state: S) -> Tuple[InteractionRecord[S, O], RawEntropy]:
        # Computes one interaction from `state` without installing anything.
        output = self._projection(state)

        check = getattr(self._strategy, "check", None)
        if check is not None:
            check(state)

        draw = self._entropy.next()
        try:
            after = self._strategy(state, draw)
        except Exception:
            self._refund([draw])
            raise
        return InteractionRecord(state, output, after), draw

    def _log_failure(self, exc: Exception) -> None:
        if self._logger is None:
            return
        # Foreign exception messages may quote the state they saw.
        message = str(exc) if isinstance(exc, HiddenVariableError) else ""
        try:
            self._logger.log(
                "interaction_failed",
                {"seq": self._count + 1, "error": type(exc).__name__, "message": message},
            )
        except Exception as log_exc:
            raise exc from log_exc

    def _run(self, n: int, blocking: bool) -> List[InteractionRecord[S, O]]:
        """Runs `n` interactions under one hold of the lock, all or nothing.

        Nothing is installed until every step has been computed and logged.
        On failure every draw taken is refunded and the state is untouched.
        """
        if not self._lock.acquire(blocking=blocking):
            raise InteractionInProgress("another interaction is in progress on this instance")
        try:
            source_lock = getattr(self._entropy, "lock", None)
            with source_lock if source_lock is not None else nullcontext():
                records: List[InteractionRecord[S, O]] = []
                draws: List[RawEntropy] = []
                state = self._state
                try:
                    for _ in range(n):
                        rec, draw = self._advance(state)
                        records.append(rec)
                        draws.append(draw)
                        state = rec.state_after
                    if self._logger is not None and records:
                        self._logger.log_many(
                            "interaction",
                            [{"seq": self._count + i + 1, "output": r.output} for i, r in enumerate(records)],
                        )
                except Exception as exc:
                    self._refund(draws)
                    self._log_failure(exc)
                    raise

            self._state = state
            self._count += len(records)
            return records
        finally:
            self._lock.release()

    def interact(self, *, blocking: bool = True) -> O:
        """Observe the hidden variable, then perturb it.

        With `blocking=False`, raises InteractionInProgress instead of waiting
        for a concurrent interaction on this instance to finish.
        """
        return self._run(1, blocking)[0].output

    def interact_many(self, n: int, *, blocking: bool = True) -> List[O]:
        """`n` consecutive interactions as one atomic batch.

        No other caller interleaves. If any step fails, none of the batch is
        committed: the state and the entropy source are as before the call.
        """
        if n < 0:
            raise ValueError("n must be non-negative")
        return [r.output for r in self._run(n, blocking)]

    def peek_for_testing(self) -> S:
        """Current hidden state, without mutating it.

        Breaks the hidden-state guarantee. Test assertions only; production
        code must go through `interact`.
        """
        with self._lock:
            return self._state

    def interact_for_testing(self, *, blocking: bool = True) -> InteractionRecord[S, O]:
        """Like `interact`, but also exposes the states before and after.

        Breaks the hidden-state guarantee. Test assertions only.
        """
        return self._run(1, blocking)[0]

    def __repr__(self) -> str:
        return (
            f"HiddenVariable(strategy={_describe(self._strategy)}, "
            f"projection={_describe(self._projection)}, "
            f"entropy={self._entropy!r}, interactions={self._count})"
        )

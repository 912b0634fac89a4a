"""Dispenser: a hidden permutation handed out as frozen hands.

A Dispenser holds a shuffled permutation of ``range(length)``. Every call to
``make_hand`` freezes the current permutation into a Hand bound to a deck of
elements, then reshuffles. Two hands may or may not pick the same element for
the same index, but one hand always picks the same element for a given index:

    >>> from hidden_variable import Dispenser, SeededEntropySource
    >>> deck = ["a", "b", "c", "d", "e", "f"]
    >>> dispenser = Dispenser(len(deck), SeededEntropySource(7))
    >>> hand = dispenser.make_hand(deck)
    >>> hand.choose(1) == hand.choose(1)
    True
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Optional, Sequence, Tuple, TypeVar

from .container import HiddenVariable
from .entropy import EntropySource
from .logger import InteractionLogger
from .projections import identity
from .strategies import shuffle

T = TypeVar("T")


@dataclass(frozen=True, init=False, repr=False)
class Hand(Generic[T]):
    """A frozen set of choices paired with the elements they index.

    With choices ``(2, 3, 1, 0, 4)`` and elements ``"abcde"``, ``choose(1)``
    follows choice 3 and returns ``"d"``. Lengths are not checked against
    each other; ``choose`` returns ``default`` when either lookup misses.
    """

    _choices: Tuple[int, ...]
    _elements: Tuple[T, ...]

    def __init__(self, choices: Sequence[int], elements: Sequence[T]) -> None:
        object.__setattr__(self, "_choices", tuple(int(c) for c in choices))
        object.__setattr__(self, "_elements", tuple(elements))

    def choose(self, idx: int, default: Optional[T] = None) -> Optional[T]:
        if not 0 <= idx < len(self._choices):
            return default
        c = self._choices[idx]
        if not 0 <= c < len(self._elements):
            return default
        return self._elements[c]

    def __len__(self) -> int:
        return len(self._choices)

    def __repr__(self) -> str:
        return f"Hand(len={len(self._choices)})"


class Dispenser:
    """Hidden permutation that reshuffles after each hand it dispenses."""

    def __init__(self, length: int, entropy: EntropySource, *, logger: Optional[InteractionLogger] = None) -> None:
        if length < 0:
            raise ValueError("length must be non-negative")
        self._length = int(length)
        initial = shuffle(range(self._length), entropy.next())
        self._hidden: HiddenVariable[Tuple[int, ...], Tuple[int, ...]] = HiddenVariable(
            initial, shuffle, identity, entropy, logger=logger
        )

    def __len__(self) -> int:
        return self._length

    def make_hand(self, deck: Sequence[T]) -> Hand[T]:
        """Hand over `deck`, after checking every choice lands on an element.

        Raises ValueError when ``len(deck) != len(self)``; no shuffle happens
        in that case.
        """
        if len(deck) != self._length:
            raise ValueError(f"deck has {len(deck)} elements, dispenser expects {self._length}")
        return self.make_hand_unchecked(deck)

    def make_hand_unchecked(self, deck: Sequence[T]) -> Hand[T]:
        return Hand(self._hidden.interact(), deck)

    def peek_for_testing(self) -> Tuple[int, ...]:
        """Current permutation. Breaks the hidden-state guarantee; tests only."""
        return self._hidden.peek_for_testing()

    def __repr__(self) -> str:
        return f"Dispenser(len={self._length}, hands={self._hidden.interactions})"

"""Projections: pure `state -> output` callables evaluated before mutation."""

from __future__ import annotations

from typing import Any, Callable, Hashable, Mapping, Sequence, TypeVar

S = TypeVar("S")
O = TypeVar("O")

Projection = Callable[[S], O]


def identity(state: S) -> S:
    return state


def lookup(table: Mapping[Hashable, O] | Sequence[O]) -> Projection[Any, O]:
    """Reports `table[state]`, e.g. a label or a reward attached to each state."""
    frozen = dict(table) if isinstance(table, Mapping) else tuple(table)

    def _project(state: Any) -> O:
        return frozen[state]

    return _project


def item(key: Any) -> Projection[Any, Any]:
    """Reports one component of a sequence or mapping state."""

    def _project(state: Any) -> Any:
        return state[key]

    return _project


def length(state: Sequence[Any]) -> int:
    return len(state)

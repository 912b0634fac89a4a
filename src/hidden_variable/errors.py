from __future__ import annotations


class HiddenVariableError(RuntimeError):
    """Base class for failures raised by an interaction."""


class StrategyExhausted(HiddenVariableError):
    """The strategy has no valid successor for the current state."""


class EntropyExhausted(HiddenVariableError):
    """A bounded entropy source cannot supply another draw."""


class InteractionInProgress(HiddenVariableError):
    """Raised in fail-fast mode when another interaction holds the instance."""

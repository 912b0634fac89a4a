"""hidden_variable

Objects whose observable output depends on an internal state that is never
exposed and is re-randomized after every interaction.

The package exposes:
- HiddenVariable: the container and its atomic `interact()` protocol
- entropy sources: seeded (reproducible), system, and bounded sequences
- pluggable strategies and projections (plain callables)
- Dispenser / Hand: a hidden permutation handed out as frozen hands
- YAML configuration, JSONL interaction log, and trace analysis helpers
"""

from .config import HiddenVariableConfig, build_hidden_variable, load_config
from .container import HiddenVariable, InteractionRecord, Phase
from .dispenser import Dispenser, Hand
from .entropy import (
    EntropySource,
    SeededEntropySource,
    SequenceEntropySource,
    SystemEntropySource,
    generator_from,
    unit_interval,
)
from .errors import EntropyExhausted, HiddenVariableError, InteractionInProgress, StrategyExhausted
from .logger import InteractionLogger
from .strategies import Depletion, MarkovChain, cycle, shuffle, uniform_replacement

__version__ = "0.1.0"

__all__ = [
    "HiddenVariable",
    "InteractionRecord",
    "Phase",
    "Dispenser",
    "Hand",
    "EntropySource",
    "SeededEntropySource",
    "SystemEntropySource",
    "SequenceEntropySource",
    "unit_interval",
    "generator_from",
    "HiddenVariableError",
    "StrategyExhausted",
    "EntropyExhausted",
    "InteractionInProgress",
    "InteractionLogger",
    "cycle",
    "uniform_replacement",
    "shuffle",
    "MarkovChain",
    "Depletion",
    "HiddenVariableConfig",
    "load_config",
    "build_hidden_variable",
]

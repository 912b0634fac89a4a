from __future__ import annotations

from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional

import yaml

from . import projections, strategies
from .container import HiddenVariable
from .entropy import EntropySource, SeededEntropySource, SystemEntropySource
from .logger import InteractionLogger


def _markov(params: Mapping[str, Any]) -> strategies.MarkovChain:
    if "transitions" in params:
        return strategies.MarkovChain.from_mapping(params["transitions"])
    return strategies.MarkovChain(params["matrix"], params.get("labels"))


STRATEGIES: Dict[str, Callable[[Mapping[str, Any]], Callable[..., Any]]] = {
    "identity": lambda p: strategies.identity,
    "cycle": lambda p: strategies.cycle(int(p["modulus"]), int(p.get("step", 1))),
    "uniform": lambda p: strategies.uniform_replacement(p["domain"]),
    "markov": _markov,
    "shuffle": lambda p: strategies.shuffle,
    "depletion": lambda p: strategies.Depletion(),
}

PROJECTIONS: Dict[str, Callable[[Mapping[str, Any]], Callable[..., Any]]] = {
    "identity": lambda p: projections.identity,
    "lookup": lambda p: projections.lookup(p["table"]),
    "item": lambda p: projections.item(p["key"]),
    "length": lambda p: projections.length,
}

ENTROPY_KINDS = ("seeded", "system")


@dataclass(frozen=True)
class HiddenVariableConfig:
    """Declarative description of one hidden variable.

    Nothing nondeterministic is implied: a seeded source needs an explicit
    seed, and a system source must be asked for by name.
    """

    strategy: str
    initial_state: Any
    entropy: str
    seed: Optional[int] = None
    projection: str = "identity"
    strategy_params: Dict[str, Any] = field(default_factory=dict)
    projection_params: Dict[str, Any] = field(default_factory=dict)
    log_dir: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def validate(self) -> None:
        if self.strategy not in STRATEGIES:
            raise ValueError(f"Unknown strategy: {self.strategy}")
        if self.projection not in PROJECTIONS:
            raise ValueError(f"Unknown projection: {self.projection}")
        if self.entropy not in ENTROPY_KINDS:
            raise ValueError(f"entropy must be one of {ENTROPY_KINDS}, got {self.entropy!r}")
        if self.entropy == "seeded":
            if self.seed is None:
                raise ValueError("entropy 'seeded' requires an explicit seed")
            if isinstance(self.seed, bool) or not isinstance(self.seed, int) or self.seed < 0:
                raise ValueError("seed must be a non-negative integer")
        elif self.seed is not None:
            raise ValueError("seed is only meaningful with entropy 'seeded'")


def _initial_state(config: HiddenVariableConfig) -> Any:
    # YAML has no tuples; sequence states are stored as tuples so they stay hashable.
    if isinstance(config.initial_state, list):
        return tuple(config.initial_state)
    return config.initial_state


def config_from_mapping(raw: Mapping[str, Any]) -> HiddenVariableConfig:
    missing = [k for k in ("strategy", "initial_state", "entropy") if k not in raw]
    if missing:
        raise ValueError(f"Missing required keys: {missing}")
    cfg = HiddenVariableConfig(
        strategy=str(raw["strategy"]),
        initial_state=raw["initial_state"],
        entropy=str(raw["entropy"]),
        seed=raw.get("seed"),
        projection=str(raw.get("projection", "identity")),
        strategy_params=dict(raw.get("strategy_params") or {}),
        projection_params=dict(raw.get("projection_params") or {}),
        log_dir=None if raw.get("log_dir") is None else str(raw["log_dir"]),
    )
    cfg.validate()
    return cfg


def load_config(yaml_path: str | Path) -> HiddenVariableConfig:
    p = Path(yaml_path)
    raw = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    if not isinstance(raw, dict):
        raise ValueError(f"{p}: expected a mapping at top level")
    return config_from_mapping(raw)


def build_entropy(config: HiddenVariableConfig) -> EntropySource:
    if config.entropy == "seeded":
        return SeededEntropySource(config.seed)
    return SystemEntropySource()


def build_hidden_variable(config: HiddenVariableConfig) -> HiddenVariable[Any, Any]:
    config.validate()
    try:
        strategy = STRATEGIES[config.strategy](config.strategy_params)
        projection = PROJECTIONS[config.projection](config.projection_params)
    except KeyError as exc:
        raise ValueError(f"Missing parameter {exc.args[0]!r} for {config.strategy}/{config.projection}") from None
    logger = InteractionLogger(config.log_dir) if config.log_dir else None
    return HiddenVariable(_initial_state(config), strategy, projection, build_entropy(config), logger=logger)

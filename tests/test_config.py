from pathlib import Path

import pytest

from hidden_variable.config import HiddenVariableConfig, build_hidden_variable, config_from_mapping, load_config
from hidden_variable.errors import StrategyExhausted


def _write(tmp_path: Path, text: str) -> Path:
    p = tmp_path / "hidden.yaml"
    p.write_text(text, encoding="utf-8")
    return p


def test_cycle_config_runs_the_wrap_scenario(tmp_path):
    cfg = load_config(
        _write(
            tmp_path,
            "strategy: cycle\n"
            "strategy_params: {modulus: 5}\n"
            "initial_state: 0\n"
            "entropy: seeded\n"
            "seed: 1\n",
        )
    )
    hv = build_hidden_variable(cfg)
    assert hv.interact_many(6) == [0, 1, 2, 3, 4, 0]


def test_markov_config_with_lookup_projection_and_log(tmp_path):
    cfg = load_config(
        _write(
            tmp_path,
            "strategy: markov\n"
            "strategy_params:\n"
            "  transitions:\n"
            "    calm: {calm: 3, storm: 1}\n"
            "    storm: {calm: 1, storm: 1}\n"
            "projection: lookup\n"
            "projection_params:\n"
            "  table: {calm: 0.0, storm: 1.0}\n"
            "initial_state: calm\n"
            "entropy: seeded\n"
            "seed: 2024\n"
            f"log_dir: {tmp_path / 'logs'}\n",
        )
    )
    outputs = build_hidden_variable(cfg).interact_many(20)
    assert set(outputs) <= {0.0, 1.0}
    assert outputs[0] == 0.0
    log = tmp_path / "logs" / "interaction_log.jsonl"
    assert len(log.read_text(encoding="utf-8").splitlines()) == 20


def test_same_config_replays():
    raw = {
        "strategy": "uniform",
        "strategy_params": {"domain": [1, 2, 3, 4, 5]},
        "initial_state": 1,
        "entropy": "seeded",
        "seed": 7,
    }
    a = build_hidden_variable(config_from_mapping(raw)).interact_many(50)
    b = build_hidden_variable(config_from_mapping(raw)).interact_many(50)
    assert a == b


def test_list_states_become_tuples():
    cfg = config_from_mapping(
        {"strategy": "depletion", "projection": "length", "initial_state": ["x", "y"], "entropy": "system"}
    )
    hv = build_hidden_variable(cfg)
    assert hv.interact_many(2) == [2, 1]
    assert hv.peek_for_testing() == ()
    with pytest.raises(StrategyExhausted):
        hv.interact()
    assert "SystemEntropySource" in repr(hv)


def test_seeded_entropy_requires_explicit_seed():
    with pytest.raises(ValueError, match="explicit seed"):
        config_from_mapping({"strategy": "identity", "initial_state": 0, "entropy": "seeded"})


def test_validation_errors():
    base = {"strategy": "identity", "initial_state": 0, "entropy": "seeded", "seed": 1}
    with pytest.raises(ValueError, match="Unknown strategy"):
        config_from_mapping({**base, "strategy": "teleport"})
    with pytest.raises(ValueError, match="Unknown projection"):
        config_from_mapping({**base, "projection": "xray"})
    with pytest.raises(ValueError):
        config_from_mapping({**base, "entropy": "cosmic"})
    with pytest.raises(ValueError):
        config_from_mapping({**base, "seed": -3})
    with pytest.raises(ValueError):
        config_from_mapping({"strategy": "identity", "initial_state": 0, "entropy": "system", "seed": 5})
    with pytest.raises(ValueError, match="Missing required keys"):
        config_from_mapping({"strategy": "identity"})


def test_missing_strategy_parameter_is_reported():
    cfg = HiddenVariableConfig(strategy="cycle", initial_state=0, entropy="seeded", seed=1)
    with pytest.raises(ValueError, match="modulus"):
        build_hidden_variable(cfg)


def test_to_dict_round_trips_fields():
    cfg = HiddenVariableConfig(strategy="cycle", initial_state=0, entropy="seeded", seed=3, strategy_params={"modulus": 4})
    d = cfg.to_dict()
    assert d["strategy"] == "cycle" and d["seed"] == 3 and d["strategy_params"] == {"modulus": 4}


@pytest.mark.parametrize("seed", [1.5, "7", True])
def test_seed_must_already_be_an_integer(seed):
    with pytest.raises(ValueError, match="non-negative integer"):
        config_from_mapping({"strategy": "identity", "initial_state": 0, "entropy": "seeded", "seed": seed})


@pytest.mark.parametrize("seed_text", ["1.5", '"7"'])
def test_yaml_seed_is_not_coerced(tmp_path, seed_text):
    path = _write(tmp_path, f"strategy: identity\ninitial_state: 0\nentropy: seeded\nseed: {seed_text}\n")
    with pytest.raises(ValueError, match="non-negative integer"):
        load_config(path)

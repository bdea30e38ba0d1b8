"""Tests for configuration loading and validation."""

from __future__ import annotations

import pytest

from counter_sim.config import DEFAULTS, apply_overrides, load_cfg, validate_cfg
from counter_sim.errors import ConfigurationError
from counter_sim.simulation import run_replication


def test_baseline_matches_reference_constants():
    cfg = load_cfg()
    assert cfg["capacities"] == {"front_line": 4, "preparation": 1}
    assert cfg["service_means"] == {
        "inter_arrival": 7.0,
        "assignment_service": 5.0,
        "preparation_service": 10.0,
        "settlement_service": 2.0,
    }
    assert cfg["sim"]["stop_minutes"] == 1500
    validate_cfg(cfg)


def test_yaml_overrides_defaults(tmp_path):
    path = tmp_path / "small.yaml"
    path.write_text("capacities:\n  preparation: 3\nsim:\n  seed: 9\n")
    cfg = load_cfg(str(path))
    assert cfg["capacities"] == {"front_line": 4, "preparation": 3}
    assert cfg["sim"]["seed"] == 9
    assert cfg["sim"]["stop_minutes"] == DEFAULTS["sim"]["stop_minutes"]


def test_missing_file_gives_defaults(tmp_path):
    assert load_cfg(str(tmp_path / "absent.yaml")) == DEFAULTS


def test_overrides_do_not_mutate_base():
    new = apply_overrides(DEFAULTS, {"capacities": {"front_line": 9}})
    assert new["capacities"]["front_line"] == 9
    assert DEFAULTS["capacities"]["front_line"] == 4


@pytest.mark.parametrize("overrides", [
    {"capacities": {"front_line": 0}},
    {"capacities": {"preparation": -2}},
    {"capacities": {"preparation": 1.5}},
    {"service_means": {"inter_arrival": 0.0}},
    {"service_means": {"settlement_service": -2.0}},
    {"service_means": {"preparation_service": None}},
    {"sim": {"stop_minutes": -1}},
    {"sim": {"trace_window": [50, 10]}},
    {"metrics": {"histogram": {"lower": 10, "upper": 5}}},
])
def test_invalid_config_rejected_before_running(overrides):
    cfg = apply_overrides(DEFAULTS, overrides)
    with pytest.raises(ConfigurationError):
        validate_cfg(cfg)
    with pytest.raises(ConfigurationError):
        run_replication(cfg)

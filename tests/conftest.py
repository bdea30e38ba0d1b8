"""Shared fixtures for the counter_sim test suite."""

from __future__ import annotations

import pytest

from counter_sim.config import DEFAULTS, apply_overrides


class ConstantVariates:
    """Variate source returning a fixed delay per stream."""

    def __init__(self, delays):
        self.delays = dict(delays)
        self.draws = {name: 0 for name in self.delays}

    def sample(self, name):
        self.draws[name] += 1
        return self.delays[name]


HAND_DELAYS = {
    "inter_arrival": 10.0,
    "assignment_service": 5.0,
    "preparation_service": 8.0,
    "settlement_service": 2.0,
}


@pytest.fixture
def cfg():
    return apply_overrides(DEFAULTS, {"sim": {"trace_window": None, "debug_window": None}})


@pytest.fixture
def single_server_cfg(cfg):
    return apply_overrides(cfg, {
        "capacities": {"front_line": 1, "preparation": 1},
        "sim": {"stop_minutes": 45.0, "record_history": True},
    })


@pytest.fixture
def hand_variates():
    return ConstantVariates(HAND_DELAYS)

# Copyright (c) 2025
# MIT License
# -----------------------------------------------------------------------------
# distributions.py
# -----------------------------------------------------------------------------
# Purpose:
#   Named exponential variate streams for inter-arrival and service times.
#
# Design notes:
#   - One random.Random per stream, seeded from (seed, stream name), so adding
#     draws to one stream never shifts another (common random numbers across
#     scenarios).
#   - The source is passed into the router; nothing touches the global PRNG.
#
# Usage:
#   rv = VariateSource.from_cfg(cfg); rv.sample("inter_arrival")
# -----------------------------------------------------------------------------

from __future__ import annotations
import random
from typing import Dict

from .errors import ConfigurationError, InvariantViolation

STREAMS = ("inter_arrival", "assignment_service", "preparation_service", "settlement_service")

class VariateSource:
    def __init__(self, means: Dict[str, float], seed: int = 0):
        for name in STREAMS:
            mean = means.get(name)
            if mean is None or not isinstance(mean, (int, float)) or not mean > 0:
                raise ConfigurationError(f"stream {name!r} needs a positive mean, got {mean!r}")
        self.means = {name: float(means[name]) for name in STREAMS}
        self.seed = seed
        self._rngs = {name: random.Random(f"{seed}:{name}") for name in STREAMS}

    @classmethod
    def from_cfg(cls, cfg: dict) -> "VariateSource":
        return cls(cfg["service_means"], seed=cfg["sim"].get("seed", 0))

    def sample(self, name: str) -> float:
        """Draw one exponential variate (minutes) from the named stream."""
        x = self._rngs[name].expovariate(1.0 / self.means[name])
        if x < 0:
            raise InvariantViolation(f"stream {name!r} produced negative draw {x}")
        return x

# Copyright (c) 2025
# MIT License
# -----------------------------------------------------------------------------
# simulation.py
# -----------------------------------------------------------------------------
# Purpose:
#   Simulate a single replication: validate config, build pools, router and
#   variate streams, start the customer generator, run the event loop, and
#   return metrics.
#
# Design notes:
#   - Replications and scenario sweeps live outside, in experiments/.
#   - A variate source may be injected (tests use constant delays).
#
# Usage:
#   from counter_sim.simulation import run_replication
#   results = run_replication(cfg)
# -----------------------------------------------------------------------------

from __future__ import annotations
from typing import Dict, Tuple

from .arrivals import schedule_arrivals
from .config import validate_cfg
from .distributions import VariateSource
from .metrics import Metrics
from .network import Router, make_state
from .queues import Env
from .trace import Tracer

def build_model(cfg: Dict, variates=None) -> Tuple[Env, Router]:
    validate_cfg(cfg)
    state = make_state(cfg)
    M = Metrics(cfg)
    rv = variates if variates is not None else VariateSource.from_cfg(cfg)
    router = Router(cfg, state, rv, M, Tracer.from_cfg(cfg))
    env = Env(record_history=bool(cfg["sim"].get("record_history", False)))
    schedule_arrivals(env, router)
    return env, router

def run_replication(cfg: Dict, variates=None) -> Dict:
    env, router = build_model(cfg, variates)
    T_end = float(cfg["sim"]["stop_minutes"])
    env.run_until(T_end)

    res = router.M.summary(T_end)
    res["events_dispatched"] = env.dispatched
    res["events_discarded"] = env.pending
    return res

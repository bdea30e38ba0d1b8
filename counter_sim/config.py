# Copyright (c) 2025
# MIT License
# -----------------------------------------------------------------------------
# config.py
# -----------------------------------------------------------------------------
# Purpose:
#   Load and validate the run configuration (YAML overlaid on DEFAULTS).
#
# Design notes:
#   - Configs are plain nested dicts so scenarios can override any key.
#   - All times are in minutes.
#
# Usage:
#   cfg = load_cfg(); validate_cfg(cfg)
# -----------------------------------------------------------------------------

from __future__ import annotations
import copy, os
from typing import Dict, Optional

import yaml

from .distributions import STREAMS
from .errors import ConfigurationError

ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
BASELINE_PATH = os.path.join(ROOT, "config", "baseline.yaml")

DEFAULTS: Dict = {
    "sim": {
        "seed": 42,
        "stop_minutes": 1500.0,
        "trace_window": [0.0, 100.0],
        "debug_window": [0.0, 50.0],
        "record_history": False,
        "log_level": "INFO",
    },
    "capacities": {
        "front_line": 4,
        "preparation": 1,
    },
    "service_means": {
        "inter_arrival": 7.0,
        "assignment_service": 5.0,
        "preparation_service": 10.0,
        "settlement_service": 2.0,
    },
    "metrics": {
        "histogram": {"lower": 0.0, "upper": 16.0, "cells": 10},
    },
    "experiments": {
        "replications": 1,
        "confidence_level": 0.95,
        "plot_histogram": False,
    },
}

def apply_overrides(cfg: Dict, overrides: Dict) -> Dict:
    """Apply overrides (recursive merge) on top of a config; returns a copy."""
    new = copy.deepcopy(cfg)

    def _merge(dst: Dict, src: Dict):
        for key, val in src.items():
            if isinstance(val, dict) and isinstance(dst.get(key), dict):
                _merge(dst[key], val)
            else:
                dst[key] = copy.deepcopy(val)

    _merge(new, overrides or {})
    return new

def load_cfg(path: Optional[str] = None) -> Dict:
    path = path or BASELINE_PATH
    if not os.path.exists(path):
        return copy.deepcopy(DEFAULTS)
    with open(path, "r") as f:
        raw = yaml.safe_load(f) or {}
    if not isinstance(raw, dict):
        raise ConfigurationError(f"{path}: top level must be a mapping")
    return apply_overrides(DEFAULTS, raw)

def _check_window(name: str, bounds):
    if bounds is None:
        return
    if not isinstance(bounds, (list, tuple)) or len(bounds) != 2 or not bounds[0] <= bounds[1]:
        raise ConfigurationError(f"sim.{name} must be [start, end] with start <= end, got {bounds!r}")

def validate_cfg(cfg: Dict) -> Dict:
    """Raise ConfigurationError for anything that would make a run meaningless."""
    for section in ("sim", "capacities", "service_means"):
        if not isinstance(cfg.get(section), dict):
            raise ConfigurationError(f"missing config section {section!r}")
    for pool in ("front_line", "preparation"):
        size = cfg["capacities"].get(pool)
        if isinstance(size, bool) or not isinstance(size, int) or size <= 0:
            raise ConfigurationError(f"capacities.{pool} must be a positive integer, got {size!r}")
    for stream in STREAMS:
        mean = cfg["service_means"].get(stream)
        if isinstance(mean, bool) or not isinstance(mean, (int, float)) or not mean > 0:
            raise ConfigurationError(f"service_means.{stream} must be > 0, got {mean!r}")
    stop = cfg["sim"].get("stop_minutes")
    if isinstance(stop, bool) or not isinstance(stop, (int, float)) or not stop >= 0:
        raise ConfigurationError(f"sim.stop_minutes must be >= 0, got {stop!r}")
    _check_window("trace_window", cfg["sim"].get("trace_window"))
    _check_window("debug_window", cfg["sim"].get("debug_window"))
    hcfg = cfg.get("metrics", {}).get("histogram", {})
    if hcfg and not hcfg.get("upper", 16.0) > hcfg.get("lower", 0.0):
        raise ConfigurationError("metrics.histogram.upper must exceed lower")
    return cfg

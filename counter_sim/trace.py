# Copyright (c) 2025
# MIT License
# -----------------------------------------------------------------------------
# trace.py
# -----------------------------------------------------------------------------
# Purpose:
#   Human-readable progress notes (arrivals, assignments, queue lengths),
#   limited to configured windows of simulated time.
#
# Design notes:
#   - note() logs at INFO inside the trace window, debug() at DEBUG inside the
#     debug window. With no windows the tracer is a no-op.
#   - Purely observational; nothing here feeds back into the model.
#
# Usage:
#   tracer = Tracer.from_cfg(cfg); tracer.note(env.t, "%s arrives", cust)
# -----------------------------------------------------------------------------

from __future__ import annotations
import logging
from typing import Optional, Sequence, Tuple

log = logging.getLogger(__name__)

Window = Optional[Tuple[float, float]]

def _window(bounds: Optional[Sequence[float]]) -> Window:
    if bounds is None:
        return None
    lo, hi = bounds
    return float(lo), float(hi)

class Tracer:
    def __init__(self, trace_window: Window = None, debug_window: Window = None,
                 logger: Optional[logging.Logger] = None):
        self.trace_window = _window(trace_window)
        self.debug_window = _window(debug_window)
        self.log = logger or log

    @classmethod
    def from_cfg(cls, cfg: dict) -> "Tracer":
        sim = cfg.get("sim", {})
        return cls(sim.get("trace_window"), sim.get("debug_window"))

    @staticmethod
    def _inside(window: Window, t: float) -> bool:
        return window is not None and window[0] <= t <= window[1]

    def note(self, t: float, msg: str, *args):
        if self._inside(self.trace_window, t):
            self.log.info("[%8.3f] " + msg, t, *args)

    def debug(self, t: float, msg: str, *args):
        if self._inside(self.debug_window, t):
            self.log.debug("[%8.3f] " + msg, t, *args)

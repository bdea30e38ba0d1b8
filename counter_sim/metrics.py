# Copyright (c) 2025
# MIT License
# -----------------------------------------------------------------------------
# metrics.py
# -----------------------------------------------------------------------------
# Purpose:
#   Collect and summarize KPIs: the customer wait-time histogram, per-queue
#   waits, throughput, pool utilization and queue lengths.
#
# Design notes:
#   - Keep side-effect methods (note_*) for instrumentation from the router.
#   - Append-only: nothing recorded is ever removed during a run.
#   - Summaries return JSON-serializable dicts for easy tabulation.
#
# Usage:
#   M = Metrics(cfg); M.record(12.5); M.summary(T_end)
# -----------------------------------------------------------------------------

from __future__ import annotations
import math
from collections import defaultdict
from typing import Any, Dict, List, Tuple

from .errors import ConfigurationError, InvariantViolation

class Histogram:
    """Equal-width cells over [lower, upper) plus underflow and overflow cells.

    counts[0] is the underflow cell (< lower), counts[-1] the overflow cell
    (>= upper); counts[1..cells] are the regular cells.
    """
    def __init__(self, lower: float = 0.0, upper: float = 16.0, cells: int = 10):
        if isinstance(cells, bool) or not isinstance(cells, int) or cells <= 0:
            raise ConfigurationError(f"histogram needs a positive integer cell count, got {cells!r}")
        if not upper > lower:
            raise ConfigurationError(f"histogram upper bound {upper} must exceed lower bound {lower}")
        self.lower = float(lower)
        self.upper = float(upper)
        self.cells = cells
        self.width = (self.upper - self.lower) / cells
        self.counts = [0] * (cells + 2)
        self.n = 0
        self.total = 0.0
        self.total_sq = 0.0
        self.min = math.inf
        self.max = -math.inf

    def update(self, x: float):
        if x < self.lower:
            idx = 0
        elif x >= self.upper:
            idx = self.cells + 1
        else:
            idx = min(int((x - self.lower) / self.width), self.cells - 1) + 1
        self.counts[idx] += 1
        self.n += 1
        self.total += x
        self.total_sq += x * x
        self.min = min(self.min, x)
        self.max = max(self.max, x)

    @property
    def mean(self) -> float:
        return self.total / self.n if self.n else 0.0

    @property
    def stdev(self) -> float:
        if self.n < 2:
            return 0.0
        var = (self.total_sq - self.n * self.mean ** 2) / (self.n - 1)
        return math.sqrt(max(var, 0.0))

    def bounds(self, idx: int) -> Tuple[float, float]:
        if idx == 0:
            return -math.inf, self.lower
        if idx == self.cells + 1:
            return self.upper, math.inf
        lo = self.lower + (idx - 1) * self.width
        return lo, lo + self.width

    def rows(self) -> List[Dict[str, float]]:
        """One dict per cell: lower, upper, count."""
        out = []
        for idx, c in enumerate(self.counts):
            lo, hi = self.bounds(idx)
            out.append({"lower": lo, "upper": hi, "count": c})
        return out


class Metrics:
    def __init__(self, cfg: dict):
        self.cfg = cfg
        hcfg = cfg.get("metrics", {}).get("histogram", {})
        self.hist = Histogram(hcfg.get("lower", 0.0), hcfg.get("upper", 16.0), hcfg.get("cells", 10))
        self.arrivals = 0
        self.orders_placed = 0
        self.orders_ready = 0
        self.queue_wait_totals = defaultdict(float)    # queue name -> accumulated minutes in line
        self.queue_wait_counts = defaultdict(int)      # queue name -> requesters that left the line
        # (cid, wait_start, t_assigned, wait_end, minutes spent in wait queues)
        self.lifecycles: List[Tuple[int, float, float, float, float]] = []
        self.pools: Dict[str, Any] = {}
        self.queues: Dict[str, Any] = {}

    def attach(self, pools: Dict[str, Any], queues: Dict[str, Any]):
        """Attach pools and wait queues so summary() can report on them."""
        self.pools = pools
        self.queues = queues

    def record(self, sample: float):
        """Add one wait-time sample; NaN or negative samples are defects."""
        if math.isnan(sample):
            raise InvariantViolation("wait-time sample is NaN (wait start or end never set)")
        if sample < 0:
            raise InvariantViolation(f"negative wait-time sample {sample}")
        self.hist.update(sample)

    def note_arrival(self, customer, t: float):
        self.arrivals += 1

    def note_order_placed(self, order, t: float):
        self.orders_placed += 1

    def note_order_ready(self, order, t: float):
        self.orders_ready += 1

    def note_queue_exit(self, queue_name: str, waited: float):
        self.queue_wait_totals[queue_name] += waited
        self.queue_wait_counts[queue_name] += 1

    def note_settled(self, customer, order):
        self.record(customer.wait_time)
        queued = sum(customer.queue_waits.values()) + sum(order.queue_waits.values())
        self.lifecycles.append(
            (customer.cid, customer.wait_start, customer.t_assigned, customer.wait_end, queued))

    def summary(self, horizon: float) -> Dict:
        avg_queue_waits = {}
        for name, q in self.queues.items():
            count = self.queue_wait_counts.get(name, 0)
            avg_queue_waits[name] = self.queue_wait_totals[name] / count if count else 0.0
        return {
            "horizon_minutes": horizon,
            "arrivals": self.arrivals,
            "served": self.hist.n,
            "orders_placed": self.orders_placed,
            "orders_ready": self.orders_ready,
            "wait_count": self.hist.n,
            "wait_mean_minutes": self.hist.mean,
            "wait_stdev_minutes": self.hist.stdev,
            "wait_min_minutes": self.hist.min if self.hist.n else 0.0,
            "wait_max_minutes": self.hist.max if self.hist.n else 0.0,
            "wait_histogram": self.hist.rows(),
            "avg_queue_wait_minutes": avg_queue_waits,
            "queue_entries": {name: q.total_entries for name, q in self.queues.items()},
            "max_queue_length": {name: q.max_len for name, q in self.queues.items()},
            "queue_length_at_end": {name: len(q) for name, q in self.queues.items()},
            "pool_utilization": {name: p.utilization(horizon) for name, p in self.pools.items()},
            "pool_assignments": {name: p.acquisitions for name, p in self.pools.items()},
        }

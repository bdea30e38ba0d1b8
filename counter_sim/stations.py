# Copyright (c) 2025
# MIT License
# -----------------------------------------------------------------------------
# stations.py
# -----------------------------------------------------------------------------
# Purpose:
#   Fixed-size resource pools (front-line servers, preparation servers),
#   partitioned into idle and busy members.
#
# Design notes:
#   - Every server id is in exactly one of idle/busy; check() verifies it.
#   - Which idle server acquire() returns is not part of the contract.
#   - Busy server-minutes are integrated on every change for utilization.
#
# Usage:
#   from counter_sim.stations import ResourcePool, make_pools
# -----------------------------------------------------------------------------

from __future__ import annotations
from collections import deque
from typing import Any, Dict, Optional

from .entities import Server
from .errors import ConfigurationError, InvariantViolation

FRONT_LINE = "front_line"
PREPARATION = "preparation"

class ResourcePool:
    """Set of identical servers of one kind.

    Parameters
    ----------
    name : str
        Pool name, also stamped on each Server.
    size : int
        Number of servers; fixed for the run.
    """
    def __init__(self, name: str, size: int):
        if isinstance(size, bool) or not isinstance(size, int) or size <= 0:
            raise ConfigurationError(f"pool {name!r} needs a positive integer size, got {size!r}")
        self.name = name
        self.size = size
        self.servers = [Server(name, i) for i in range(size)]
        self.idle: deque = deque(self.servers)
        self.busy: Dict[int, Any] = {}        # server id -> requester being served
        self.busy_time: float = 0.0
        self.last_change: float = 0.0
        self._prev_busy: int = 0
        self.acquisitions: int = 0

    @property
    def idle_count(self) -> int:
        return len(self.idle)

    @property
    def busy_count(self) -> int:
        return len(self.busy)

    def acquire(self, now: float, requester: Any) -> Optional[Server]:
        """Bind an idle server to requester, or return None if all are busy."""
        if not self.idle:
            return None
        server = self.idle.popleft()
        self.busy[server.sid] = requester
        self.acquisitions += 1
        self._mark_busy(now)
        return server

    def holder(self, server: Server) -> Any:
        self._require_busy(server)
        return self.busy[server.sid]

    def rebind(self, now: float, server: Server, requester: Any):
        """Hand a busy server straight to the next requester; it stays busy."""
        self._require_busy(server)
        self.busy[server.sid] = requester
        self.acquisitions += 1
        self._mark_busy(now)

    def release(self, now: float, server: Server):
        self._require_busy(server)
        del self.busy[server.sid]
        self.idle.append(server)
        self._mark_busy(now)

    def check(self):
        idle_ids = {s.sid for s in self.idle}
        if len(idle_ids) != len(self.idle) or idle_ids & self.busy.keys() \
                or len(self.idle) + len(self.busy) != self.size:
            raise InvariantViolation(
                f"pool {self.name}: idle={sorted(idle_ids)} busy={sorted(self.busy)} size={self.size}")

    def utilization(self, horizon: float) -> float:
        self._mark_busy(max(horizon, self.last_change))
        denom = horizon * self.size
        return self.busy_time / denom if denom > 0 else 0.0

    def _require_busy(self, server: Server):
        if server.pool != self.name or server.sid not in self.busy:
            raise InvariantViolation(f"{server} is not held in pool {self.name}")

    def _mark_busy(self, now: float):
        # Integrate busy server-minutes by tracking how many servers were active
        dt = now - self.last_change
        if dt > 0:
            self.busy_time += self._prev_busy * dt
        self.last_change = now
        self._prev_busy = len(self.busy)

def make_pools(cfg: dict) -> Dict[str, ResourcePool]:
    """
    Create both pools from config['capacities'].

    Returns
    -------
    dict[str, ResourcePool]
        Mapping pool name -> ResourcePool.
    """
    caps = cfg["capacities"]
    return {
        FRONT_LINE: ResourcePool(FRONT_LINE, caps.get(FRONT_LINE)),
        PREPARATION: ResourcePool(PREPARATION, caps.get(PREPARATION)),
    }

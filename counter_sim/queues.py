# Copyright (c) 2025
# MIT License
# -----------------------------------------------------------------------------
# queues.py
# -----------------------------------------------------------------------------
# Purpose:
#   Minimal discrete-event primitives: Event, Followup, Env (the scheduler)
#   and WaitQueue, the FIFO line a requester joins when no server is idle.
#
# Design notes:
#   - The FEL is a min-heap keyed by (time, sequence); the sequence number is
#     assigned when schedule() is called, so same-time events fire in the
#     order they were scheduled.
#   - Env knows nothing about the model. A handler is any callable taking
#     (env, **data) and returning an iterable of Followup records, which the
#     loop schedules in order before the next pop.
#
# Usage:
#   from counter_sim.queues import Env, Followup, WaitQueue
# -----------------------------------------------------------------------------

from __future__ import annotations
import heapq, logging
from collections import deque
from typing import Any, Callable, Dict, Iterable, List, NamedTuple, Optional, Tuple

from .errors import InvalidDelayError, InvariantViolation

log = logging.getLogger(__name__)

Handler = Callable[..., Optional[Iterable["Followup"]]]


class Event:
    """Entry of the Future Event List (FEL)."""
    __slots__ = ("t", "seq", "kind", "handler", "data")
    def __init__(self, t: float, seq: int, kind: str, handler: Handler, data: dict):
        self.t = t; self.seq = seq; self.kind = kind
        self.handler = handler; self.data = data
    def __lt__(self, other: "Event"):
        return (self.t, self.seq) < (other.t, other.seq)
    def __repr__(self):
        return f"Event(t={self.t:.3f}, seq={self.seq}, kind={self.kind!r})"


class Followup(NamedTuple):
    """An event a handler wants scheduled `delay` minutes from now."""
    delay: float
    kind: str
    handler: Handler
    data: dict


class Env:
    """Simulation environment holding the clock and the FEL.

    Attributes
    ----------
    t : float
        Simulation time (minutes). Never decreases.
    FEL : list[Event]
        Min-heap of scheduled events.
    history : list[tuple[float, str]] or None
        (time, kind) of every dispatched event when record_history is set.
    """
    def __init__(self, record_history: bool = False):
        self.t: float = 0.0
        self.FEL: List[Event] = []
        self._seq: int = 0
        self.dispatched: int = 0
        self.history: Optional[List[Tuple[float, str]]] = [] if record_history else None

    def schedule(self, delay: float, kind: str, handler: Handler, data: Optional[dict] = None) -> Event:
        if not delay >= 0.0:
            raise InvalidDelayError(f"cannot schedule {kind!r} with delay {delay!r}")
        ev = Event(self.t + delay, self._seq, kind, handler, data or {})
        self._seq += 1
        heapq.heappush(self.FEL, ev)
        return ev

    @property
    def pending(self) -> int:
        return len(self.FEL)

    def peek(self) -> Optional[Event]:
        return self.FEL[0] if self.FEL else None

    def step(self) -> Event:
        """Pop the earliest event, advance the clock and dispatch it."""
        ev = heapq.heappop(self.FEL)
        if ev.t < self.t:
            raise InvariantViolation(f"clock would move backward: {self.t} -> {ev.t} ({ev!r})")
        self.t = ev.t
        self.dispatched += 1
        if self.history is not None:
            self.history.append((ev.t, ev.kind))
        log.debug("t=%.3f dispatch %s #%d", ev.t, ev.kind, ev.seq)
        followups = ev.handler(self, **ev.data)
        for fu in followups or ():
            self.schedule(fu.delay, fu.kind, fu.handler, fu.data)
        return ev

    def run_until(self, T_end: float):
        # Events due exactly at T_end still fire; anything later stays unexecuted.
        while self.FEL and self.FEL[0].t <= T_end:
            self.step()


class WaitQueue:
    """FIFO line of requesters waiting for a server of one pool.

    Entry times are kept here rather than on the requester so pop() can
    hand back the time spent in line.
    """
    def __init__(self, name: str):
        self.name = name
        self._items: deque = deque()
        self.max_len: int = 0
        self.total_entries: int = 0

    def __len__(self) -> int:
        return len(self._items)

    def __bool__(self) -> bool:
        return bool(self._items)

    def __iter__(self):
        return (r for r, _ in self._items)

    def __contains__(self, requester: Any) -> bool:
        return any(r is requester for r, _ in self._items)

    def push(self, now: float, requester: Any):
        self._items.append((requester, now))
        self.total_entries += 1
        self.max_len = max(self.max_len, len(self._items))

    def pop(self, now: float) -> Tuple[Any, float]:
        """Remove the head requester; return it with its time in line."""
        requester, t_in = self._items.popleft()
        waited = now - t_in
        queue_waits: Dict[str, float] = getattr(requester, "queue_waits", None)
        if queue_waits is not None:
            queue_waits[self.name] = queue_waits.get(self.name, 0.0) + waited
        return requester, waited

# Copyright (c) 2025
# MIT License
# -----------------------------------------------------------------------------
# entities.py
# -----------------------------------------------------------------------------
# Purpose:
#   Entity definitions for the counter-service DES: Server, Customer, Order.
#   Plain records; all behavior lives in the router and the pools.
#
# Design notes:
#   - A Server is either a front-line server (attends, then settles) or a
#     preparation server (cooks). Pools hand them out; entities never do.
#   - An Order links one customer to the front-line server that took it and
#     lives until settlement.
#
# Usage:
#   from counter_sim.entities import Server, Customer, Order
# -----------------------------------------------------------------------------

from __future__ import annotations
import math
from dataclasses import dataclass, field
from typing import Dict, Optional

@dataclass(frozen=True)
class Server:
    pool: str                        # 'front_line' | 'preparation'
    sid: int

    def __str__(self):
        return f"{self.pool}#{self.sid}"

@dataclass
class Customer:
    cid: int
    wait_start: Optional[float] = None
    wait_end: Optional[float] = None
    t_assigned: Optional[float] = None
    queue_waits: Dict[str, float] = field(default_factory=dict)   # time spent per wait queue

    @property
    def wait_time(self) -> float:
        """Minutes from arrival to settlement; NaN while either end is unset."""
        if self.wait_start is None or self.wait_end is None:
            return math.nan
        return self.wait_end - self.wait_start

    def __str__(self):
        return f"Customer#{self.cid}"

@dataclass
class Order:
    oid: int
    server: Server                   # front-line server holding the customer
    customer: Customer
    t_placed: Optional[float] = None
    t_ready: Optional[float] = None
    chef: Optional[Server] = None
    settled: bool = False
    queue_waits: Dict[str, float] = field(default_factory=dict)

    def __str__(self):
        return f"Order#{self.oid}"

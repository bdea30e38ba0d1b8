# Copyright (c) 2025
# MIT License
# -----------------------------------------------------------------------------
# arrivals.py
# -----------------------------------------------------------------------------
# Purpose:
#   Generate exogenous arrivals: a self-rescheduling generator that creates
#   one customer per firing and hands it to the router at the same instant.
#
# Design notes:
#   - The generator never stops on its own; the run ends at the scheduler's
#     stop time and the pending next firing is discarded.
#   - The arrival follow-up is returned before the next generator firing, so
#     its sequence number is lower.
#
# Usage:
#   schedule_arrivals(env, router)
# -----------------------------------------------------------------------------

from __future__ import annotations
from typing import List

from .queues import Followup

class CustomerGenerator:
    def __init__(self, router):
        self.router = router
        self.generated = 0

    def fire(self, env) -> List[Followup]:
        cust = self.router.new_customer()
        self.generated += 1
        gap = self.router.rv.sample("inter_arrival")
        return [
            Followup(0.0, "arrival", self.router.on_arrival, {"customer": cust}),
            Followup(gap, "generate", self.fire, {}),
        ]

def schedule_arrivals(env, router) -> CustomerGenerator:
    gen = CustomerGenerator(router)
    env.schedule(0.0, "generate", gen.fire)
    return gen

"""
experiments/scenarios.py

Holds scenario definitions (decision variables) to sweep during experiments.
Add staffing levels or service-time changes here as config overrides.
"""

from __future__ import annotations

BASELINE = {
    "name": "baseline",
    "overrides": {},  # override config keys here per scenario
}

# The kitchen is the bottleneck at baseline (mean 10 min per order vs one
# arrival every 7 min); a second cook makes the system stable.
TWO_COOKS = {
    "name": "two_cooks",
    "overrides": {
        "capacities": {"preparation": 2},
    },
}

TWO_COOKS_THREE_SERVERS = {
    "name": "two_cooks_three_servers",
    "overrides": {
        "capacities": {"preparation": 2, "front_line": 3},
    },
}

SCENARIOS = [
    BASELINE,
    TWO_COOKS,
    TWO_COOKS_THREE_SERVERS,
]

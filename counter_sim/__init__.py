"""
counter_sim package initializer.

This package contains the discrete-event core (scheduler, wait queues and
resource pools), the stage handlers, variate streams and statistics used by
the counter-service queueing model: customers are attended by front-line
servers, orders are cooked by preparation servers, and the front-line server
settles the bill before taking the next customer.
"""
__all__ = [
    "errors", "config", "entities", "queues", "stations", "network",
    "arrivals", "distributions", "metrics", "trace", "simulation",
]

# Copyright (c) 2025
# MIT License
# -----------------------------------------------------------------------------
# errors.py
# -----------------------------------------------------------------------------
# Purpose:
#   Exception types raised by the counter-service model.
#
# Design notes:
#   - ConfigurationError is raised before any event fires.
#   - InvariantViolation marks a defect in the core; it is never caught there.
# -----------------------------------------------------------------------------

from __future__ import annotations


class ConfigurationError(ValueError):
    """Invalid pool sizes, stream means, run length or windows."""


class InvariantViolation(AssertionError):
    """A core invariant was broken (time went backward, double release, ...)."""


class InvalidDelayError(InvariantViolation):
    """An event was scheduled with a negative delay."""

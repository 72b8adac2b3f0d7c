"""Drift comparison over normalized configurations."""

from __future__ import annotations

from collections.abc import Mapping

from ngxdrift.models.drift import DriftVerdict
from ngxdrift.observability.logging import get_logger

_log = get_logger("drift.comparator")


def compare(configs: Mapping[str, str]) -> DriftVerdict:
    """Check that every pod carries the same normalized configuration.

    Equality is transitive, so checking each entry against the first one in
    iteration order is equivalent to checking every pair.  The reported pair
    is (first pod, first pod that differs from it); which pod comes first is
    decided by the caller's ordering of *configs*.
    """
    items = iter(configs.items())
    first = next(items, None)
    if first is None:
        return DriftVerdict(pods_checked=0)

    reference_pod, reference = first
    for pod, config in items:
        if config != reference:
            _log.info("drift_detected", pod=pod, reference_pod=reference_pod)
            return DriftVerdict(pods_checked=len(configs), pair=(pod, reference_pod))

    return DriftVerdict(pods_checked=len(configs))

"""Ordering of process samples."""

from collections.abc import Iterable

from lightlimit.models import ProcessSample


def rank(samples: Iterable[ProcessSample]) -> tuple[ProcessSample, ...]:
    """
    Order samples by CPU utilization, highest first.

    The sort is stable: samples with equal CPU keep their enumeration order,
    which is ascending PID.
    """
    return tuple(sorted(samples, key=lambda s: s.cpu_percent, reverse=True))

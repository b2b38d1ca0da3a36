"""Latency statistics over per-host best times."""

import logging
import math
from typing import Iterable, List, Optional

from models import HostResult, RunStatistics

logger = logging.getLogger(__name__)


def _round_half_up(value: float) -> int:
    # round() is half-to-even; rank indices must round 0.5 up.
    return int(math.floor(value + 0.5))


def percentile(sorted_values: List[float], p: float) -> float:
    """
    Nearest-rank percentile of an ascending list.

    The rank index is round(p / 100 * (n - 1)), clamped to the list
    bounds. No interpolation between neighbours is done.

    Examples:
        >>> percentile([10.0, 20.0, 30.0, 40.0], 50)
        30.0
        >>> percentile([10.0, 20.0, 30.0, 40.0], 95)
        40.0
    """
    if not sorted_values:
        return 0.0

    last = len(sorted_values) - 1
    idx = _round_half_up(p / 100.0 * last)
    return sorted_values[min(max(idx, 0), last)]


def calculate_statistics(
    results: Iterable[HostResult],
    pings_per_host: int,
    timeout_secs: float,
) -> RunStatistics:
    """
    Aggregate host results into run statistics.

    Latency fields cover responsive hosts only and are all 0.0 when
    no host answered.
    """
    results = list(results)
    times: List[Optional[float]] = [r.best_time_ms for r in results]
    successful = sorted(t for t in times if t is not None)
    non_responsive = len(times) - len(successful)

    if not successful:
        return RunStatistics(
            non_responsive_nodes=non_responsive,
            total_hosts=len(results),
            pings_per_host=pings_per_host,
            timeout_secs=timeout_secs,
        )

    stats = RunStatistics(
        avg_ms=sum(successful) / len(successful),
        median_ms=percentile(successful, 50.0),
        p95_ms=percentile(successful, 95.0),
        p99_ms=percentile(successful, 99.0),
        max_ms=successful[-1],
        non_responsive_nodes=non_responsive,
        total_hosts=len(results),
        pings_per_host=pings_per_host,
        timeout_secs=timeout_secs,
    )
    logger.debug(
        "Statistics over %d responsive hosts: avg=%.2fms p95=%.2fms max=%.2fms",
        len(successful),
        stats.avg_ms,
        stats.p95_ms,
        stats.max_ms,
    )
    return stats

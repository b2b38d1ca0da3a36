"""
Data Models for Rollping.

Defines per-attempt probe records, per-host results and
the aggregate run statistics.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class AttemptOutcome(str, Enum):
    """Outcome of a single echo request."""
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    TIMED_OUT = "timed_out"


@dataclass
class ProbeAttempt:
    """One echo request/reply exchange with a host."""

    sequence: int
    outcome: AttemptOutcome
    rtt_ms: Optional[float] = None
    error: Optional[str] = None


@dataclass
class HostResult:
    """Reduction of all probe attempts made against one host."""

    host: str
    address: Optional[str] = None
    best_time_ms: Optional[float] = None
    attempts: List[ProbeAttempt] = field(default_factory=list)

    @property
    def responsive(self) -> bool:
        """True if at least one attempt succeeded."""
        return self.best_time_ms is not None

    @property
    def successful(self) -> int:
        return sum(1 for a in self.attempts if a.outcome == AttemptOutcome.SUCCEEDED)

    def record_success(self, sequence: int, rtt_ms: float) -> None:
        """Record a successful attempt and fold it into the best time."""
        self.attempts.append(
            ProbeAttempt(sequence=sequence, outcome=AttemptOutcome.SUCCEEDED, rtt_ms=rtt_ms)
        )
        if self.best_time_ms is None or rtt_ms < self.best_time_ms:
            self.best_time_ms = rtt_ms

    def record_failure(self, sequence: int, error: str) -> None:
        """Record an attempt that failed in transport."""
        self.attempts.append(
            ProbeAttempt(sequence=sequence, outcome=AttemptOutcome.FAILED, error=error)
        )

    def record_timeout(self, sequence: int) -> None:
        """Record an attempt that received no reply in time."""
        self.attempts.append(ProbeAttempt(sequence=sequence, outcome=AttemptOutcome.TIMED_OUT))


@dataclass(frozen=True)
class RunStatistics:
    """Aggregate latency statistics over one run."""
    avg_ms: float = 0.0
    median_ms: float = 0.0
    p95_ms: float = 0.0
    p99_ms: float = 0.0
    max_ms: float = 0.0
    non_responsive_nodes: int = 0
    total_hosts: int = 0
    pings_per_host: int = 0
    timeout_secs: float = 0.0

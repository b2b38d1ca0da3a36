"""
Report Schemas.

Pydantic models for the JSON record written to stdout at the
end of a run.
"""

from dataclasses import asdict
from typing import Optional

from pydantic import BaseModel

from models import RunStatistics


class Location(BaseModel):
    """Geolocation of the machine running the probes."""
    country: Optional[str] = None
    country_code: Optional[str] = None
    city: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None


class Report(BaseModel):
    """Schema for the final run report."""
    avg_ms: float
    median_ms: float
    p95_ms: float
    p99_ms: float
    max_ms: float
    non_responsive_nodes: int
    total_hosts: int
    pings_per_host: int
    timeout_secs: float
    location: Optional[Location] = None

    def to_json(self) -> str:
        """Serialize to a single compact JSON line, omitting an absent location."""
        exclude = {"location"} if self.location is None else None
        return self.model_dump_json(exclude=exclude)


def assemble_report(stats: RunStatistics, location: Optional[Location] = None) -> Report:
    """Merge run statistics with an optional location."""
    return Report(**asdict(stats), location=location)

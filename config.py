"""
Rollping Configuration.

Centralized configuration with environment variable overrides.
"""

import os
from dataclasses import dataclass, field
from typing import List


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


@dataclass
class RollpingConfig:
    """Configuration for a rollping run."""

    # Probing
    count: int = int(os.getenv("ROLLPING_COUNT", "3"))
    timeout_secs: float = float(os.getenv("ROLLPING_TIMEOUT", "2.0"))
    privileged: bool = _env_bool("ROLLPING_PRIVILEGED")
    concurrency: int = int(os.getenv("ROLLPING_CONCURRENCY", "0"))

    # GeoIP
    geoip_cache_dir: str = os.getenv("GEOIP_CACHE_DIR", "/tmp/rollping")
    geoip_db_filename: str = os.getenv("GEOIP_DB_FILENAME", "GeoLite2-City.mmdb")
    geoip_db_url: str = os.getenv(
        "GEOIP_DB_URL",
        "https://github.com/P3TERX/GeoLite.mmdb/raw/download/GeoLite2-City.mmdb",
    )
    public_ip_services: List[str] = field(
        default_factory=lambda: [
            s.strip()
            for s in os.getenv(
                "PUBLIC_IP_SERVICES",
                "https://api.ipify.org,https://icanhazip.com,https://ifconfig.me/ip",
            ).split(",")
            if s.strip()
        ]
    )
    http_timeout: float = float(os.getenv("HTTP_TIMEOUT", "10"))

    # Logging
    log_level: str = os.getenv("ROLLPING_LOG_LEVEL", "")

    @property
    def geoip_db_path(self) -> str:
        return os.path.join(self.geoip_cache_dir, self.geoip_db_filename)


config = RollpingConfig()

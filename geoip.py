"""
GeoIP Lookup Module.

Best-effort geolocation of the probing machine: detects the public
IP address over HTTP and looks it up in a locally cached MaxMind
GeoLite2 City database, downloading the database on first use.
"""

import asyncio
import ipaddress
import logging
import os
from typing import List, Optional, Union

import aiohttp
import maxminddb

from config import RollpingConfig, config as default_config
from exceptions import GeoIpError
from report import Location

logger = logging.getLogger(__name__)

IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]


class GeoIpClient:
    """
    MaxMind database reader with download-on-first-use.

    The client stays usable when initialization fails; it simply
    reports itself unavailable and every lookup returns None.
    """

    def __init__(
        self,
        cache_dir: str = None,
        filename: str = None,
        db_url: str = None,
        http_timeout: float = None,
    ):
        self.cache_dir = cache_dir or default_config.geoip_cache_dir
        self.filename = filename or default_config.geoip_db_filename
        self.db_url = db_url or default_config.geoip_db_url
        self.http_timeout = http_timeout or default_config.http_timeout
        self._reader = None

    @property
    def db_path(self) -> str:
        return os.path.join(self.cache_dir, self.filename)

    @property
    def is_available(self) -> bool:
        return self._reader is not None

    async def initialize(self) -> bool:
        """
        Open the cached database, downloading it first if missing.

        Returns:
            True if the database is ready for lookups.
        """
        try:
            if not os.path.exists(self.db_path):
                logger.info("GeoIP database not found, downloading from mirror...")
                await self._download_database()
            else:
                logger.debug("Loading existing GeoIP database from %s", self.db_path)
            self._reader = maxminddb.open_database(self.db_path)
        except (
            GeoIpError,
            aiohttp.ClientError,
            asyncio.TimeoutError,
            OSError,
            ValueError,
            maxminddb.InvalidDatabaseError,
        ) as e:
            logger.warning("Failed to initialize GeoIP: %s. Geolocation will be disabled.", e)
            self._reader = None
            return False

        logger.info("GeoIP database loaded successfully")
        return True

    async def _download_database(self) -> None:
        """Fetch the database and move it into place atomically."""
        os.makedirs(self.cache_dir, exist_ok=True)
        tmp_path = self.db_path + ".part"

        logger.debug("Downloading GeoIP database from %s", self.db_url)
        timeout = aiohttp.ClientTimeout(total=None, sock_connect=self.http_timeout,
                                        sock_read=self.http_timeout)
        async with aiohttp.ClientSession(timeout=timeout) as session:
            async with session.get(self.db_url) as response:
                if response.status != 200:
                    raise GeoIpError(
                        f"Failed to download GeoIP database: HTTP {response.status}"
                    )
                with open(tmp_path, "wb") as f:
                    async for chunk in response.content.iter_chunked(64 * 1024):
                        f.write(chunk)

        os.replace(tmp_path, self.db_path)
        logger.info("GeoIP database downloaded successfully to %s", self.db_path)

    def lookup(self, ip: Union[str, IPAddress]) -> Optional[Location]:
        """
        Look up the location of an IP address.

        Args:
            ip: Address to look up.

        Returns:
            Location with whatever detail the database holds, or None.
        """
        if self._reader is None:
            return None

        try:
            record = self._reader.get(str(ip))
        except (ValueError, maxminddb.InvalidDatabaseError) as e:
            logger.debug("GeoIP lookup failed for %s: %s", ip, e)
            return None

        if not record:
            logger.debug("GeoIP lookup for %s returned no data", ip)
            return None

        country = record.get("country") or {}
        city = record.get("city") or {}
        coords = record.get("location") or {}

        location = Location(
            country=(country.get("names") or {}).get("en"),
            country_code=country.get("iso_code"),
            city=(city.get("names") or {}).get("en"),
            latitude=coords.get("latitude"),
            longitude=coords.get("longitude"),
        )
        logger.debug(
            "GeoIP lookup for %s: city=%s, country=%s", ip, location.city, location.country
        )
        return location

    def close(self) -> None:
        if self._reader is not None:
            self._reader.close()
            self._reader = None


async def get_public_ip(session: aiohttp.ClientSession, services: List[str]) -> IPAddress:
    """
    Detect the public IP address of this machine.

    Services are tried in order; the first response body that parses
    as an IP address wins.

    Raises:
        GeoIpError: If no service returned a usable address.
    """
    logger.debug("Detecting public IP address...")

    for service in services:
        try:
            async with session.get(service) as response:
                text = await response.text()
        except (aiohttp.ClientError, asyncio.TimeoutError, UnicodeDecodeError) as e:
            logger.debug("Failed to get IP from %s: %s", service, e)
            continue

        try:
            ip = ipaddress.ip_address(text.strip())
        except ValueError:
            logger.debug("Unparseable response from %s: %r", service, text[:64])
            continue

        logger.debug("Detected public IP: %s (from %s)", ip, service)
        return ip

    raise GeoIpError("Failed to detect public IP address from any service")


async def locate(
    cfg: Optional[RollpingConfig] = None,
    client: Optional[GeoIpClient] = None,
) -> Optional[Location]:
    """
    Geolocate the current machine.

    Never raises; any failure is logged and yields None.
    """
    cfg = cfg or default_config
    client = client or GeoIpClient(
        cache_dir=cfg.geoip_cache_dir,
        filename=cfg.geoip_db_filename,
        db_url=cfg.geoip_db_url,
        http_timeout=cfg.http_timeout,
    )

    try:
        if not client.is_available and not await client.initialize():
            return None

        timeout = aiohttp.ClientTimeout(total=cfg.http_timeout)
        async with aiohttp.ClientSession(timeout=timeout) as session:
            ip = await get_public_ip(session, cfg.public_ip_services)
        logger.info("Detected public IP: %s", ip)
        location = client.lookup(ip)
    except GeoIpError as e:
        logger.warning("Failed to detect public IP: %s", e)
        return None
    except Exception as e:
        logger.warning("Geolocation failed: %s", e, exc_info=True)
        return None
    finally:
        client.close()

    if location is not None:
        logger.info(
            "Current location: %s, %s, %s",
            location.city or "Unknown",
            location.country or "Unknown",
            location.country_code or "??",
        )
    return location

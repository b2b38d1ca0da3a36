"""
Concurrent Host Pinger.

Runs a sequential series of echo requests against each host and
fans out one such runner per host with asyncio.
"""

import asyncio
import logging
import random
from typing import Awaitable, Callable, List, Optional

from icmplib import AsyncSocket

from config import config
from exceptions import ClientError, ProbeError, ProbeTimeoutError, ResolutionError
from models import HostResult
from prober import Prober, open_socket, resolve

logger = logging.getLogger(__name__)

Resolver = Callable[[str], Awaitable[str]]
SocketFactory = Callable[[str, bool], AsyncSocket]


class Pinger:
    """
    Asynchronous multi-host pinger.

    Each host gets its own socket and a random identifier; attempts
    against one host are strictly sequential while hosts run
    concurrently.
    """

    def __init__(
        self,
        count: int = None,
        timeout: float = None,
        privileged: bool = None,
        concurrency: int = None,
        prober: Optional[Prober] = None,
        resolver: Optional[Resolver] = None,
        socket_factory: Optional[SocketFactory] = None,
    ):
        self.count = config.count if count is None else count
        self.timeout = config.timeout_secs if timeout is None else timeout
        self.privileged = config.privileged if privileged is None else privileged
        self.concurrency = config.concurrency if concurrency is None else concurrency
        self.prober = prober or Prober()
        self.resolver = resolver or resolve
        self.socket_factory = socket_factory or open_socket

        if self.count < 0:
            raise ValueError("count must be non-negative")
        if self.timeout <= 0:
            raise ValueError("timeout must be positive")

    async def ping_host(self, host: str) -> HostResult:
        """
        Ping a single host `count` times and keep the best round trip.

        Args:
            host: Host name or literal address, used verbatim.

        Returns:
            HostResult whose best_time_ms is None if nothing answered.
        """
        logger.debug("Pinging host: %s (%d times)", host, self.count)
        result = HostResult(host=host)

        try:
            result.address = await self.resolver(host)
        except ResolutionError as e:
            logger.error("%s", e)
            return result

        try:
            sock = self.socket_factory(result.address, self.privileged)
        except ClientError as e:
            logger.error("Host %s: %s", host, e)
            return result

        identifier = random.randint(0, 0xFFFF)

        with sock:
            for seq in range(self.count):
                try:
                    rtt = await asyncio.wait_for(
                        self.prober.probe(sock, result.address, identifier, seq, self.timeout),
                        timeout=self.timeout,
                    )
                except (asyncio.TimeoutError, ProbeTimeoutError):
                    logger.warning("Host %s ping #%d timed out", host, seq + 1)
                    result.record_timeout(seq)
                    continue
                except ProbeError as e:
                    logger.warning("Host %s ping #%d failed: %s", host, seq + 1, e)
                    result.record_failure(seq, str(e))
                    continue

                rtt_ms = rtt * 1000.0
                logger.debug("Host %s ping #%d: %.2fms", host, seq + 1, rtt_ms)
                result.record_success(seq, rtt_ms)

        if result.responsive:
            logger.info(
                "Host %s best time: %.2fms (%d/%d successful)",
                host,
                result.best_time_ms,
                result.successful,
                self.count,
            )
        else:
            logger.warning("Host %s failed all pings", host)

        return result

    async def ping_hosts(self, hosts: List[str]) -> List[HostResult]:
        """
        Ping all hosts concurrently.

        A host whose task raises is logged and reported as
        non-responsive; it never aborts the other hosts.

        Args:
            hosts: Hosts to probe.

        Returns:
            One HostResult per input host.
        """
        semaphore = asyncio.Semaphore(self.concurrency) if self.concurrency > 0 else None

        async def bounded_ping(host: str) -> HostResult:
            if semaphore is None:
                return await self.ping_host(host)
            async with semaphore:
                return await self.ping_host(host)

        outcomes = await asyncio.gather(
            *[bounded_ping(h) for h in hosts],
            return_exceptions=True,
        )

        results = []
        for host, outcome in zip(hosts, outcomes):
            if isinstance(outcome, BaseException):
                logger.error(
                    "Task for host %s crashed: %r", host, outcome, exc_info=outcome
                )
                results.append(HostResult(host=host))
            else:
                results.append(outcome)

        logger.info(
            "Pinged %d hosts, %d responsive",
            len(results),
            sum(1 for r in results if r.responsive),
        )
        return results

"""
ICMP Echo Prober.

Sends single echo requests over icmplib sockets and measures
the round-trip time of the matching reply.
"""

import logging
from typing import Optional

from icmplib import (
    AsyncSocket,
    ICMPLibError,
    ICMPRequest,
    ICMPv4Socket,
    ICMPv6Socket,
    NameLookupError,
    TimeoutExceeded,
    async_resolve,
    is_ipv6_address,
)

from exceptions import ClientError, ProbeError, ProbeTimeoutError, ResolutionError

logger = logging.getLogger(__name__)

PAYLOAD = bytes(8)


async def resolve(host: str) -> str:
    """
    Resolve a host name or literal address to a single address.

    Raises:
        ResolutionError: If the name cannot be resolved.
    """
    try:
        addresses = await async_resolve(host)
    except NameLookupError as e:
        raise ResolutionError(host, str(e)) from e
    except (OSError, UnicodeError) as e:
        raise ResolutionError(host, str(e)) from e

    if not addresses:
        raise ResolutionError(host)
    return addresses[0]


def open_socket(address: str, privileged: bool = False) -> AsyncSocket:
    """
    Create an asynchronous ICMP socket suited to the address family.

    Raises:
        ClientError: If the socket cannot be created (e.g. missing privileges).
    """
    socket_cls = ICMPv6Socket if is_ipv6_address(address) else ICMPv4Socket
    try:
        return AsyncSocket(socket_cls(privileged=privileged))
    except (ICMPLibError, OSError) as e:
        raise ClientError(address, str(e)) from e


class Prober:
    """
    Issues one echo request per call.

    Replies are correlated by the socket on the (identifier, sequence)
    pair, so a late reply to an earlier attempt is never taken as the
    answer to a later one.
    """

    def __init__(self, payload: bytes = PAYLOAD):
        self.payload = payload

    async def probe(
        self,
        sock: AsyncSocket,
        address: str,
        identifier: int,
        sequence: int,
        timeout: Optional[float] = 2.0,
    ) -> float:
        """
        Send one echo request and wait for its reply.

        Args:
            sock: Open ICMP socket owned by the calling host runner.
            address: Already resolved destination address.
            identifier: 16-bit request identifier.
            sequence: 16-bit sequence number of this attempt.
            timeout: Seconds to wait for the reply.

        Returns:
            Round-trip time in seconds.

        Raises:
            ProbeTimeoutError: If no reply arrived in time.
            ProbeError: On any other transport or ICMP error reply.
        """
        request = ICMPRequest(
            destination=address,
            id=identifier & 0xFFFF,
            sequence=sequence & 0xFFFF,
            payload=self.payload,
        )

        try:
            sock.send(request)
            reply = await sock.receive(request, timeout)
            reply.raise_for_status()
        except TimeoutExceeded as e:
            raise ProbeTimeoutError(address, sequence, timeout) from e
        except (ICMPLibError, OSError) as e:
            raise ProbeError(address, sequence, str(e)) from e

        return reply.time - request.time

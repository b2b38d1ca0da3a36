"""Exception hierarchy for rollping."""

from typing import Optional


class RollpingError(Exception):
    """Base class for all rollping errors."""


class ResolutionError(RollpingError):
    """A host name could not be resolved to an address."""

    def __init__(self, host: str, reason: Optional[str] = None):
        self.host = host
        message = f"Failed to resolve host: {host}"
        if reason:
            message += f" ({reason})"
        super().__init__(message)


class ClientError(RollpingError):
    """The ICMP socket for a host could not be created."""

    def __init__(self, host: str, reason: str):
        self.host = host
        super().__init__(f"Failed to create ping client for {host}: {reason}")


class ProbeError(RollpingError):
    """A single echo request failed in transport."""

    def __init__(self, address: str, sequence: int, reason: str):
        self.address = address
        self.sequence = sequence
        super().__init__(f"Ping to {address} (seq={sequence}) failed: {reason}")


class ProbeTimeoutError(ProbeError):
    """No echo reply arrived within the attempt timeout."""

    def __init__(self, address: str, sequence: int, timeout: float):
        self.timeout = timeout
        super().__init__(address, sequence, f"timed out after {timeout}s")


class GeoIpError(RollpingError):
    """Geolocation could not be performed."""


class InputError(RollpingError):
    """The host list could not be read."""

"""Shared fakes for pinger and CLI tests."""

import asyncio

import pytest

from exceptions import ClientError, ResolutionError

HANG = object()


class FakeSocket:
    """Stand-in for icmplib.AsyncSocket that only tracks its lifecycle."""

    def __init__(self, address, privileged):
        self.address = address
        self.privileged = privileged
        self.closed = False

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.closed = True


class ScriptedProber:
    """
    Prober whose outcomes are scripted per address and sequence.

    An outcome is an RTT in seconds, an exception to raise, or HANG
    to block past any reasonable timeout.
    """

    def __init__(self, script, delay: float = 0.0):
        self.script = script
        self.delay = delay
        self.calls = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def probe(self, sock, address, identifier, sequence, timeout=2.0):
        self.calls.append((address, identifier, sequence))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            outcomes = self.script.get(address, [])
            outcome = outcomes[sequence] if sequence < len(outcomes) else HANG
            if outcome is HANG:
                await asyncio.sleep(60)
            if isinstance(outcome, BaseException):
                raise outcome
            return outcome
        finally:
            self.in_flight -= 1


def make_resolver(addresses):
    """Resolver backed by a dict; unknown hosts fail to resolve."""

    async def resolver(host):
        if host not in addresses:
            raise ResolutionError(host, "Name or service not known")
        return addresses[host]

    return resolver


class SocketRecorder:
    """Socket factory that records every socket it hands out."""

    def __init__(self, refuse=()):
        self.refuse = set(refuse)
        self.sockets = []

    def __call__(self, address, privileged):
        if address in self.refuse:
            raise ClientError(address, "Operation not permitted")
        sock = FakeSocket(address, privileged)
        self.sockets.append(sock)
        return sock


@pytest.fixture
def sockets():
    return SocketRecorder()

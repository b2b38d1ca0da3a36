"""Tests for the single echo-request prober and its socket helpers."""

import pytest
from icmplib import ICMPSocketError, NameLookupError, SocketPermissionError, TimeoutExceeded

import prober as prober_module
from exceptions import ClientError, ProbeError, ProbeTimeoutError, ResolutionError
from prober import PAYLOAD, Prober, open_socket, resolve


class FakeReply:
    def __init__(self, time, error=None):
        self.time = time
        self.error = error

    def raise_for_status(self):
        if self.error is not None:
            raise self.error


class FakeIcmpSocket:
    """Records requests and answers with a scripted reply or error."""

    def __init__(self, reply=None, receive_error=None, send_error=None, sent_at=100.0):
        self.reply = reply
        self.receive_error = receive_error
        self.send_error = send_error
        self.sent_at = sent_at
        self.requests = []
        self.timeouts = []

    def send(self, request):
        if self.send_error is not None:
            raise self.send_error
        # icmplib stamps the send time on the request
        request._time = self.sent_at
        self.requests.append(request)

    async def receive(self, request=None, timeout=2):
        self.timeouts.append(timeout)
        if self.receive_error is not None:
            raise self.receive_error
        return self.reply


class TestProber:
    """Tests for Prober.probe."""

    @pytest.mark.asyncio
    async def test_round_trip_time(self):
        sock = FakeIcmpSocket(reply=FakeReply(time=100.0125))
        rtt = await Prober().probe(sock, "10.0.0.1", identifier=4242, sequence=2, timeout=1.5)

        assert rtt == pytest.approx(0.0125)
        request = sock.requests[0]
        assert request.destination == "10.0.0.1"
        assert request.id == 4242
        assert request.sequence == 2
        assert request.payload == PAYLOAD
        assert len(PAYLOAD) == 8
        assert sock.timeouts == [1.5]

    @pytest.mark.asyncio
    async def test_timeout_is_distinct(self):
        sock = FakeIcmpSocket(receive_error=TimeoutExceeded(1.0))
        with pytest.raises(ProbeTimeoutError) as exc_info:
            await Prober().probe(sock, "10.0.0.1", 1, 0, timeout=1.0)
        assert exc_info.value.sequence == 0

    @pytest.mark.asyncio
    async def test_transport_error(self):
        sock = FakeIcmpSocket(send_error=ICMPSocketError("Network is unreachable"))
        with pytest.raises(ProbeError) as exc_info:
            await Prober().probe(sock, "10.0.0.1", 1, 3)
        assert not isinstance(exc_info.value, ProbeTimeoutError)
        assert "unreachable" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_error_reply(self):
        reply = FakeReply(time=100.5, error=ICMPSocketError("Destination host unreachable"))
        sock = FakeIcmpSocket(reply=reply)
        with pytest.raises(ProbeError):
            await Prober().probe(sock, "10.0.0.1", 1, 0)

    @pytest.mark.asyncio
    async def test_os_error(self):
        sock = FakeIcmpSocket(send_error=OSError(101, "Network is unreachable"))
        with pytest.raises(ProbeError):
            await Prober().probe(sock, "10.0.0.1", 1, 0)


class TestResolve:
    """Tests for host resolution."""

    @pytest.mark.asyncio
    async def test_first_address(self, monkeypatch):
        async def fake_resolve(name, family=None):
            return ["192.0.2.7", "192.0.2.8"]

        monkeypatch.setattr(prober_module, "async_resolve", fake_resolve)
        assert await resolve("example.test") == "192.0.2.7"

    @pytest.mark.asyncio
    async def test_lookup_failure(self, monkeypatch):
        async def fake_resolve(name, family=None):
            raise NameLookupError(name)

        monkeypatch.setattr(prober_module, "async_resolve", fake_resolve)
        with pytest.raises(ResolutionError) as exc_info:
            await resolve("unreachable.invalid")
        assert exc_info.value.host == "unreachable.invalid"


class TestOpenSocket:
    """Tests for ICMP socket construction."""

    def test_permission_denied(self, monkeypatch):
        def refuse(*args, **kwargs):
            raise SocketPermissionError(True)

        monkeypatch.setattr(prober_module, "ICMPv4Socket", refuse)
        with pytest.raises(ClientError):
            open_socket("10.0.0.1", privileged=True)

    def test_family_selection(self, monkeypatch):
        created = []

        class FakeV4:
            def __init__(self, privileged=True):
                created.append(("v4", privileged))

        class FakeV6:
            def __init__(self, privileged=True):
                created.append(("v6", privileged))

        monkeypatch.setattr(prober_module, "ICMPv4Socket", FakeV4)
        monkeypatch.setattr(prober_module, "ICMPv6Socket", FakeV6)
        monkeypatch.setattr(prober_module, "AsyncSocket", lambda sock: sock)

        open_socket("10.0.0.1")
        open_socket("2001:db8::1", privileged=True)
        assert created == [("v4", False), ("v6", True)]

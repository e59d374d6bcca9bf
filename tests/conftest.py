# tests/conftest.py
import asyncio
import socket
import sys
from pathlib import Path

import pytest

ROOT_DIR = Path(__file__).resolve().parents[1]
ROOT_STR = str(ROOT_DIR)
if ROOT_STR not in sys.path:
    sys.path.insert(0, ROOT_STR)

from netsdrclient.tcp_client import TcpTransport
from netsdrclient.udp_receiver import UdpTransport


class ScriptedUdp:
    """
    UDP stand-in that replays a list of datagrams. Once the script is
    exhausted it raises ``error`` if given, otherwise sets ``cancel`` (if
    attached) and blocks until the pending receive is cancelled.
    """

    def __init__(self, datagrams=(), error=None):
        self.datagrams = [bytes(d) for d in datagrams]
        self.error = error
        self.cancel = None
        self.connected_to = None
        self.connect_calls = 0
        self.receive_calls = 0
        self.abandoned_receives = 0
        self.closed = False

    def connect(self, host, port):
        self.connect_calls += 1
        self.connected_to = (host, port)

    async def receive(self):
        self.receive_calls += 1
        if self.datagrams:
            return self.datagrams.pop(0)
        if self.error is not None:
            raise self.error
        if self.cancel is not None:
            self.cancel.set()
        try:
            await asyncio.Event().wait()
        except asyncio.CancelledError:
            self.abandoned_receives += 1
            raise

    def close(self):
        self.closed = True


def attach_echo_device(tcp):
    """Make a mocked TcpTransport answer every message by echoing it back."""
    sent = []
    tcp.send.side_effect = lambda data: sent.append(bytes(data))
    tcp.receive.side_effect = lambda: sent[-1]
    return sent


@pytest.fixture
def tcp_mock(mocker):
    """Returns a TcpTransport mock; async methods become AsyncMocks."""
    return mocker.MagicMock(spec=TcpTransport)


@pytest.fixture
def udp_mock(mocker):
    return mocker.MagicMock(spec=UdpTransport)


@pytest.fixture
def scripted_udp():
    return ScriptedUdp


@pytest.fixture
def echo_device():
    return attach_echo_device


@pytest.fixture
def free_udp_port():
    """Returns a free local UDP port on 127.0.0.1."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    try:
        sock.bind(("127.0.0.1", 0))
        return int(sock.getsockname()[1])
    finally:
        sock.close()

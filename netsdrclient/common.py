"""Shared constants and diagnostics helpers for the NetSDR client."""

import logging

log = logging.getLogger("netsdrclient")

DEFAULT_TCP_PORT = 50000        # TCP control port

DEFAULT_UDP_PORT = 60000        # UDP port the receiver streams IQ datagrams to

MAX_PORT = 0xFFFF

UDP_HEADER_SIZE = 4             # 2-byte packet header + 16-bit sequence number

UDP_BUFFER_SIZE = 65536

UDP_RCVBUF_SIZE = 4 * 1024 * 1024

MAX_FREQUENCY_HZ = 0xFFFFFFFFFF # frequency field is 40 bits wide

NAK_SENTINEL = b"\x02\x00"

NAK_ERROR_MESSAGE = "Received NAK: Control item not supported."

NOT_CONNECTED_MESSAGE = "Not connected to the device."

RECEIVER_STATE_ERROR_MESSAGE = "Failed to change receiver state."

FREQUENCY_ERROR_MESSAGE = "Failed to set frequency."


class ClientDisposedError(RuntimeError):
    """Raised when an operation is attempted on a disposed client."""

    def __init__(self, object_name: str):
        super().__init__(f"Cannot access a disposed object: {object_name}")
        self.object_name = object_name


def _require_host(host, name: str = "host") -> str:
    if host is None or not str(host).strip():
        raise ValueError(f"{name} must be a non-blank string")
    return host


def _require_port(port, name: str = "port") -> int:
    if port is None or port <= 0 or port > MAX_PORT:
        raise ValueError(f"{name} must be in range 1..{MAX_PORT}, got {port!r}")
    return port


def _hexdump(data) -> str:
    if data is None:
        return "<none>"
    return " ".join(f"{b:02X}" for b in data)


"""Data structures for NetSDR control items, results and session state."""

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Optional


class ControlItem(IntEnum):
    RECEIVER_STATE     = 0x0018
    RECEIVER_FREQUENCY = 0x0020


class ReceiverState(IntEnum):
    STOP = 0x01
    RUN  = 0x02


class DataMode(IntEnum):
    """Sample format; only meaningful while the receiver runs."""
    AD = 0x00       # real A/D samples
    IQ = 0x80       # complex I/Q


class CaptureMode(IntEnum):
    CONTIGUOUS_16BIT         = 0x00
    CONTIGUOUS_24BIT         = 0x80
    FIFO_16BIT               = 0x01
    HARDWARE_TRIGGERED_16BIT = 0x03
    HARDWARE_TRIGGERED_24BIT = 0x83


class ChannelId(IntEnum):
    CHANNEL_1    = 0x00
    CHANNEL_2    = 0x02
    ALL_CHANNELS = 0xFF


class ResponseKind(Enum):
    ACKNOWLEDGED          = "ack"
    NEGATIVE_ACKNOWLEDGED = "nak"
    MALFORMED             = "malformed"


class LinkState(Enum):
    """Connection state of one channel. DISPOSED is terminal."""
    DISCONNECTED = "disconnected"
    CONNECTED    = "connected"
    DISPOSED     = "disposed"


@dataclass
class OperationResult:
    """Outcome of a single control operation."""
    success:       bool
    error_message: Optional[str]   = None
    raw_response:  Optional[bytes] = None


@dataclass(frozen=True)
class SessionState:
    tcp_connected: bool
    udp_connected: bool
    disposed:      bool

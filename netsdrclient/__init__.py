"""NetSDR receiver client package.

Control channel over TCP, IQ sample capture over UDP.
"""

from .common import (
	DEFAULT_TCP_PORT,
	DEFAULT_UDP_PORT,
	MAX_FREQUENCY_HZ,
	UDP_HEADER_SIZE,
	NAK_SENTINEL,
	NAK_ERROR_MESSAGE,
	NOT_CONNECTED_MESSAGE,
	ClientDisposedError,
)
from .models import (
	CaptureMode,
	ChannelId,
	ControlItem,
	DataMode,
	LinkState,
	OperationResult,
	ReceiverState,
	ResponseKind,
	SessionState,
)
from .codec import (
	CONTROL_ITEMS,
	classify_response,
	decode_message,
	encode_set_frequency,
	encode_set_receiver_state,
	error_message_for,
)
from .tcp_client import TcpTransport
from .udp_receiver import UdpTransport
from .sink import FileSink
from .control import ControlSession
from .capture import CaptureSession
from .client import NetSdrClient

__version__ = "1.0.0"

__all__ = [
	"DEFAULT_TCP_PORT",
	"DEFAULT_UDP_PORT",
	"MAX_FREQUENCY_HZ",
	"UDP_HEADER_SIZE",
	"NAK_SENTINEL",
	"NAK_ERROR_MESSAGE",
	"NOT_CONNECTED_MESSAGE",
	"ClientDisposedError",
	"CaptureMode",
	"ChannelId",
	"ControlItem",
	"DataMode",
	"LinkState",
	"OperationResult",
	"ReceiverState",
	"ResponseKind",
	"SessionState",
	"CONTROL_ITEMS",
	"classify_response",
	"decode_message",
	"encode_set_frequency",
	"encode_set_receiver_state",
	"error_message_for",
	"TcpTransport",
	"UdpTransport",
	"FileSink",
	"ControlSession",
	"CaptureSession",
	"NetSdrClient",
]

"""Table-driven codec for NetSDR set-control-item messages.

Every message starts with a 4-byte header:

    bytes 0-1  16-bit little-endian word; bits 12-0 hold the total message
               length in bytes, bits 15-13 the message type (0 = set item)
    bytes 2-3  16-bit little-endian control item code (e.g. 0x0018)

The remainder is the item-specific payload described by ``CONTROL_ITEMS``.
"""

import struct
from dataclasses import dataclass
from typing import Callable, Optional

from .common import (
    FREQUENCY_ERROR_MESSAGE,
    MAX_FREQUENCY_HZ,
    NAK_ERROR_MESSAGE,
    NAK_SENTINEL,
    RECEIVER_STATE_ERROR_MESSAGE,
)
from .models import CaptureMode, ChannelId, ControlItem, DataMode, ReceiverState, ResponseKind

HEADER_FORMAT = "<HH"
HEADER_SIZE   = struct.calcsize(HEADER_FORMAT)
LENGTH_MASK   = 0x1FFF
MSG_TYPE_SET  = 0
MAX_FIFO_SAMPLES = 0xFF


@dataclass(frozen=True)
class ControlItemSpec:
    """Wire layout of one control item."""
    item:          ControlItem
    payload_size:  int
    encode:        Callable[..., bytes]
    decode:        Callable[[bytes], dict]
    error_message: str


def _encode_receiver_state(state: int, data_mode: int, capture_mode: int, fifo_samples: int) -> bytes:
    return struct.pack("<BBBB", data_mode, state, capture_mode, fifo_samples)


def _decode_receiver_state(payload: bytes) -> dict:
    data_mode, state, capture_mode, fifo_samples = struct.unpack("<BBBB", payload)
    return {
        "data_mode": data_mode,
        "state": state,
        "capture_mode": capture_mode,
        "fifo_samples": fifo_samples,
    }


def _encode_frequency(channel: int, frequency_hz: int) -> bytes:
    # 40-bit frequency, little-endian
    return bytes([channel]) + frequency_hz.to_bytes(5, "little")


def _decode_frequency(payload: bytes) -> dict:
    return {
        "channel": payload[0],
        "frequency_hz": int.from_bytes(payload[1:6], "little"),
    }


CONTROL_ITEMS = {
    ControlItem.RECEIVER_STATE: ControlItemSpec(
        item=ControlItem.RECEIVER_STATE,
        payload_size=4,
        encode=_encode_receiver_state,
        decode=_decode_receiver_state,
        error_message=RECEIVER_STATE_ERROR_MESSAGE,
    ),
    ControlItem.RECEIVER_FREQUENCY: ControlItemSpec(
        item=ControlItem.RECEIVER_FREQUENCY,
        payload_size=6,
        encode=_encode_frequency,
        decode=_decode_frequency,
        error_message=FREQUENCY_ERROR_MESSAGE,
    ),
}


def parse_header(data: bytes) -> tuple[int, int]:
    """Return (length, message type) from the first two bytes of a message."""
    if len(data) < 2:
        raise ValueError(f"Header too short: {len(data)} bytes")
    word = struct.unpack_from("<H", data, 0)[0]
    return word & LENGTH_MASK, (word >> 13) & 0x7


def encode_message(item: ControlItem, *fields) -> bytes:
    """Build a complete set message for ``item`` from its payload fields."""
    spec = CONTROL_ITEMS[ControlItem(item)]
    payload = spec.encode(*fields)
    if len(payload) != spec.payload_size:
        raise ValueError(
            f"{spec.item.name} payload must be {spec.payload_size} bytes, got {len(payload)}"
        )
    length = HEADER_SIZE + len(payload)
    header = struct.pack(HEADER_FORMAT, length | (MSG_TYPE_SET << 13), spec.item)
    return header + payload


def decode_message(message: bytes) -> tuple[ControlItem, dict]:
    """Parse a set message back into its control item and payload fields.

    Raises ValueError for a length mismatch, an unknown item or a payload of
    the wrong size.
    """
    if len(message) < HEADER_SIZE:
        raise ValueError(f"Message too short: {len(message)} bytes")
    length, _ = parse_header(message)
    if length != len(message):
        raise ValueError(f"Length field {length} does not match message size {len(message)}")

    code = struct.unpack_from("<H", message, 2)[0]
    try:
        spec = CONTROL_ITEMS[ControlItem(code)]
    except ValueError:
        raise ValueError(f"Unknown control item 0x{code:04X}") from None

    payload = message[HEADER_SIZE:]
    if len(payload) != spec.payload_size:
        raise ValueError(
            f"{spec.item.name} payload must be {spec.payload_size} bytes, got {len(payload)}"
        )
    return spec.item, spec.decode(payload)


def encode_set_receiver_state(state: ReceiverState, data_mode: DataMode,
                              capture_mode: CaptureMode, fifo_samples: int = 0) -> bytes:
    """
    Build the 8-byte receiver state message.
    A stop request always carries AD / contiguous 16-bit / zero FIFO count,
    since the device ignores mode parameters while stopped. The FIFO count
    (blocks of 4096 samples) is only sent, and range-checked, in FIFO
    capture mode while running.
    """
    state = ReceiverState(state)
    data_mode = DataMode(data_mode)
    capture_mode = CaptureMode(capture_mode)

    if state == ReceiverState.STOP:
        data_mode = DataMode.AD
        capture_mode = CaptureMode.CONTIGUOUS_16BIT
        fifo_samples = 0
    elif capture_mode != CaptureMode.FIFO_16BIT:
        fifo_samples = 0
    elif not 0 <= fifo_samples <= MAX_FIFO_SAMPLES:
        raise ValueError(f"fifo_samples must be in range 0..{MAX_FIFO_SAMPLES}, got {fifo_samples}")

    return encode_message(ControlItem.RECEIVER_STATE, state, data_mode, capture_mode, fifo_samples)


def encode_set_frequency(channel: ChannelId, frequency_hz: int) -> bytes:
    """Build the 10-byte receiver frequency message."""
    if frequency_hz <= 0 or frequency_hz > MAX_FREQUENCY_HZ:
        raise ValueError(
            f"frequency_hz must be in range 1..0x{MAX_FREQUENCY_HZ:X}, got {frequency_hz}"
        )
    return encode_message(ControlItem.RECEIVER_FREQUENCY, ChannelId(channel), frequency_hz)


def is_nak(response: Optional[bytes]) -> bool:
    return response is not None and bytes(response[:2]) == NAK_SENTINEL


def classify_response(request: bytes, response: Optional[bytes]) -> ResponseKind:
    """The device acknowledges a set message by echoing it back unchanged."""
    if response is not None and len(response) == len(request) and bytes(response) == bytes(request):
        return ResponseKind.ACKNOWLEDGED
    if is_nak(response):
        return ResponseKind.NEGATIVE_ACKNOWLEDGED
    return ResponseKind.MALFORMED


def error_message_for(kind: ResponseKind, default_message: str) -> Optional[str]:
    if kind == ResponseKind.ACKNOWLEDGED:
        return None
    if kind == ResponseKind.NEGATIVE_ACKNOWLEDGED:
        return NAK_ERROR_MESSAGE
    return default_message

"""
Unit tests for the control message codec
"""
import pytest

from netsdrclient.codec import (
    CONTROL_ITEMS,
    classify_response,
    decode_message,
    encode_set_frequency,
    encode_set_receiver_state,
    error_message_for,
    parse_header,
)
from netsdrclient.common import FREQUENCY_ERROR_MESSAGE, MAX_FREQUENCY_HZ, NAK_ERROR_MESSAGE
from netsdrclient.models import (
    CaptureMode,
    ChannelId,
    ControlItem,
    DataMode,
    ReceiverState,
    ResponseKind,
)

# =========================================================================
# Receiver state
# =========================================================================

@pytest.mark.parametrize("state", list(ReceiverState))
@pytest.mark.parametrize("data_mode", list(DataMode))
@pytest.mark.parametrize("capture_mode", list(CaptureMode))
def test_receiver_state_header(state, data_mode, capture_mode):
    message = encode_set_receiver_state(state, data_mode, capture_mode)

    assert len(message) == 8
    assert message[:4] == bytes([0x08, 0x00, 0x18, 0x00])


def test_receiver_state_run_layout():
    message = encode_set_receiver_state(ReceiverState.RUN, DataMode.IQ, CaptureMode.CONTIGUOUS_24BIT)
    assert message == bytes([0x08, 0x00, 0x18, 0x00, 0x80, 0x02, 0x80, 0x00])


def test_receiver_state_fifo_count_sent_in_fifo_mode():
    message = encode_set_receiver_state(ReceiverState.RUN, DataMode.IQ, CaptureMode.FIFO_16BIT, 12)
    assert message[6] == 0x01
    assert message[7] == 12


def test_receiver_state_fifo_count_ignored_outside_fifo_mode():
    message = encode_set_receiver_state(ReceiverState.RUN, DataMode.IQ, CaptureMode.CONTIGUOUS_16BIT, 12)
    assert message[7] == 0


def test_receiver_state_stop_normalizes_modes():
    """Mode parameters are not sent while stopping the receiver."""
    message = encode_set_receiver_state(ReceiverState.STOP, DataMode.IQ, CaptureMode.FIFO_16BIT, 7)
    assert message == bytes([0x08, 0x00, 0x18, 0x00, 0x00, 0x01, 0x00, 0x00])


@pytest.mark.parametrize("fifo", [-1, 256])
def test_receiver_state_rejects_bad_fifo_count(fifo):
    with pytest.raises(ValueError):
        encode_set_receiver_state(ReceiverState.RUN, DataMode.IQ, CaptureMode.FIFO_16BIT, fifo)


@pytest.mark.parametrize("state, capture_mode", [
    (ReceiverState.STOP, CaptureMode.FIFO_16BIT),
    (ReceiverState.RUN, CaptureMode.CONTIGUOUS_16BIT),
])
def test_unsent_fifo_count_is_not_range_checked(state, capture_mode):
    message = encode_set_receiver_state(state, DataMode.IQ, capture_mode, 300)
    assert message[7] == 0


def test_receiver_state_rejects_unknown_mode():
    with pytest.raises(ValueError):
        encode_set_receiver_state(ReceiverState.RUN, DataMode.IQ, 0x42)

# =========================================================================
# Frequency
# =========================================================================

@pytest.mark.parametrize("frequency", [1, 14_074_000, 100_000_000, 0x12_3456_789A, MAX_FREQUENCY_HZ])
def test_frequency_layout(frequency):
    message = encode_set_frequency(ChannelId.ALL_CHANNELS, frequency)

    assert len(message) == 10
    assert message[:5] == bytes([0x0A, 0x00, 0x20, 0x00, 0xFF])
    assert int.from_bytes(message[5:10], "little") == frequency


def test_frequency_bytes_little_endian():
    message = encode_set_frequency(ChannelId.CHANNEL_1, 0x0102030405)
    assert message[4:] == bytes([0x00, 0x05, 0x04, 0x03, 0x02, 0x01])


@pytest.mark.parametrize("frequency", [0, -5, MAX_FREQUENCY_HZ + 1])
def test_frequency_out_of_range(frequency):
    with pytest.raises(ValueError):
        encode_set_frequency(ChannelId.CHANNEL_1, frequency)

# =========================================================================
# Table-driven decode
# =========================================================================

def test_every_item_has_matching_code():
    for item, spec in CONTROL_ITEMS.items():
        assert spec.item == item


def test_decode_frequency_message():
    item, fields = decode_message(encode_set_frequency(ChannelId.CHANNEL_2, 7_100_000))
    assert item == ControlItem.RECEIVER_FREQUENCY
    assert fields == {"channel": 0x02, "frequency_hz": 7_100_000}


def test_decode_receiver_state_message():
    item, fields = decode_message(
        encode_set_receiver_state(ReceiverState.RUN, DataMode.IQ, CaptureMode.FIFO_16BIT, 3)
    )
    assert item == ControlItem.RECEIVER_STATE
    assert fields["state"] == ReceiverState.RUN
    assert fields["data_mode"] == DataMode.IQ
    assert fields["fifo_samples"] == 3


def test_decode_rejects_length_mismatch():
    message = bytearray(encode_set_frequency(ChannelId.CHANNEL_1, 1000))
    message[0] = 0x0B
    with pytest.raises(ValueError):
        decode_message(bytes(message))


def test_decode_rejects_unknown_item():
    with pytest.raises(ValueError):
        decode_message(bytes([0x05, 0x00, 0x99, 0x00, 0x01]))


def test_parse_header_masks_message_type():
    assert parse_header(b"\x04\x84") == (0x404, 4)

# =========================================================================
# Response classification
# =========================================================================

def test_classify_echo_is_ack():
    request = encode_set_frequency(ChannelId.CHANNEL_1, 100_000)
    assert classify_response(request, bytes(request)) == ResponseKind.ACKNOWLEDGED


@pytest.mark.parametrize("response", [b"\x02\x00", b"\x02\x00\x18\x00", b"\x02\x00\xff"])
def test_classify_nak_regardless_of_request(response):
    for request in (encode_set_frequency(ChannelId.CHANNEL_1, 1),
                    encode_set_receiver_state(ReceiverState.RUN, DataMode.IQ, CaptureMode.CONTIGUOUS_16BIT)):
        assert classify_response(request, response) == ResponseKind.NEGATIVE_ACKNOWLEDGED


def test_classify_malformed():
    request = encode_set_frequency(ChannelId.CHANNEL_1, 100_000)
    assert classify_response(request, None) == ResponseKind.MALFORMED
    assert classify_response(request, b"") == ResponseKind.MALFORMED
    assert classify_response(request, request[:-1]) == ResponseKind.MALFORMED
    assert classify_response(request, request[:-1] + b"\x7f") == ResponseKind.MALFORMED


def test_error_messages():
    assert error_message_for(ResponseKind.ACKNOWLEDGED, FREQUENCY_ERROR_MESSAGE) is None
    assert error_message_for(ResponseKind.NEGATIVE_ACKNOWLEDGED, FREQUENCY_ERROR_MESSAGE) == NAK_ERROR_MESSAGE
    assert error_message_for(ResponseKind.MALFORMED, FREQUENCY_ERROR_MESSAGE) == FREQUENCY_ERROR_MESSAGE

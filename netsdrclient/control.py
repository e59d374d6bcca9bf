"""NetSDR control session: one request, one response over the TCP channel."""

from .codec import (
    classify_response,
    encode_set_frequency,
    encode_set_receiver_state,
    error_message_for,
)
from .common import (
    FREQUENCY_ERROR_MESSAGE,
    MAX_FREQUENCY_HZ,
    NOT_CONNECTED_MESSAGE,
    RECEIVER_STATE_ERROR_MESSAGE,
    ClientDisposedError,
    _hexdump,
    log,
)
from .models import (
    CaptureMode,
    ChannelId,
    DataMode,
    LinkState,
    OperationResult,
    ReceiverState,
    ResponseKind,
)
from .tcp_client import TcpTransport


class ControlSession:
    """
    Owns the TCP control channel.
    Each operation sends exactly one message and consumes exactly one
    response; requests are never pipelined.
    """

    def __init__(self, tcp: TcpTransport, owner_name: str = "NetSdrClient"):
        self._tcp = tcp
        self._owner_name = owner_name
        self.state = LinkState.DISCONNECTED

    @property
    def connected(self) -> bool:
        return self.state == LinkState.CONNECTED

    def _ensure_not_disposed(self):
        if self.state == LinkState.DISPOSED:
            raise ClientDisposedError(self._owner_name)

    async def connect(self, host: str, port: int):
        self._ensure_not_disposed()
        if self.state == LinkState.CONNECTED:
            return
        await self._tcp.connect(host, port)
        self.state = LinkState.CONNECTED

    async def set_receiver_state(self, state: ReceiverState, data_mode: DataMode,
                                 capture_mode: CaptureMode, fifo_samples: int = 0) -> OperationResult:
        self._ensure_not_disposed()
        message = encode_set_receiver_state(state, data_mode, capture_mode, fifo_samples)
        if not self.connected:
            return OperationResult(success=False, error_message=NOT_CONNECTED_MESSAGE)

        return await self._transact(message, RECEIVER_STATE_ERROR_MESSAGE)

    async def set_frequency(self, channel: ChannelId, frequency_hz: int) -> OperationResult:
        self._ensure_not_disposed()
        if frequency_hz <= 0 or frequency_hz > MAX_FREQUENCY_HZ:
            raise ValueError(
                f"frequency_hz must be in range 1..0x{MAX_FREQUENCY_HZ:X} (40 bits), got {frequency_hz}"
            )
        message = encode_set_frequency(channel, frequency_hz)
        if not self.connected:
            return OperationResult(success=False, error_message=NOT_CONNECTED_MESSAGE)

        return await self._transact(message, FREQUENCY_ERROR_MESSAGE)

    async def _transact(self, message: bytes, default_error: str) -> OperationResult:
        await self._tcp.send(message)
        response = await self._tcp.receive()

        kind = classify_response(message, response)
        if kind != ResponseKind.ACKNOWLEDGED:
            log.warning(f"Device rejected {_hexdump(message)} -> {_hexdump(response)} ({kind.value})")

        return OperationResult(
            success=kind == ResponseKind.ACKNOWLEDGED,
            error_message=error_message_for(kind, default_error),
            raw_response=response,
        )

    async def close(self):
        """Release the TCP stream. The session is unusable afterwards."""
        if self.state == LinkState.DISPOSED:
            return
        self.state = LinkState.DISPOSED
        await self._tcp.close()

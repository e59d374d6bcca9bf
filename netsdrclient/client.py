"""High-level NetSDR client: one lifecycle over the control and capture sessions."""

import asyncio
from typing import Optional

from .capture import CaptureSession
from .common import (
    DEFAULT_TCP_PORT,
    DEFAULT_UDP_PORT,
    ClientDisposedError,
    _require_host,
    _require_port,
    log,
)
from .control import ControlSession
from .models import (
    CaptureMode,
    ChannelId,
    DataMode,
    OperationResult,
    ReceiverState,
    SessionState,
)
from .sink import FileSink
from .tcp_client import TcpTransport
from .udp_receiver import UdpTransport


class NetSdrClient:
    """
    High-level interface: connect the control channel, configure the
    receiver, capture IQ samples to a file.

    Not safe for overlapping control calls from several tasks; a capture
    may run concurrently with control calls since they use separate sockets.
    Once disposed (or disconnected) every operation raises ClientDisposedError.
    """

    def __init__(self, tcp: Optional[TcpTransport] = None,
                 udp: Optional[UdpTransport] = None):
        name = type(self).__name__
        self._control = ControlSession(tcp if tcp is not None else TcpTransport(), name)
        self._capture = CaptureSession(udp if udp is not None else UdpTransport(), name)
        self._disposed = False

    @property
    def state(self) -> SessionState:
        return SessionState(
            tcp_connected=self._control.connected,
            udp_connected=self._capture.connected,
            disposed=self._disposed,
        )

    @property
    def capture(self) -> CaptureSession:
        return self._capture

    def _ensure_not_disposed(self):
        if self._disposed:
            raise ClientDisposedError(type(self).__name__)

    async def connect(self, host: str, port: int = DEFAULT_TCP_PORT):
        self._ensure_not_disposed()
        _require_host(host)
        _require_port(port)
        await self._control.connect(host, port)

    async def set_receiver_state(self, state: ReceiverState, data_mode: DataMode,
                                 capture_mode: CaptureMode, fifo_samples: int = 0) -> OperationResult:
        self._ensure_not_disposed()
        return await self._control.set_receiver_state(state, data_mode, capture_mode, fifo_samples)

    async def set_receiver_frequency(self, channel: ChannelId, frequency_hz: int) -> OperationResult:
        self._ensure_not_disposed()
        return await self._control.set_frequency(channel, frequency_hz)

    async def receive_and_save_iq_samples(self, cancel: asyncio.Event, file_path: str,
                                          host: str, port: int = DEFAULT_UDP_PORT) -> bool:
        """
        Stream IQ payload to ``file_path`` until ``cancel`` is set.
        Returns True if any payload was saved; otherwise the file is removed.
        """
        self._ensure_not_disposed()
        if file_path is None or not str(file_path).strip():
            raise ValueError("file_path must be a non-blank path")
        _require_host(host)
        _require_port(port)

        self._capture.connect(host, port)

        sink = FileSink(file_path)
        try:
            saved = await self._capture.run(cancel, sink)
        finally:
            sink.close()
            if sink.bytes_written == 0:
                sink.discard()

        if saved:
            log.info(f"Saved {sink.bytes_written} bytes of IQ samples to {file_path}")
        return saved

    async def disconnect(self):
        await self.dispose()

    async def dispose(self):
        if self._disposed:
            return
        self._disposed = True
        try:
            await self._control.close()
        finally:
            self._capture.close()
        log.info("Disconnected from NetSDR")

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.dispose()

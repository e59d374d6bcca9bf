"""IQ capture session: receive UDP datagrams and stream their payload to a sink."""

import asyncio
from typing import Optional

from .common import UDP_HEADER_SIZE, ClientDisposedError, log
from .models import LinkState
from .sink import FileSink
from .udp_receiver import UdpTransport


class CaptureSession:
    """
    Owns the UDP data channel.
    Strips the fixed datagram header and appends the remaining sample bytes
    to a sink until the cancellation event fires.
    """

    def __init__(self, udp: UdpTransport, owner_name: str = "NetSdrClient"):
        self._udp = udp
        self._owner_name = owner_name
        self.state = LinkState.DISCONNECTED
        self.packet_count = 0
        self.drop_count = 0
        self.byte_count = 0

    @property
    def connected(self) -> bool:
        return self.state == LinkState.CONNECTED

    def _ensure_not_disposed(self):
        if self.state == LinkState.DISPOSED:
            raise ClientDisposedError(self._owner_name)

    def connect(self, host: str, port: int):
        self._ensure_not_disposed()
        if self.state == LinkState.CONNECTED:
            return
        self._udp.connect(host, port)
        self.state = LinkState.CONNECTED

    async def run(self, cancel: asyncio.Event, sink: FileSink) -> bool:
        """
        Capture until ``cancel`` is set. Returns True if any payload was written.
        Header-only datagrams are dropped silently.
        """
        self._ensure_not_disposed()
        if not self.connected:
            raise RuntimeError("UDP channel is not connected")

        self.packet_count = 0
        self.drop_count = 0
        self.byte_count = 0
        log.info("IQ capture started")

        while not cancel.is_set():
            datagram = await self._receive_or_cancel(cancel)
            if datagram is None:
                break

            self.packet_count += 1
            if len(datagram) <= UDP_HEADER_SIZE:
                self.drop_count += 1
                continue

            payload = datagram[UDP_HEADER_SIZE:]
            sink.append(payload)
            sink.flush()
            self.byte_count += len(payload)

        log.info(f"IQ capture stopped: {self.packet_count} datagrams, "
                 f"{self.byte_count} bytes saved, {self.drop_count} dropped")
        return self.byte_count > 0

    async def _receive_or_cancel(self, cancel: asyncio.Event) -> Optional[bytes]:
        """
        Race one receive against the cancellation event.
        Returns None if cancellation won; a datagram that was already read
        is returned even when the event fired at the same time.
        """
        recv_task = asyncio.ensure_future(self._udp.receive())
        cancel_task = asyncio.ensure_future(cancel.wait())
        try:
            await asyncio.wait({recv_task, cancel_task}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in (recv_task, cancel_task):
                if not task.done():
                    task.cancel()
            await asyncio.gather(recv_task, cancel_task, return_exceptions=True)

        if recv_task.cancelled():
            return None
        return recv_task.result()

    def close(self):
        if self.state == LinkState.DISPOSED:
            return
        self.state = LinkState.DISPOSED
        self._udp.close()

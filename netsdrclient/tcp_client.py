"""TCP transport for the NetSDR control channel."""

import asyncio
from typing import Optional

from .codec import parse_header
from .common import _hexdump, log


class TcpTransport:
    """
    Owns the TCP stream to the receiver.
    Reads responses one framed message at a time: the 2-byte header carries
    the total length, the rest of the message follows.
    """

    def __init__(self):
        self._reader: Optional[asyncio.StreamReader] = None
        self._writer: Optional[asyncio.StreamWriter] = None

    async def connect(self, host: str, port: int):
        log.info(f"Connecting to {host}:{port}")
        self._reader, self._writer = await asyncio.open_connection(host, port)
        log.info("TCP connected")

    async def send(self, data: bytes):
        if self._writer is None:
            raise RuntimeError("TCP stream is not connected")
        log.debug(f"TX: {_hexdump(data)}")
        self._writer.write(data)
        await self._writer.drain()

    async def receive(self) -> bytes:
        """
        Read one response message.
        A stream closed mid-message returns whatever arrived, which the
        caller treats as a malformed response.
        """
        if self._reader is None:
            raise RuntimeError("TCP stream is not connected")
        header = b""
        try:
            header = await self._reader.readexactly(2)
            length, _ = parse_header(header)
            body = await self._reader.readexactly(max(length - 2, 0))
        except asyncio.IncompleteReadError as e:
            partial = header + e.partial
            log.warning(f"TCP stream closed mid-message after {len(partial)} bytes")
            return partial
        data = header + body
        log.debug(f"RX: {_hexdump(data)}")
        return data

    async def close(self):
        writer, self._writer, self._reader = self._writer, None, None
        if writer is None:
            return
        writer.close()
        try:
            await writer.wait_closed()
        except (ConnectionError, OSError) as e:
            log.debug(f"TCP close error ignored: {e}")
        log.info("TCP disconnected")

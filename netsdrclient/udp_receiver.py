"""UDP transport for the NetSDR IQ data stream."""

import asyncio
import socket
from typing import Optional

from .common import UDP_BUFFER_SIZE, UDP_RCVBUF_SIZE, log


class UdpTransport:
    """
    Listens on the local endpoint the receiver streams IQ datagrams to.
    ``receive`` is a coroutine, so a pending read can be abandoned by
    cancelling the task awaiting it.
    """

    def __init__(self, buffer_size: int = UDP_BUFFER_SIZE):
        self.buffer_size = buffer_size
        self._sock: Optional[socket.socket] = None

    def connect(self, host: str, port: int):
        sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_RCVBUF, UDP_RCVBUF_SIZE)
            sock.bind((host, port))
            sock.setblocking(False)
        except OSError:
            sock.close()
            raise
        self._sock = sock
        log.info(f"UDP receiver listening on {host}:{port}")

    async def receive(self) -> bytes:
        if self._sock is None:
            raise RuntimeError("UDP socket is not initialized")
        loop = asyncio.get_running_loop()
        return await loop.sock_recv(self._sock, self.buffer_size)

    def close(self):
        sock, self._sock = self._sock, None
        if sock:
            sock.close()
            log.info("UDP receiver closed")

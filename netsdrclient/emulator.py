"""NetSDR receiver emulator for running the client without hardware.

The TCP side echoes every accepted set message back and answers unsupported
control items with a NAK. While the receiver is in the run state the UDP
side streams 16-bit I/Q datagrams of a synthetic tone to the configured
endpoint. Each datagram carries a 4-byte header: the packet header word
0x8404 (1028 bytes, data item 0) followed by a 16-bit sequence number.
"""

import argparse
import asyncio
import logging
import socket
import struct
from typing import Iterable, Optional

import numpy as np

from .codec import HEADER_SIZE, decode_message, parse_header
from .common import DEFAULT_TCP_PORT, DEFAULT_UDP_PORT, NAK_SENTINEL, log
from .models import ControlItem, ReceiverState

DATAGRAM_HEADER = b"\x04\x84"
SAMPLES_PER_DATAGRAM = 256      # 256 I/Q pairs * 4 bytes = 1024 payload bytes


def synthesize_tone(n_samples: int, tone_hz: float, sample_rate: int,
                    start_index: int = 0, amplitude: float = 0.5,
                    noise_level: float = 0.01,
                    rng: Optional[np.random.Generator] = None) -> bytes:
    """Return ``n_samples`` complex samples as interleaved little-endian int16 I/Q."""
    n = np.arange(start_index, start_index + n_samples, dtype=np.float64)
    iq = amplitude * np.exp(1j * 2.0 * np.pi * tone_hz * n / sample_rate)
    if noise_level > 0:
        rng = rng or np.random.default_rng()
        iq = iq + noise_level * (rng.standard_normal(n_samples) + 1j * rng.standard_normal(n_samples))

    interleaved = np.empty(n_samples * 2, dtype=np.float64)
    interleaved[0::2] = np.real(iq)
    interleaved[1::2] = np.imag(iq)
    pcm = np.clip(interleaved, -1.0, 1.0)
    return (pcm * 32767.0).astype("<i2").tobytes()


class NetSdrEmulator:
    """
    Minimal NetSDR device: one asyncio TCP server plus a UDP sender task.
    ``tcp_port=0`` picks a free port; read the bound port from ``tcp_port``
    after ``start``.
    """

    def __init__(self, host: str = "127.0.0.1", tcp_port: int = DEFAULT_TCP_PORT,
                 udp_host: Optional[str] = None, udp_port: int = DEFAULT_UDP_PORT,
                 sample_rate: int = 48000, tone_hz: float = 1000.0,
                 samples_per_datagram: int = SAMPLES_PER_DATAGRAM,
                 supported_items: Iterable[ControlItem] = tuple(ControlItem)):
        self.host = host
        self.tcp_port = tcp_port
        self.udp_host = udp_host
        self.udp_port = udp_port
        self.sample_rate = sample_rate
        self.tone_hz = tone_hz
        self.samples_per_datagram = samples_per_datagram
        self.supported_items = set(supported_items)

        self.receiver_state = ReceiverState.STOP
        self.receiver_settings = {}
        self.frequency_hz = 0
        self.received_messages: list[bytes] = []
        self.datagram_count = 0

        self._server: Optional[asyncio.AbstractServer] = None
        self._stream_task: Optional[asyncio.Task] = None
        self._peer_host: Optional[str] = None
        self._writers: set = set()

    async def start(self):
        self._server = await asyncio.start_server(self._handle_client, self.host, self.tcp_port)
        self.tcp_port = self._server.sockets[0].getsockname()[1]
        log.info(f"NetSDR emulator listening on TCP {self.host}:{self.tcp_port}")

    async def stop(self):
        await self._stop_stream()
        for writer in list(self._writers):
            writer.close()
        if self._server:
            self._server.close()
            await self._server.wait_closed()
            self._server = None
        log.info("NetSDR emulator stopped")

    async def serve_forever(self):
        if self._server is None:
            await self.start()
        async with self._server:
            await self._server.serve_forever()

    async def __aenter__(self):
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.stop()

    async def _handle_client(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter):
        peer = writer.get_extra_info("peername")
        self._peer_host = peer[0] if peer else None
        self._writers.add(writer)
        log.info(f"Emulator: client connected from {peer}")
        try:
            while True:
                try:
                    header = await reader.readexactly(2)
                    length, _ = parse_header(header)
                    body = await reader.readexactly(max(length - 2, 0))
                except asyncio.IncompleteReadError:
                    break
                response = self._process_message(header + body)
                writer.write(response)
                await writer.drain()
        except ConnectionError as e:
            log.debug(f"Emulator: client connection error: {e}")
        finally:
            await self._stop_stream()
            writer.close()
            self._writers.discard(writer)
            log.info(f"Emulator: client {peer} disconnected")

    def _process_message(self, message: bytes) -> bytes:
        self.received_messages.append(message)
        if len(message) < HEADER_SIZE:
            return NAK_SENTINEL
        try:
            item, fields = decode_message(message)
        except ValueError as e:
            log.warning(f"Emulator: rejecting message: {e}")
            return NAK_SENTINEL
        if item not in self.supported_items:
            log.info(f"Emulator: control item {item.name} not supported, sending NAK")
            return NAK_SENTINEL

        if item == ControlItem.RECEIVER_STATE:
            self.receiver_settings = fields
            if fields["state"] == ReceiverState.RUN:
                self.receiver_state = ReceiverState.RUN
                self._start_stream()
            else:
                self.receiver_state = ReceiverState.STOP
                if self._stream_task:
                    self._stream_task.cancel()
                    self._stream_task = None
            log.info(f"Emulator: receiver state {self.receiver_state.name}")
        elif item == ControlItem.RECEIVER_FREQUENCY:
            self.frequency_hz = fields["frequency_hz"]
            log.info(f"Emulator: frequency set to {self.frequency_hz:,} Hz")

        return message

    def _start_stream(self):
        if self._stream_task is None or self._stream_task.done():
            self._stream_task = asyncio.ensure_future(self._stream())

    async def _stop_stream(self):
        task, self._stream_task = self._stream_task, None
        if task:
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)
        self.receiver_state = ReceiverState.STOP

    async def _stream(self):
        target = (self.udp_host or self._peer_host or self.host, self.udp_port)
        sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        sock.setblocking(False)
        interval = self.samples_per_datagram / self.sample_rate
        rng = np.random.default_rng()
        sequence = 0
        sample_index = 0
        log.info(f"Emulator: streaming IQ to {target[0]}:{target[1]}")
        try:
            while True:
                payload = synthesize_tone(self.samples_per_datagram, self.tone_hz,
                                          self.sample_rate, sample_index, rng=rng)
                datagram = DATAGRAM_HEADER + struct.pack("<H", sequence) + payload
                try:
                    sock.sendto(datagram, target)
                    self.datagram_count += 1
                except (BlockingIOError, ConnectionRefusedError):
                    pass
                sequence = (sequence + 1) & 0xFFFF
                sample_index += self.samples_per_datagram
                await asyncio.sleep(interval)
        finally:
            sock.close()


def main():
    parser = argparse.ArgumentParser(description="NetSDR receiver emulator")
    parser.add_argument("--host", default="127.0.0.1", help="TCP listen address")
    parser.add_argument("--port", default=DEFAULT_TCP_PORT, type=int, help="TCP listen port")
    parser.add_argument("--udp-host", default=None, help="IQ destination host (default: client address)")
    parser.add_argument("--udp-port", default=DEFAULT_UDP_PORT, type=int, help="IQ destination port")
    parser.add_argument("--rate", default=48000, type=int, help="Sample rate Hz")
    parser.add_argument("--tone", default=1000.0, type=float, help="Tone offset Hz")
    parser.add_argument("--log-level", default="INFO",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"])
    args = parser.parse_args()

    logging.basicConfig(level=getattr(logging, args.log_level),
                        format="%(asctime)s %(levelname)s %(message)s")

    emulator = NetSdrEmulator(
        host=args.host,
        tcp_port=args.port,
        udp_host=args.udp_host,
        udp_port=args.udp_port,
        sample_rate=args.rate,
        tone_hz=args.tone,
    )
    try:
        asyncio.run(emulator.serve_forever())
    except KeyboardInterrupt:
        log.info("Interrupted")


if __name__ == "__main__":
    main()

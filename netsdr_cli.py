#!/usr/bin/env python3
"""NetSDR command-line client: start the receiver, tune it and record IQ samples."""

import argparse
import asyncio
import logging
import signal
import sys

from netsdrclient import (
    DEFAULT_TCP_PORT,
    DEFAULT_UDP_PORT,
    MAX_FREQUENCY_HZ,
    CaptureMode,
    ChannelId,
    DataMode,
    NetSdrClient,
    ReceiverState,
)
from netsdrclient.common import log

CHANNELS = {
    "1": ChannelId.CHANNEL_1,
    "2": ChannelId.CHANNEL_2,
    "all": ChannelId.ALL_CHANNELS,
}

DATA_MODES = {
    "ad": DataMode.AD,
    "iq": DataMode.IQ,
}

CAPTURE_MODES = {
    "contiguous16": CaptureMode.CONTIGUOUS_16BIT,
    "contiguous24": CaptureMode.CONTIGUOUS_24BIT,
    "fifo16": CaptureMode.FIFO_16BIT,
    "hwtrigger16": CaptureMode.HARDWARE_TRIGGERED_16BIT,
    "hwtrigger24": CaptureMode.HARDWARE_TRIGGERED_24BIT,
}


def _configure_logging(level_name: str):
    level = getattr(logging, level_name.upper(), logging.INFO)
    root_logger = logging.getLogger()
    if not root_logger.handlers:
        logging.basicConfig(level=level, format='%(asctime)s %(levelname)s %(message)s')
    else:
        root_logger.setLevel(level)

    logging.getLogger('netsdrclient').setLevel(level)


def _frequency(text: str) -> int:
    try:
        value = int(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid frequency: {text!r}") from None
    if value <= 0 or value > MAX_FREQUENCY_HZ:
        raise argparse.ArgumentTypeError(f"frequency must be in range 1..{MAX_FREQUENCY_HZ} Hz")
    return value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="NetSDR IQ capture client")
    parser.add_argument("--host", required=True, help="NetSDR device host (e.g. 127.0.0.1)")
    parser.add_argument("--port", default=DEFAULT_TCP_PORT, type=int, help="TCP control port")
    parser.add_argument("--udp-host", default="0.0.0.0", help="Local address to receive IQ datagrams on")
    parser.add_argument("--udp-port", default=DEFAULT_UDP_PORT, type=int, help="Local UDP port for IQ datagrams")
    parser.add_argument("--freq", required=True, type=_frequency,
                        help="Frequency in Hz (e.g. 100000000 for 100 MHz)")
    parser.add_argument("--channel", default="all", choices=sorted(CHANNELS), help="Receiver channel")
    parser.add_argument("--data-mode", default="iq", choices=sorted(DATA_MODES), help="Sample format")
    parser.add_argument("--capture-mode", default="contiguous16", choices=sorted(CAPTURE_MODES),
                        help="Capture mode")
    parser.add_argument("--fifo-samples", default=0, type=int,
                        help="Blocks of 4096 samples to capture in fifo16 mode")
    parser.add_argument("--output", default="iq_samples.dat", help="Output file for raw IQ payload")
    parser.add_argument("--duration", default=None, type=float,
                        help="Stop after this many seconds (default: run until Ctrl+C)")
    parser.add_argument("--log-level", type=str, default="INFO",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
                        help="Logging verbosity (default: INFO)")
    return parser


async def run(args: argparse.Namespace, client: NetSdrClient = None) -> int:
    """Connect, configure and capture. Returns the process exit status."""
    loop = asyncio.get_running_loop()
    cancel = asyncio.Event()

    def _request_stop():
        if not cancel.is_set():
            log.info("Canceling IQ sample reception...")
            cancel.set()

    installed = []
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, _request_stop)
            installed.append(sig)
        except (NotImplementedError, RuntimeError):
            continue

    timer = loop.call_later(args.duration, _request_stop) if args.duration else None
    client = client or NetSdrClient()

    try:
        async with client:
            log.info("Connecting to NetSDR...")
            await client.connect(args.host, args.port)
            log.info("Connected successfully")

            result = await client.set_receiver_state(
                ReceiverState.RUN,
                DATA_MODES[args.data_mode],
                CAPTURE_MODES[args.capture_mode],
                args.fifo_samples,
            )
            if not result.success:
                log.error(f"Error: {result.error_message}")
                return 1
            log.info("Receiver started")

            log.info(f"Setting frequency to {args.freq} Hz...")
            result = await client.set_receiver_frequency(CHANNELS[args.channel], args.freq)
            if not result.success:
                log.error(f"Error: {result.error_message}")
                return 1
            log.info("Frequency set")

            log.info("Receiving IQ samples. Press Ctrl+C to stop...")
            saved = await client.receive_and_save_iq_samples(
                cancel, args.output, args.udp_host, args.udp_port
            )

            result = await client.set_receiver_state(
                ReceiverState.STOP, DataMode.AD, CaptureMode.CONTIGUOUS_16BIT
            )
            if not result.success:
                log.warning(f"Could not stop receiver: {result.error_message}")

            if saved:
                log.info(f"IQ samples saved to {args.output}")
                return 0
            log.warning("Data wasn't received")
            return 1
    except (OSError, RuntimeError, ValueError) as e:
        log.error(f"Error: {e}")
        return 1
    finally:
        if timer:
            timer.cancel()
        for sig in installed:
            loop.remove_signal_handler(sig)


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    _configure_logging(args.log_level)
    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())

"""Append-only file sink for captured IQ payload."""

from pathlib import Path

from .common import log


class FileSink:
    """Creates (truncates) ``path`` on construction and appends raw bytes to it."""

    def __init__(self, path):
        self.path = Path(path)
        self.bytes_written = 0
        self._fh = open(self.path, "wb")

    def append(self, data: bytes):
        if self._fh is None:
            raise ValueError(f"Sink {self.path} is closed")
        self._fh.write(data)
        self.bytes_written += len(data)

    def flush(self):
        if self._fh is not None:
            self._fh.flush()

    def close(self):
        fh, self._fh = self._fh, None
        if fh is not None:
            fh.close()

    def discard(self) -> bool:
        """Close and delete the file if nothing was written. Returns True if deleted."""
        self.close()
        if self.bytes_written > 0:
            return False
        try:
            self.path.unlink()
        except FileNotFoundError:
            return False
        log.info(f"Discarded empty capture file {self.path}")
        return True

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

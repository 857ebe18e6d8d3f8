"""Robust I/O: short-count tolerant reads and writes on raw file descriptors."""

from __future__ import annotations

import os

RIO_BUFSIZE = 8192
MAXLINE = 8192


def _read_once(fd: int, size: int) -> bytes:
    """Read from ``fd``, retrying when a signal interrupts the call."""
    while True:
        try:
            return os.read(fd, size)
        except InterruptedError:
            continue


def readn(fd: int, n: int) -> bytes:
    """Read up to ``n`` bytes from ``fd`` without buffering.

    Keeps reading until ``n`` bytes have arrived or end of file is reached,
    so the result is shorter than ``n`` only at end of file.
    """
    chunks: list[bytes] = []
    remaining = n
    while remaining > 0:
        chunk = _read_once(fd, remaining)
        if not chunk:
            break
        chunks.append(chunk)
        remaining -= len(chunk)
    return b"".join(chunks)


def writen(fd: int, data: bytes) -> int:
    """Write all of ``data`` to ``fd``, resuming after short writes.

    Returns the number of bytes written, which is always ``len(data)``.
    """
    view = memoryview(data)
    while view:
        try:
            written = os.write(fd, view)
        except InterruptedError:
            continue
        if written <= 0:
            raise OSError("write made no progress")
        view = view[written:]
    return len(data)


class RioReader:
    """Buffered reader over a file descriptor."""

    def __init__(self, fd: int) -> None:
        self.fd = fd
        self._buf = b""
        self._pos = 0

    def _available(self) -> int:
        return len(self._buf) - self._pos

    def _fill(self) -> bool:
        """Refill the internal buffer if it is empty; False at end of file."""
        while self._available() <= 0:
            chunk = _read_once(self.fd, RIO_BUFSIZE)
            if not chunk:
                return False
            self._buf = chunk
            self._pos = 0
        return True

    def read(self, n: int) -> bytes:
        """Return up to ``n`` bytes, reading the descriptor only when empty.

        The result holds at most what one refill of the buffer provides;
        an empty result means end of file.
        """
        if n <= 0:
            return b""
        if not self._fill():
            return b""
        count = min(n, self._available())
        data = self._buf[self._pos:self._pos + count]
        self._pos += count
        return data

    def readn(self, n: int) -> bytes:
        """Read ``n`` bytes through the buffer, shorter only at end of file."""
        chunks: list[bytes] = []
        remaining = n
        while remaining > 0:
            chunk = self.read(remaining)
            if not chunk:
                break
            chunks.append(chunk)
            remaining -= len(chunk)
        return b"".join(chunks)

    def readline(self, maxlen: int = MAXLINE) -> bytes:
        """Read one text line of at most ``maxlen - 1`` bytes.

        The newline, when reached, is kept. An empty result means end of
        file with no data read.
        """
        limit = maxlen - 1
        parts: list[bytes] = []
        taken = 0
        while taken < limit:
            if not self._fill():
                break
            window = self._buf[self._pos:self._pos + (limit - taken)]
            newline = window.find(b"\n")
            if newline >= 0:
                window = window[:newline + 1]
            parts.append(window)
            taken += len(window)
            self._pos += len(window)
            if newline >= 0:
                break
        return b"".join(parts)
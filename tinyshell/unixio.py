"""Signal-safe output and socket helpers for clients and servers."""

from __future__ import annotations

import os
import socket

LISTENQ = 1024
STDOUT_FILENO = 1

_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"


def ltoa(value: int, base: int = 10) -> str:
    """Render a non-negative integer in ``base`` using lower-case digits."""
    if not 2 <= base <= len(_DIGITS):
        raise ValueError(f"base must be between 2 and {len(_DIGITS)}: {base}")
    if value < 0:
        raise ValueError(f"value must not be negative: {value}")
    digits = []
    while True:
        value, remainder = divmod(value, base)
        digits.append(_DIGITS[remainder])
        if value <= 0:
            break
    return "".join(reversed(digits))


def sio_puts(text: str | bytes) -> int:
    """Write ``text`` straight to standard output, bypassing any buffering.

    Returns the number of bytes written.
    """
    data = text.encode() if isinstance(text, str) else bytes(text)
    return os.write(STDOUT_FILENO, data)


def sio_putl(value: int) -> int:
    """Write the decimal form of ``value`` to standard output."""
    return sio_puts(ltoa(value, 10))


def _flag(name: str) -> int:
    return getattr(socket, name, 0)


def open_clientfd(hostname: str, port: int | str) -> socket.socket:
    """Connect to ``hostname`` on a numeric ``port`` and return the socket.

    Every address the resolver offers is tried in turn; the last
    connection error is raised if none of them accepts.
    """
    flags = _flag("AI_NUMERICSERV") | _flag("AI_ADDRCONFIG")
    candidates = socket.getaddrinfo(
        hostname, str(port), type=socket.SOCK_STREAM, flags=flags
    )
    last_error: OSError | None = None
    for family, socktype, proto, _canon, address in candidates:
        try:
            sock = socket.socket(family, socktype, proto)
        except OSError as exc:
            last_error = exc
            continue
        try:
            sock.connect(address)
        except OSError as exc:
            sock.close()
            last_error = exc
            continue
        return sock
    raise last_error or OSError(f"could not connect to {hostname}:{port}")


def open_listenfd(port: int | str) -> socket.socket:
    """Open a socket listening on a numeric ``port`` on any local address."""
    flags = _flag("AI_PASSIVE") | _flag("AI_ADDRCONFIG") | _flag("AI_NUMERICSERV")
    candidates = socket.getaddrinfo(
        None, str(port), type=socket.SOCK_STREAM, flags=flags
    )
    last_error: OSError | None = None
    for family, socktype, proto, _canon, address in candidates:
        try:
            sock = socket.socket(family, socktype, proto)
        except OSError as exc:
            last_error = exc
            continue
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        try:
            sock.bind(address)
        except OSError as exc:
            sock.close()
            last_error = exc
            continue
        try:
            sock.listen(LISTENQ)
        except OSError:
            sock.close()
            raise
        return sock
    raise last_error or OSError(f"could not listen on port {port}")
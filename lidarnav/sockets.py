"""Stream and datagram sockets with millisecond timeouts and lidar result errors."""

from __future__ import annotations

import errno
import select
import socket
from contextlib import contextmanager
from enum import IntEnum, IntFlag
from typing import Iterator

from lidarnav.address import SocketAddress
from lidarnav.results import (
    InvalidData,
    LidarError,
    OperationFailed,
    OperationNotSupported,
    OperationTimeout,
)

DEFAULT_SOCKET_TIMEOUT = 10000
MAX_BACKLOG = 128


class SocketFamily(IntEnum):
    """Protocol families a socket can be created for."""

    INET = 0
    INET6 = 1
    RAW = 2


class Direction(IntFlag):
    """Directions of traffic a setting or shutdown applies to."""

    RD = 0x1
    WR = 0x2
    BOTH = RD | WR


def _seconds(timeout_ms: int | None) -> float | None:
    if timeout_ms is None:
        return None
    return timeout_ms / 1000


def _error_from(exc: OSError) -> LidarError:
    if isinstance(exc, (TimeoutError, BlockingIOError)):
        return OperationTimeout(str(exc) or None)
    if exc.errno in (errno.EAGAIN, errno.EWOULDBLOCK, errno.ETIMEDOUT):
        return OperationTimeout(str(exc) or None)
    if exc.errno == errno.EAFNOSUPPORT:
        return OperationNotSupported(str(exc) or None)
    if exc.errno == errno.EMSGSIZE:
        return InvalidData(str(exc) or None)
    return OperationFailed(str(exc) or None)


class _SocketBase:
    """State and helpers shared by stream and datagram sockets."""

    def __init__(self, sock: socket.socket) -> None:
        self._sock: socket.socket | None = sock
        self._read_timeout: float | None = None
        self._write_timeout: float | None = None
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        except OSError:
            pass
        self._apply_timeout(DEFAULT_SOCKET_TIMEOUT, Direction.BOTH)

    @property
    def sock(self) -> socket.socket:
        """The underlying socket object."""
        return self._require()

    @property
    def closed(self) -> bool:
        """True once the socket has been closed."""
        return self._sock is None

    def _require(self) -> socket.socket:
        if self._sock is None:
            raise OperationFailed("socket is closed")
        return self._sock

    @contextmanager
    def _guard(self, timeout: float | None = None) -> Iterator[socket.socket]:
        sock = self._require()
        try:
            sock.settimeout(timeout)
            yield sock
        except OSError as exc:
            raise _error_from(exc) from exc

    def _bind(self, address: SocketAddress) -> None:
        with self._guard() as sock:
            sock.bind(address.to_sockaddr())

    def _local_address(self) -> SocketAddress:
        with self._guard() as sock:
            name = sock.getsockname()
            family = sock.family
        return SocketAddress.from_sockaddr(family, name)

    def _apply_timeout(self, timeout_ms: int, direction: Direction) -> None:
        if timeout_ms < 0:
            raise ValueError("timeout must not be negative")
        direction = Direction(direction)
        value = None if timeout_ms == 0 else timeout_ms / 1000
        if direction & Direction.RD:
            self._read_timeout = value
        if direction & Direction.WR:
            self._write_timeout = value

    def _select(self, timeout_ms: int | None, for_write: bool) -> bool:
        sock = self._require()
        try:
            if for_write:
                _, ready, _ = select.select([], [sock], [], _seconds(timeout_ms))
            else:
                ready, _, _ = select.select([sock], [], [], _seconds(timeout_ms))
        except (OSError, ValueError) as exc:
            raise OperationFailed(str(exc) or None) from exc
        return bool(ready)

    def _close(self) -> None:
        if self._sock is not None:
            self._sock.close()
            self._sock = None

    def __enter__(self):
        return self

    def __exit__(self, *exc_info) -> None:
        self._close()


class StreamSocket(_SocketBase):
    """A TCP socket with keep-alive and no-delay controls."""

    def __init__(self, sock: socket.socket) -> None:
        super().__init__(sock)
        try:
            self.enable_no_delay(True)
        except LidarError:
            pass

    @classmethod
    def create(cls, family: SocketFamily = SocketFamily.INET) -> "StreamSocket":
        """Open a new stream socket of the given family."""
        family = SocketFamily(family)
        if family is SocketFamily.RAW:
            raise OperationNotSupported("stream sockets cannot be raw")
        os_family = socket.AF_INET if family is SocketFamily.INET else socket.AF_INET6
        try:
            sock = socket.socket(os_family, socket.SOCK_STREAM, 0)
        except OSError as exc:
            raise _error_from(exc) from exc
        return cls(sock)

    def bind(self, address: SocketAddress) -> None:
        """Bind the socket to a local address."""
        self._bind(address)

    def local_address(self) -> SocketAddress:
        """Return the address the socket is bound to."""
        return self._local_address()

    def set_timeout(self, timeout_ms: int, direction: Direction = Direction.BOTH) -> None:
        """Set the read and/or write timeout; zero means wait without limit."""
        self._apply_timeout(timeout_ms, direction)

    def wait_for_sent(self, timeout_ms: int | None = DEFAULT_SOCKET_TIMEOUT) -> bool:
        """Wait until the socket can be written; return False on timeout."""
        return self._select(timeout_ms, for_write=True)

    def wait_for_data(self, timeout_ms: int | None = DEFAULT_SOCKET_TIMEOUT) -> bool:
        """Wait until the socket can be read; return False on timeout."""
        return self._select(timeout_ms, for_write=False)

    def connect(self, address: SocketAddress) -> None:
        """Connect to a remote address."""
        with self._guard(self._write_timeout) as sock:
            sock.connect(address.to_sockaddr())

    def listen(self, backlog: int = MAX_BACKLOG) -> None:
        """Start accepting incoming connections."""
        with self._guard() as sock:
            sock.listen(backlog)

    def accept(self) -> tuple["StreamSocket", SocketAddress]:
        """Accept a connection; return the new socket and the peer's address."""
        with self._guard(self._read_timeout) as sock:
            conn, peer = sock.accept()
        return StreamSocket(conn), SocketAddress.from_sockaddr(conn.family, peer)

    def send(self, data: bytes) -> int:
        """Send all of ``data`` and return the number of bytes sent."""
        payload = bytes(data)
        with self._guard(self._write_timeout) as sock:
            sock.sendall(payload)
        return len(payload)

    def recv(self, size: int) -> bytes:
        """Receive at most ``size`` bytes; an empty result means the peer closed."""
        with self._guard(self._read_timeout) as sock:
            return sock.recv(size)

    def peer_address(self) -> SocketAddress:
        """Return the address of the connected peer."""
        with self._guard() as sock:
            name = sock.getpeername()
            family = sock.family
        return SocketAddress.from_sockaddr(family, name)

    def shutdown(self, direction: Direction = Direction.BOTH) -> None:
        """Shut down reading, writing or both."""
        direction = Direction(direction)
        if direction == Direction.RD:
            how = socket.SHUT_RD
        elif direction == Direction.WR:
            how = socket.SHUT_WR
        else:
            how = socket.SHUT_RDWR
        with self._guard() as sock:
            sock.shutdown(how)

    def enable_keep_alive(self, enable: bool = True) -> None:
        """Turn TCP keep-alive on or off."""
        with self._guard() as sock:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_KEEPALIVE, 1 if enable else 0)

    def enable_no_delay(self, enable: bool = True) -> None:
        """Turn Nagle's algorithm off (True) or on (False)."""
        with self._guard() as sock:
            sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1 if enable else 0)

    def close(self) -> None:
        """Close the socket; closing twice is harmless."""
        self._close()


class DGramSocket(_SocketBase):
    """A UDP socket, or a raw packet socket, with broadcast enabled."""

    def __init__(self, sock: socket.socket) -> None:
        super().__init__(sock)
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_BROADCAST, 1)
        except OSError:
            pass

    @classmethod
    def create(cls, family: SocketFamily = SocketFamily.INET) -> "DGramSocket":
        """Open a new datagram socket of the given family."""
        family = SocketFamily(family)
        if family is SocketFamily.RAW:
            os_family = getattr(socket, "AF_PACKET", None)
            if os_family is None:
                raise OperationNotSupported("raw packet sockets are not available here")
            kind = socket.SOCK_RAW
        else:
            os_family = socket.AF_INET if family is SocketFamily.INET else socket.AF_INET6
            kind = socket.SOCK_DGRAM
        try:
            sock = socket.socket(os_family, kind, 0)
        except OSError as exc:
            raise _error_from(exc) from exc
        return cls(sock)

    def bind(self, address: SocketAddress) -> None:
        """Bind the socket to a local address."""
        self._bind(address)

    def local_address(self) -> SocketAddress:
        """Return the address the socket is bound to."""
        return self._local_address()

    def set_timeout(self, timeout_ms: int, direction: Direction = Direction.BOTH) -> None:
        """Set the read and/or write timeout; zero means wait without limit."""
        self._apply_timeout(timeout_ms, direction)

    def wait_for_sent(self, timeout_ms: int | None = DEFAULT_SOCKET_TIMEOUT) -> bool:
        """Wait until the socket can be written; return False on timeout."""
        return self._select(timeout_ms, for_write=True)

    def wait_for_data(self, timeout_ms: int | None = DEFAULT_SOCKET_TIMEOUT) -> bool:
        """Wait until the socket can be read; return False on timeout."""
        return self._select(timeout_ms, for_write=False)

    def send_to(self, target: SocketAddress, data: bytes) -> int:
        """Send one datagram to ``target`` and return its length."""
        payload = bytes(data)
        with self._guard(self._write_timeout) as sock:
            return sock.sendto(payload, target.to_sockaddr())

    def recv_from(self, size: int) -> tuple[bytes, SocketAddress]:
        """Receive one datagram of at most ``size`` bytes and its sender."""
        with self._guard(self._read_timeout) as sock:
            data, source = sock.recvfrom(size)
            family = sock.family
        return data, SocketAddress.from_sockaddr(family, source)

    def close(self) -> None:
        """Close the socket; closing twice is harmless."""
        self._close()
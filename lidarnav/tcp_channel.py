"""A byte channel to a lidar reached over TCP."""

from __future__ import annotations

from lidarnav.address import SocketAddress
from lidarnav.results import LidarError, OperationFailed
from lidarnav.sockets import StreamSocket


class TCPChannelDevice:
    """Connects to a lidar by IP address and moves raw bytes to and from it."""

    def __init__(self) -> None:
        self._socket: StreamSocket | None = StreamSocket.create()

    def _require(self) -> StreamSocket:
        if self._socket is None:
            raise OperationFailed("channel is closed")
        return self._socket

    def bind(self, ip: str, port: int) -> bool:
        """Connect to ``ip``:``port``; return whether the connection was made."""
        sock = self._require()
        try:
            sock.connect(SocketAddress(ip, port))
        except LidarError:
            return False
        return True

    def close(self) -> None:
        """Close the connection."""
        if self._socket is not None:
            self._socket.close()
            self._socket = None

    def wait_for_data(self, count: int, timeout_ms: int | None = None) -> bool:
        """Wait until data can be read; ``count`` is not checked against what arrived."""
        return self._require().wait_for_data(timeout_ms)

    def send(self, data: bytes) -> int:
        """Send ``data`` and return the number of bytes sent."""
        return self._require().send(data)

    def recv(self, size: int) -> bytes:
        """Receive at most ``size`` bytes; return b"" if nothing could be read."""
        sock = self._require()
        try:
            return sock.recv(size)
        except LidarError:
            return b""

    def __enter__(self):
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
"""Raw access to a serial port on POSIX systems, with cancellable waits."""

from __future__ import annotations

import fcntl
import os
import select
import struct
import termios
import time

from lidarnav.results import InvalidData, OperationFailed, OperationTimeout

_SUPPORTED_BAUDS = (
    1200,
    1800,
    2400,
    4800,
    9600,
    19200,
    38400,
    57600,
    115200,
    230400,
    460800,
    500000,
    576000,
    921600,
    1000000,
    1152000,
    1500000,
    2000000,
    2500000,
    3000000,
    3500000,
    4000000,
)


def term_baud_bitmap(baud: int) -> int:
    """Return the terminal speed constant for ``baud``; raise InvalidData if there is none."""
    if baud in _SUPPORTED_BAUDS:
        value = getattr(termios, f"B{baud}", None)
        if value is not None:
            return value
    raise InvalidData(f"unsupported baud rate: {baud}")


class RawSerial:
    """A serial port opened in raw, non-blocking 8N1 mode without flow control."""

    RX_BUFFER_SIZE = 512
    TX_BUFFER_SIZE = 128

    def __init__(self) -> None:
        self._port_name = ""
        self._baudrate = 0
        self._flags = 0
        self._fd: int | None = None
        self._pipe: tuple[int, int] | None = None
        self._aborted = False
        self.last_sent = 0
        self.last_received = 0

    @property
    def is_open(self) -> bool:
        """True while the port is open."""
        return self._fd is not None

    @property
    def port_name(self) -> str:
        """The device path the port is bound to."""
        return self._port_name

    @property
    def baudrate(self) -> int:
        """The baud rate the port is bound to."""
        return self._baudrate

    def bind(self, port_name: str, baudrate: int, flags: int = 0) -> None:
        """Remember the device and speed that :meth:`open` will use."""
        self._port_name = port_name
        self._baudrate = int(baudrate)
        self._flags = int(flags)

    def _configure(self, fd: int) -> None:
        speed = term_baud_bitmap(self._baudrate)
        attrs = termios.tcgetattr(fd)
        cc = [0] * len(attrs[6])
        cc[termios.VMIN] = 0
        cc[termios.VTIME] = 0
        cflag = termios.CLOCAL | termios.CREAD | termios.CS8
        termios.tcsetattr(fd, termios.TCSANOW, [0, 0, cflag, 0, speed, speed, cc])
        termios.tcflush(fd, termios.TCIFLUSH)

    def _make_pipe(self) -> None:
        try:
            read_end, write_end = os.pipe()
        except OSError:
            return
        try:
            os.set_blocking(read_end, False)
            os.set_blocking(write_end, False)
        except OSError:
            os.close(read_end)
            os.close(write_end)
            return
        self._pipe = (read_end, write_end)

    def open(self) -> None:
        """Open and configure the bound port; raise OperationFailed if that fails."""
        if self.is_open:
            self.close()
        if not self._port_name:
            raise OperationFailed("no serial port bound")
        try:
            fd = os.open(self._port_name, os.O_RDWR | os.O_NOCTTY | os.O_NONBLOCK)
        except OSError as exc:
            raise OperationFailed(f"cannot open {self._port_name}: {exc}") from exc
        try:
            self._configure(fd)
        except (OSError, termios.error, InvalidData) as exc:
            os.close(fd)
            raise OperationFailed(f"cannot configure {self._port_name}: {exc}") from exc
        self._fd = fd
        self._aborted = False
        # A cleared DTR line lets the lidar motor spin.
        self.clear_dtr()
        self._make_pipe()

    def close(self) -> None:
        """Close the port; closing twice is harmless."""
        if self._fd is not None:
            try:
                os.close(self._fd)
            except OSError:
                pass
            self._fd = None
        if self._pipe is not None:
            for end in self._pipe:
                try:
                    os.close(end)
                except OSError:
                    pass
            self._pipe = None
        self._aborted = False

    def flush(self) -> None:
        """Discard data received but not yet read."""
        if self._fd is None:
            return
        try:
            termios.tcflush(self._fd, termios.TCIFLUSH)
        except (OSError, termios.error):
            pass

    def _available(self) -> int:
        try:
            buf = fcntl.ioctl(self._fd, termios.FIONREAD, b"\0\0\0\0")
        except OSError as exc:
            raise OperationFailed(f"cannot query the receive queue: {exc}") from exc
        return struct.unpack("i", buf)[0]

    def _drain_pipe(self) -> None:
        if self._pipe is None:
            return
        while True:
            try:
                if not os.read(self._pipe[0], 64):
                    return
            except OSError:
                return

    def wait_for_data(self, count: int, timeout_ms: int | None = None) -> int:
        """Wait until ``count`` bytes are queued and return how many are.

        Raises OperationTimeout when the time runs out or the wait is
        cancelled, and OperationFailed when the device fails or is closed.
        ``None`` waits without limit.
        """
        if self._fd is None:
            raise OperationFailed("serial port is not open")
        available = self._available()
        if available >= count:
            return available

        deadline = None if timeout_ms is None else time.monotonic() + timeout_ms / 1000
        while self._fd is not None:
            remaining = None if deadline is None else max(0.0, deadline - time.monotonic())
            watched = [self._fd]
            if self._pipe is not None:
                watched.append(self._pipe[0])
            try:
                ready, _, _ = select.select(watched, [], [], remaining)
            except (OSError, ValueError) as exc:
                raise OperationFailed(f"waiting for data failed: {exc}") from exc
            if not ready:
                raise OperationTimeout("no data within the timeout")
            if self._pipe is not None and self._pipe[0] in ready:
                self._drain_pipe()
                raise OperationTimeout("wait cancelled")

            available = self._available()
            if available >= count:
                return available
            if deadline is not None and time.monotonic() >= deadline:
                raise OperationTimeout("not enough data within the timeout")
            if self._baudrate > 0:
                expected = (count - available) * 8 / self._baudrate
                if remaining is None or remaining > expected:
                    time.sleep(expected)
        raise OperationFailed("serial port closed while waiting")

    def send(self, data: bytes) -> int:
        """Write ``data`` and return how many bytes went out before any error."""
        if self._fd is None or not data:
            return 0
        view = memoryview(bytes(data))
        sent = 0
        self.last_sent = 0
        while sent < len(view):
            try:
                written = os.write(self._fd, view[sent:])
            except OSError:
                return sent
            sent += written
            self.last_sent = sent
        return sent

    def recv(self, size: int) -> bytes:
        """Read at most ``size`` queued bytes; return b"" if none could be read."""
        if self._fd is None:
            return b""
        try:
            data = os.read(self._fd, size)
        except OSError:
            data = b""
        self.last_received = len(data)
        return data

    def rx_queue_count(self) -> int:
        """Return the number of received bytes waiting, or 0 if unknown."""
        if self._fd is None:
            return 0
        try:
            return self._available()
        except OperationFailed:
            return 0

    def _modem_bits(self, request_name: str) -> None:
        if self._fd is None:
            return
        request = getattr(termios, request_name, None)
        dtr = getattr(termios, "TIOCM_DTR", None)
        if request is None or dtr is None:
            return
        try:
            fcntl.ioctl(self._fd, request, struct.pack("I", dtr))
        except OSError:
            pass

    def set_dtr(self) -> None:
        """Raise the DTR line."""
        self._modem_bits("TIOCMBIS")

    def clear_dtr(self) -> None:
        """Lower the DTR line."""
        self._modem_bits("TIOCMBIC")

    def cancel_operation(self) -> None:
        """Wake a pending :meth:`wait_for_data`, which then times out."""
        self._aborted = True
        if self._pipe is None:
            return
        try:
            os.write(self._pipe[1], b"x")
        except OSError:
            pass

    def __enter__(self):
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
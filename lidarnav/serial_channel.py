"""A byte channel to a lidar reached over a serial port."""

from __future__ import annotations

from lidarnav.results import LidarError
from lidarnav.serialport import RawSerial


class SerialChannelDevice:
    """Opens a lidar's serial port and moves raw bytes to and from it."""

    def __init__(self, serial: RawSerial | None = None) -> None:
        self._serial = serial if serial is not None else RawSerial()
        self._close_pending = False

    @property
    def serial(self) -> RawSerial:
        """The underlying serial port."""
        return self._serial

    def bind(self, port_name: str, baudrate: int) -> bool:
        """Choose the device and speed to open."""
        self._close_pending = False
        self._serial.bind(port_name, baudrate)
        return True

    def open(self) -> bool:
        """Open the bound port; return whether that succeeded."""
        try:
            self._serial.open()
        except LidarError:
            return False
        return True

    def close(self) -> None:
        """Cancel any pending wait and close the port."""
        self._close_pending = True
        self._serial.cancel_operation()
        self._serial.close()

    def flush(self) -> None:
        """Discard data received but not yet read."""
        self._serial.flush()

    def wait_for_data(self, count: int, timeout_ms: int | None = None) -> bool:
        """Wait for ``count`` bytes; return False on timeout, error or after close."""
        if self._close_pending:
            return False
        try:
            self._serial.wait_for_data(count, timeout_ms)
        except LidarError:
            return False
        return True

    def send(self, data: bytes) -> int:
        """Send ``data`` and return the number of bytes written."""
        return self._serial.send(data)

    def recv(self, size: int) -> bytes:
        """Read at most ``size`` bytes."""
        return self._serial.recv(size)

    def set_dtr(self) -> None:
        """Raise the DTR line."""
        self._serial.set_dtr()

    def clear_dtr(self) -> None:
        """Lower the DTR line."""
        self._serial.clear_dtr()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
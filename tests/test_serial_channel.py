import os
import select

import pytest

from lidarnav.serial_channel import SerialChannelDevice
from lidarnav.serialport import RawSerial


@pytest.fixture
def pty_pair():
    master, slave = os.openpty()
    name = os.ttyname(slave)
    yield master, name
    os.close(master)
    os.close(slave)


@pytest.fixture
def channel(pty_pair):
    _, name = pty_pair
    device = SerialChannelDevice()
    assert device.bind(name, 115200) is True
    assert device.open() is True
    yield device
    device.close()


def test_open_missing_device_returns_false():
    device = SerialChannelDevice()
    device.bind("/nonexistent/tty-device", 115200)
    assert device.open() is False
    assert device.serial.is_open is False


def test_uses_given_serial_port():
    serial = RawSerial()
    device = SerialChannelDevice(serial)
    assert device.serial is serial


def test_receive_round_trip(pty_pair, channel):
    master, _ = pty_pair
    os.write(master, b"\xa5\x5a")
    assert channel.wait_for_data(2, 2000) is True
    assert channel.recv(2) == b"\xa5\x5a"


def test_send_round_trip(pty_pair, channel):
    master, _ = pty_pair
    assert channel.send(b"\xa5\x25") == 2
    ready, _, _ = select.select([master], [], [], 2.0)
    assert ready
    assert os.read(master, 10) == b"\xa5\x25"


def test_wait_times_out_returns_false(channel):
    assert channel.wait_for_data(1, 50) is False


def test_wait_after_close_returns_false(pty_pair, channel):
    master, _ = pty_pair
    channel.close()
    os.write(master, b"x")
    assert channel.wait_for_data(1, 50) is False
    assert channel.serial.is_open is False


def test_bind_clears_close_pending(pty_pair, channel):
    master, name = pty_pair
    channel.close()
    channel.bind(name, 115200)
    assert channel.open() is True
    os.write(master, b"ok")
    assert channel.wait_for_data(2, 2000) is True
    assert channel.recv(2) == b"ok"


def test_flush_discards_input(pty_pair, channel):
    master, _ = pty_pair
    os.write(master, b"abc")
    assert channel.wait_for_data(3, 2000) is True
    channel.flush()
    assert channel.serial.rx_queue_count() == 0


def test_context_manager_closes(pty_pair):
    _, name = pty_pair
    with SerialChannelDevice() as device:
        device.bind(name, 115200)
        assert device.open() is True
    assert device.serial.is_open is False
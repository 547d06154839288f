import socket

import pytest

from lidarnav.address import AddressType, SocketAddress, lookup_host
from lidarnav.results import InvalidData, ResultCode


def test_default_address_is_ipv4_any_with_port_zero():
    addr = SocketAddress()
    assert addr.address_type is AddressType.INET
    assert addr.host == "0.0.0.0"
    assert addr.port == 0


def test_construct_ipv4_keeps_host_and_port():
    addr = SocketAddress("192.168.1.10", 8080)
    assert addr.host == "192.168.1.10"
    assert addr.port == 8080
    assert addr.raw_address() == bytes([192, 168, 1, 10])


def test_construct_ipv6():
    addr = SocketAddress("::1", 1234, AddressType.INET6)
    assert addr.address_type is AddressType.INET6
    assert addr.host == "::1"
    assert len(addr.raw_address()) == 16
    assert addr.raw_address()[-1] == 1


def test_invalid_address_raises_invalid_data():
    addr = SocketAddress("10.0.0.1", 80)
    with pytest.raises(InvalidData) as info:
        addr.set_address("not-an-ip")
    assert info.value.code == ResultCode.INVALID_DATA
    assert addr.host == "10.0.0.1"


def test_ipv4_text_rejected_as_ipv6():
    with pytest.raises(InvalidData):
        SocketAddress("1.2.3.4.5", 1, AddressType.INET6)


def test_unspecified_kind_rejected():
    with pytest.raises(InvalidData):
        SocketAddress().set_address("10.0.0.1", AddressType.UNSPEC)


def test_set_address_keeps_port():
    addr = SocketAddress("10.0.0.1", 5000)
    addr.set_address("fe80::2", AddressType.INET6)
    assert addr.port == 5000
    assert addr.address_type is AddressType.INET6


def test_port_is_stored_as_sixteen_bits():
    addr = SocketAddress()
    addr.port = -1
    assert addr.port == 65535


def test_loopback_keeps_port():
    addr = SocketAddress("10.1.2.3", 9000)
    addr.set_loopback()
    assert addr.host == "127.0.0.1"
    assert addr.port == 9000
    addr.set_loopback(AddressType.INET6)
    assert addr.host == "::1"
    assert addr.port == 9000


def test_loopback_unspec_changes_nothing():
    addr = SocketAddress("10.1.2.3", 9000)
    addr.set_loopback(AddressType.UNSPEC)
    assert addr == SocketAddress("10.1.2.3", 9000)


def test_broadcast_ipv4():
    addr = SocketAddress("::1", 77, AddressType.INET6)
    addr.set_broadcast_ipv4()
    assert addr.address_type is AddressType.INET
    assert addr.raw_address() == b"\xff\xff\xff\xff"
    assert addr.port == 77


def test_any_address():
    addr = SocketAddress("10.1.2.3", 42)
    addr.set_any(AddressType.INET6)
    assert addr.host == "::"
    assert addr.raw_address() == bytes(16)
    addr.set_any()
    assert addr.host == "0.0.0.0"
    assert addr.port == 42


@pytest.mark.parametrize(
    "host, port, kind, family",
    [
        ("172.16.5.4", 4321, AddressType.INET, socket.AF_INET),
        ("2001:db8::7", 65535, AddressType.INET6, socket.AF_INET6),
    ],
)
def test_sockaddr_round_trip(host, port, kind, family):
    addr = SocketAddress(host, port, kind)
    back = SocketAddress.from_sockaddr(family, addr.to_sockaddr())
    assert back == addr


def test_from_sockaddr_rejects_unknown_family():
    with pytest.raises(ValueError):
        SocketAddress.from_sockaddr(socket.AF_UNSPEC, ("1.2.3.4", 1))


def test_copy_is_independent():
    addr = SocketAddress("10.0.0.1", 80)
    clone = addr.copy()
    clone.port = 81
    assert addr.port == 80
    assert clone.host == addr.host


def test_lookup_numeric_host():
    found = lookup_host("127.0.0.1", "80", False, AddressType.INET)
    assert found
    assert all(a.host == "127.0.0.1" and a.port == 80 for a in found)


def test_lookup_name_without_dns_fails_empty():
    assert lookup_host("localhost", "80", False, AddressType.INET) == []
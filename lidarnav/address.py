"""Socket addresses for IPv4 and IPv6 endpoints, and host name lookup."""

from __future__ import annotations

import socket
from enum import IntEnum

from lidarnav.results import InvalidData

_PORT_MASK = 0xFFFF


class AddressType(IntEnum):
    """Kinds of address a :class:`SocketAddress` can hold."""

    UNSPEC = 0
    INET = 1
    INET6 = 2


_FAMILIES = {
    AddressType.INET: socket.AF_INET,
    AddressType.INET6: socket.AF_INET6,
    AddressType.UNSPEC: socket.AF_UNSPEC,
}

_ANY = {
    AddressType.INET: "0.0.0.0",
    AddressType.INET6: "::",
}

_LOOPBACK = {
    AddressType.INET: "127.0.0.1",
    AddressType.INET6: "::1",
}


class SocketAddress:
    """An IPv4 or IPv6 address together with a port.

    A fresh address is the IPv4 any-address with port 0. Changing the address
    keeps the port; ports are stored as 16-bit unsigned values.
    """

    __slots__ = ("_type", "_packed", "_port")

    def __init__(
        self,
        address: str | None = None,
        port: int = 0,
        address_type: AddressType = AddressType.INET,
    ) -> None:
        self._type = AddressType.INET
        self._packed = bytes(4)
        self._port = 0
        if address is not None:
            self.set_address(address, address_type)
        self.port = port

    @property
    def address_type(self) -> AddressType:
        """The kind of address held."""
        return self._type

    @property
    def port(self) -> int:
        """The port number."""
        return self._port

    @port.setter
    def port(self, value: int) -> None:
        self._port = int(value) & _PORT_MASK

    @property
    def host(self) -> str:
        """The address in its textual form."""
        return socket.inet_ntop(_FAMILIES[self._type], self._packed)

    def set_address(self, address: str, address_type: AddressType = AddressType.INET) -> None:
        """Parse ``address`` as the given kind; raise InvalidData if it is not one."""
        address_type = AddressType(address_type)
        if address_type is AddressType.UNSPEC:
            raise InvalidData("an address kind must be given")
        try:
            packed = socket.inet_pton(_FAMILIES[address_type], address)
        except (OSError, ValueError, TypeError) as exc:
            raise InvalidData(f"not a valid {address_type.name} address: {address!r}") from exc
        self._type = address_type
        self._packed = packed

    def _set_known(self, table: dict[AddressType, str], address_type: AddressType) -> None:
        address_type = AddressType(address_type)
        text = table.get(address_type)
        if text is None:
            return
        self._type = address_type
        self._packed = socket.inet_pton(_FAMILIES[address_type], text)

    def set_loopback(self, address_type: AddressType = AddressType.INET) -> None:
        """Switch to the loopback address of the given kind, keeping the port."""
        self._set_known(_LOOPBACK, address_type)

    def set_broadcast_ipv4(self) -> None:
        """Switch to the IPv4 broadcast address, keeping the port."""
        self._type = AddressType.INET
        self._packed = socket.inet_pton(socket.AF_INET, "255.255.255.255")

    def set_any(self, address_type: AddressType = AddressType.INET) -> None:
        """Switch to the wildcard address of the given kind, keeping the port."""
        self._set_known(_ANY, address_type)

    def raw_address(self) -> bytes:
        """Return the address bytes in network order."""
        return self._packed

    def to_sockaddr(self) -> tuple:
        """Return the address in the form the ``socket`` module expects."""
        if self._type is AddressType.INET6:
            return (self.host, self._port, 0, 0)
        return (self.host, self._port)

    @classmethod
    def from_sockaddr(cls, family: int, sockaddr: tuple) -> "SocketAddress":
        """Build an address from a ``socket`` family and address tuple."""
        if family == socket.AF_INET:
            address_type = AddressType.INET
        elif family == socket.AF_INET6:
            address_type = AddressType.INET6
        else:
            raise ValueError(f"unsupported address family: {family}")
        host = sockaddr[0]
        if address_type is AddressType.INET6 and "%" in host:
            host = host.split("%", 1)[0]
        return cls(host, sockaddr[1], address_type)

    def copy(self) -> "SocketAddress":
        """Return an independent copy of this address."""
        clone = SocketAddress()
        clone._type = self._type
        clone._packed = self._packed
        clone._port = self._port
        return clone

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SocketAddress):
            return NotImplemented
        return (self._type, self._packed, self._port) == (other._type, other._packed, other._port)

    def __hash__(self) -> int:
        return hash((self._type, self._packed, self._port))

    def __repr__(self) -> str:
        return f"SocketAddress({self.host!r}, {self._port}, {self._type.name})"


def lookup_host(
    hostname: str | None,
    service: str | None,
    perform_dns: bool = True,
    address_type: AddressType = AddressType.UNSPEC,
) -> list[SocketAddress]:
    """Resolve ``hostname`` and ``service`` to addresses; return [] if that fails.

    Without ``perform_dns`` only numeric hosts and services are accepted.
    """
    flags = socket.AI_PASSIVE
    if not perform_dns:
        flags |= socket.AI_NUMERICHOST | socket.AI_NUMERICSERV
    try:
        infos = socket.getaddrinfo(hostname, service, _FAMILIES[AddressType(address_type)], 0, 0, flags)
    except (OSError, UnicodeError):
        return []
    return [
        SocketAddress.from_sockaddr(family, sockaddr)
        for family, _type, _proto, _name, sockaddr in infos
        if family in (socket.AF_INET, socket.AF_INET6)
    ]
import socket

import pytest

from lidarnav.address import SocketAddress
from lidarnav.results import OperationFailed, OperationNotSupported, OperationTimeout
from lidarnav.sockets import (
    DEFAULT_SOCKET_TIMEOUT,
    MAX_BACKLOG,
    DGramSocket,
    Direction,
    SocketFamily,
    StreamSocket,
)


@pytest.fixture
def pair():
    server = StreamSocket.create()
    server.bind(SocketAddress("127.0.0.1", 0))
    server.listen()
    client = StreamSocket.create()
    client.connect(server.local_address())
    conn, peer = server.accept()
    yield server, client, conn, peer
    for sock in (server, client, conn):
        sock.close()


def test_constants_from_source():
    assert DEFAULT_SOCKET_TIMEOUT == 10000
    assert MAX_BACKLOG == 128
    assert Direction.BOTH == Direction.RD | Direction.WR
    with StreamSocket.create() as server:
        server.set_timeout(DEFAULT_SOCKET_TIMEOUT, Direction.BOTH)
        server.bind(SocketAddress("127.0.0.1", 0))
        server.listen(MAX_BACKLOG)
        assert server.local_address().port > 0


def test_bind_gives_a_port():
    with StreamSocket.create() as server:
        server.bind(SocketAddress("127.0.0.1", 0))
        local = server.local_address()
        assert local.host == "127.0.0.1"
        assert local.port > 0


def test_send_and_recv_round_trip(pair):
    _, client, conn, _ = pair
    assert client.send(b"hello lidar") == len(b"hello lidar")
    assert conn.recv(64) == b"hello lidar"
    conn.send(b"reply")
    assert client.recv(64) == b"reply"


def test_peer_addresses_match(pair):
    _, client, conn, peer = pair
    assert conn.peer_address() == client.local_address()
    assert peer == client.local_address()
    assert client.peer_address() == conn.local_address()


def test_wait_for_data(pair):
    _, client, conn, _ = pair
    assert conn.wait_for_data(20) is False
    client.send(b"x")
    assert conn.wait_for_data(2000) is True
    assert client.wait_for_sent(2000) is True


def test_recv_timeout_raises(pair):
    _, _, conn, _ = pair
    conn.set_timeout(50, Direction.RD)
    with pytest.raises(OperationTimeout):
        conn.recv(10)


def test_accept_timeout_raises():
    with StreamSocket.create() as server:
        server.bind(SocketAddress("127.0.0.1", 0))
        server.listen(1)
        server.set_timeout(50, Direction.RD)
        with pytest.raises(OperationTimeout):
            server.accept()


def test_shutdown_write_ends_stream(pair):
    _, client, conn, _ = pair
    client.shutdown(Direction.WR)
    assert conn.recv(10) == b""


def test_keep_alive_and_no_delay(pair):
    _, client, _, _ = pair
    client.enable_keep_alive(True)
    assert client.sock.getsockopt(socket.SOL_SOCKET, socket.SO_KEEPALIVE) != 0
    client.enable_keep_alive(False)
    assert client.sock.getsockopt(socket.SOL_SOCKET, socket.SO_KEEPALIVE) == 0
    client.enable_no_delay(False)
    assert client.sock.getsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY) == 0


def test_connect_refused_raises():
    probe = StreamSocket.create()
    probe.bind(SocketAddress("127.0.0.1", 0))
    address = probe.local_address()
    probe.close()
    with StreamSocket.create() as client:
        with pytest.raises(OperationFailed):
            client.connect(address)


def test_raw_stream_socket_not_supported():
    with pytest.raises(OperationNotSupported):
        StreamSocket.create(SocketFamily.RAW)


def test_closed_socket_raises():
    sock = StreamSocket.create()
    sock.close()
    sock.close()
    assert sock.closed is True
    with pytest.raises(OperationFailed):
        sock.recv(1)
    with pytest.raises(OperationFailed):
        sock.wait_for_data(10)


def test_negative_timeout_rejected():
    with StreamSocket.create() as sock:
        with pytest.raises(ValueError):
            sock.set_timeout(-1)


def test_datagram_round_trip():
    with DGramSocket.create() as receiver, DGramSocket.create() as sender:
        receiver.bind(SocketAddress("127.0.0.1", 0))
        sender.bind(SocketAddress("127.0.0.1", 0))
        assert sender.send_to(receiver.local_address(), b"scan") == 4
        assert receiver.wait_for_data(2000) is True
        data, source = receiver.recv_from(64)
        assert data == b"scan"
        assert source == sender.local_address()


def test_datagram_recv_timeout():
    with DGramSocket.create() as receiver:
        receiver.bind(SocketAddress("127.0.0.1", 0))
        receiver.set_timeout(50)
        with pytest.raises(OperationTimeout):
            receiver.recv_from(16)


def test_datagram_close_twice():
    sock = DGramSocket.create()
    sock.close()
    sock.close()
    assert sock.closed is True
    with pytest.raises(OperationFailed):
        sock.wait_for_sent(10)
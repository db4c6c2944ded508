import socket
import struct
import sys

import pytest

from tlschain import connection
from tlschain.errors import ConnectError, ResolutionError, SocketCreateError, TimeoutSettingError
from tlschain.models import ConnectionParams


@pytest.fixture
def listener():
    server = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    server.bind(("127.0.0.1", 0))
    server.listen(1)
    yield server
    server.close()


def test_connects_to_first_address(listener):
    port = listener.getsockname()[1]
    sock = connection.open_connection(ConnectionParams("127.0.0.1", port, 12, 2000))
    try:
        assert sock.getpeername() == ("127.0.0.1", port)
        assert sock.gettimeout() is None  # blocking; bounded by SO_RCVTIMEO
    finally:
        sock.close()


def test_connection_refused():
    probe = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    probe.bind(("127.0.0.1", 0))
    port = probe.getsockname()[1]
    probe.close()
    with pytest.raises(ConnectError) as exc:
        connection.open_connection(ConnectionParams("127.0.0.1", port, 12, 2000))
    assert exc.value.code == 13


def test_resolution_failure(monkeypatch):
    def fail(*args, **kwargs):
        raise socket.gaierror(socket.EAI_NONAME, "Name or service not known")

    monkeypatch.setattr(connection.socket, "getaddrinfo", fail)
    with pytest.raises(ResolutionError) as exc:
        connection.resolve("nonexistent.invalid", 443)
    assert exc.value.code == 10


def test_empty_resolution(monkeypatch):
    monkeypatch.setattr(connection.socket, "getaddrinfo", lambda *a, **k: [])
    with pytest.raises(ResolutionError):
        connection.resolve("example.com", 443)


def test_socket_create_failure(monkeypatch):
    monkeypatch.setattr(
        connection.socket,
        "getaddrinfo",
        lambda *a, **k: [(socket.AF_INET, socket.SOCK_STREAM, 6, "", ("192.0.2.1", 443))],
    )

    def fail(*args, **kwargs):
        raise OSError("too many open files")

    monkeypatch.setattr(connection.socket, "socket", fail)
    with pytest.raises(SocketCreateError):
        connection.open_connection(ConnectionParams("example.com"))


class NoTimeoutSocket:
    closed = False

    def setsockopt(self, *args):
        raise OSError("not supported")

    def close(self):
        self.closed = True


def test_timeout_setting_failure_closes_socket(monkeypatch):
    sock = NoTimeoutSocket()
    monkeypatch.setattr(
        connection.socket,
        "getaddrinfo",
        lambda *a, **k: [(socket.AF_INET, socket.SOCK_STREAM, 6, "", ("192.0.2.1", 443))],
    )
    monkeypatch.setattr(connection.socket, "socket", lambda *a: sock)
    with pytest.raises(TimeoutSettingError) as exc:
        connection.open_connection(ConnectionParams("example.com"))
    assert exc.value.code == 12
    assert sock.closed


@pytest.mark.skipif(sys.platform == "win32", reason="timeval layout")
def test_timeval_split():
    assert struct.unpack("ll", connection._timeval(1500)) == (1, 500000)
    assert struct.unpack("ll", connection._timeval(30000)) == (30, 0)

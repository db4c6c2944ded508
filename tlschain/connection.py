import logging
import socket
import struct
import sys

from .errors import ConnectError, ResolutionError, SocketCreateError, TimeoutSettingError

logger = logging.getLogger(__name__)


def resolve(host, port):
    """All stream addresses for host:port, any address family."""
    try:
        addresses = socket.getaddrinfo(host, port, socket.AF_UNSPEC, socket.SOCK_STREAM)
    except (socket.gaierror, UnicodeError) as e:
        raise ResolutionError(f"Failed to resolve {host}:{port}: {e}", host=host, port=port) from e
    if not addresses:
        raise ResolutionError(f"No addresses for {host}:{port}", host=host, port=port)
    return addresses


def _timeval(timeout_ms):
    if sys.platform == "win32":
        # Windows takes a DWORD of milliseconds
        return struct.pack("L", timeout_ms)
    seconds, millis = divmod(timeout_ms, 1000)
    return struct.pack("ll", seconds, millis * 1000)


def set_receive_timeout(sock, timeout_ms):
    """
    Bound blocking reads with SO_RCVTIMEO.

    The socket stays in blocking mode, which pyOpenSSL needs for a plain
    do_handshake(); a Python-level settimeout() would make it non-blocking.
    """
    try:
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_RCVTIMEO, _timeval(timeout_ms))
    except (OSError, struct.error) as e:
        raise TimeoutSettingError(f"Failed to set the timeout setting: {e}") from e


def open_connection(params):
    """
    Open a blocking TCP connection to the first resolved address.

    No retries. The receive timeout is set before connect, so it also bounds
    connect on platforms that reuse it there.
    """
    logger.info(f"Resolving {params.host}:{params.port}")
    family, socktype, proto, _, address = resolve(params.host, params.port)[0]

    try:
        sock = socket.socket(family, socktype, proto)
    except OSError as e:
        raise SocketCreateError(f"Failed to create socket: {e}") from e

    try:
        set_receive_timeout(sock, params.connect_timeout_ms)
        try:
            sock.connect(address)
        except OSError as e:
            raise ConnectError(
                f"Failed to connect to {params.host} on port {params.port}: {e}",
                host=params.host,
                port=params.port,
            ) from e
    except Exception:
        sock.close()
        raise

    logger.info(f"Connected to {params.host} ({address[0]}) on port {params.port}")
    return sock

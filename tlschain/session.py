import ipaddress
import logging

from OpenSSL import SSL

from .config import CIPHER_LIST, VERIFY_DEPTH
from .errors import CipherPolicyError, HandshakeError, UnsupportedVersionError
from .models import ProtocolVersion, SessionSummary, version_label

logger = logging.getLogger(__name__)

# Version pin per protocol code; looked up lazily because older OpenSSL
# builds lack some of the constants.
_PINNED_VERSIONS = {
    ProtocolVersion.SSLv3: "SSL3_VERSION",
    ProtocolVersion.TLS1_0: "TLS1_VERSION",
    ProtocolVersion.TLS1_1: "TLS1_1_VERSION",
    ProtocolVersion.TLS1_2: "TLS1_2_VERSION",
}


def build_context(version, cipher_list=CIPHER_LIST):
    """
    Client context for one protocol code.

      2  - version-flexible negotiation with SSLv3 excluded
      3  - SSLv3 only
      10 - TLS 1.0 only, 11 - TLS 1.1 only, 12 - TLS 1.2 only

    Peer verification is disabled; the chain is reported, not judged.
    """
    try:
        version = ProtocolVersion(version)
    except ValueError:
        raise UnsupportedVersionError(f"Wrong SSL version/type provided: {version}") from None

    context = SSL.Context(SSL.TLS_METHOD)
    if version is ProtocolVersion.SSLv2:
        context.set_options(SSL.OP_ALL | SSL.OP_NO_SSLv3)
    else:
        pinned = getattr(SSL, _PINNED_VERSIONS[version], None)
        if pinned is None:
            raise UnsupportedVersionError(f"{version.label} is not available in this OpenSSL build")
        if version is ProtocolVersion.SSLv3:
            context.set_options(SSL.OP_ALL | SSL.OP_NO_SSLv2)
        try:
            context.set_min_proto_version(pinned)
            context.set_max_proto_version(pinned)
        except (SSL.Error, ValueError) as e:
            # OpenSSL leaves the error queue empty when the version is compiled out
            detail = e if e.args and e.args[0] else f"{version.label} is disabled in this OpenSSL build"
            raise UnsupportedVersionError(f"Cannot restrict the context to {version.label}: {detail}") from e

    context.set_verify(SSL.VERIFY_NONE, lambda *args: True)
    context.set_verify_depth(VERIFY_DEPTH)
    try:
        context.set_cipher_list(cipher_list.encode("ascii"))
    except (SSL.Error, UnicodeError) as e:
        raise CipherPolicyError(f'No valid ciphers provided in "{cipher_list}": {e}') from e
    return context


def _server_name(host):
    try:
        ipaddress.ip_address(host)
    except ValueError:
        return host
    # SNI must not carry IP literals
    return None


class TLSSession:
    """A TLS client session over an already connected socket."""

    def __init__(self, sock, context, requested_version, host=None):
        self.sock = sock
        self.context = context
        self.requested_version = requested_version
        self.server_name = _server_name(host) if host else None
        self.connection = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def handshake(self):
        logger.info(f"Starting TLS handshake ({version_label(self.requested_version)})")
        connection = SSL.Connection(self.context, self.sock)
        connection.set_connect_state()
        if self.server_name:
            connection.set_tlsext_host_name(self.server_name.encode("idna"))
        try:
            connection.do_handshake()
        except (SSL.Error, OSError) as e:
            raise HandshakeError(f"Error connecting SSL: {e!r}") from e
        self.connection = connection
        logger.info(f"SSL connection opened ({connection.get_protocol_version_name()})")
        return self

    def summary(self):
        if self.connection is None:
            return SessionSummary(socket_id=self.sock.fileno())
        return SessionSummary(
            socket_id=self.sock.fileno(),
            protocol=self.connection.get_protocol_version_name(),
            cipher=self.connection.get_cipher_name(),
        )

    def peer_certificate(self):
        if self.connection is None:
            return None
        return self.connection.get_peer_certificate()

    def peer_chain(self):
        if self.connection is None:
            return None
        return self.connection.get_peer_cert_chain()

    def close(self):
        if self.connection is not None:
            logger.info("SSL shutting down")
            try:
                self.connection.shutdown()
            except (SSL.Error, OSError) as e:
                # Peer may already have dropped the connection
                logger.debug(f"SSL shutdown incomplete: {e!r}")
            self.connection = None
        self.sock.close()
        logger.info("SSL connection closed")

from __future__ import annotations

import enum
from dataclasses import dataclass, field

from asn1crypto import core
from asn1crypto import x509 as asn1_x509

from .config import DEFAULT_PORT, DEFAULT_TIMEOUT_MS, DEFAULT_VERSION


class SanKind(enum.Enum):
    DNS = "DNS"
    IP = "IP"
    EMAIL = "EMAIL"
    UNKNOWN = "UNKNOWN"


class ProtocolVersion(enum.IntEnum):
    """Protocol codes accepted on the command line."""

    SSLv2 = 2
    SSLv3 = 3
    TLS1_0 = 10
    TLS1_1 = 11
    TLS1_2 = 12

    @property
    def label(self):
        return self.name.replace("_", ".")


def version_label(code):
    try:
        return ProtocolVersion(code).label
    except ValueError:
        return "UNKNOWN"


@dataclass(frozen=True)
class SubjectAltNameEntry:
    kind: SanKind
    value: str


@dataclass(frozen=True)
class RawExtension:
    """One extension as stored in the certificate, payload still encoded."""

    identifier: str  # dotted OID
    value: bytes
    critical: bool = False


@dataclass(frozen=True)
class CertificateRecord:
    """
    One element of the presented chain.

    ``subject_dn`` and ``issuer_dn`` hold the DER encoding of the names so
    they can be compared byte for byte; the ``*_text`` fields are for display.
    """

    subject_dn: bytes
    issuer_dn: bytes
    subject_text: str = ""
    issuer_text: str = ""
    version: str = "v3"
    raw_extensions: tuple[RawExtension, ...] = ()
    der: bytes = field(default=b"", repr=False)

    @classmethod
    def from_der(cls, der):
        """Parse a DER certificate. Raises ValueError if it is malformed."""
        try:
            cert = asn1_x509.Certificate.load(der)
            tbs = cert["tbs_certificate"]
            extensions = tbs["extensions"]
            if isinstance(extensions, core.Void):
                extensions = []
            raw = tuple(
                RawExtension(
                    identifier=ext["extn_id"].dotted,
                    value=ext["extn_value"].contents,
                    critical=bool(ext["critical"].native),
                )
                for ext in extensions
            )
            return cls(
                subject_dn=cert.subject.dump(),
                issuer_dn=cert.issuer.dump(),
                subject_text=cert.subject.human_friendly,
                issuer_text=cert.issuer.human_friendly,
                version=tbs["version"].native,
                raw_extensions=raw,
                der=der,
            )
        except (ValueError, TypeError, KeyError) as e:
            raise ValueError(f"malformed certificate: {e}") from e

    @property
    def self_issued(self):
        return self.subject_dn == self.issuer_dn


@dataclass(frozen=True)
class CertificateInfo:
    common_name: str | None
    is_ca: bool
    chain_has_self_signed_anchor: bool
    sans: tuple[SubjectAltNameEntry, ...]
    chain: tuple[CertificateRecord, ...]
    # (extension name, rendered value) for the leaf, SAN excluded
    extensions: tuple[tuple[str, str], ...] = ()

    def __post_init__(self):
        if not self.chain:
            raise ValueError("chain must contain at least the leaf certificate")

    @property
    def depth(self):
        return len(self.chain)


@dataclass(frozen=True)
class ConnectionParams:
    host: str
    port: int = DEFAULT_PORT
    requested_version: int = DEFAULT_VERSION
    connect_timeout_ms: int = DEFAULT_TIMEOUT_MS

    def __post_init__(self):
        if not self.host:
            raise ValueError("host is empty")
        if not (0 < self.port <= 0xFFFF):
            raise ValueError(f"port out of range: {self.port}")
        if not (0 <= self.connect_timeout_ms <= 0xFFFFFFFF):
            raise ValueError(f"timeout out of range: {self.connect_timeout_ms}")


@dataclass(frozen=True)
class SessionSummary:
    """What the handshake produced, independent of certificate content."""

    socket_id: int
    protocol: str | None = None
    cipher: str | None = None

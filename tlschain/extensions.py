"""
Generic X.509v3 extension decoding.

Extension payloads are opaque DER whose structure depends on the extension
type, so decoding goes through a registry keyed by the extension's dotted
OID. Each registered decoder turns the payload into an ordered list of
``(name, value)`` string pairs; the Subject Alternative Name pairs are then
classified into ``SubjectAltNameEntry`` values.
"""
import logging

from asn1crypto import core
from asn1crypto import x509 as asn1_x509

from .errors import ExtensionDecodeError
from .models import SanKind, SubjectAltNameEntry

logger = logging.getLogger(__name__)

SUBJECT_ALT_NAME = "2.5.29.17"
ISSUER_ALT_NAME = "2.5.29.18"
BASIC_CONSTRAINTS = "2.5.29.19"
KEY_USAGE = "2.5.29.15"
EXTENDED_KEY_USAGE = "2.5.29.37"
NETSCAPE_CERT_TYPE = "2.16.840.1.113730.1.1"


class ExtensionDecoder:
    """Decoder for one extension type: ASN.1 spec plus a value formatter."""

    def __init__(self, identifier, name, spec, formatter):
        self.identifier = identifier
        self.name = name
        self.spec = spec
        self.formatter = formatter

    def parse(self, data):
        """Load ``data`` as this extension's ASN.1 type, fully parsed."""
        try:
            value = self.spec.load(bytes(data), strict=True)
            # asn1crypto parses lazily; force every nested value now
            value.native
        except (ValueError, TypeError, KeyError) as e:
            raise ExtensionDecodeError(
                f"{self.name} extension payload does not decode: {e}",
                identifier=self.identifier,
            ) from e
        return value

    def decode(self, data):
        parsed = self.parse(data)
        try:
            return self.formatter(parsed)
        except (ValueError, TypeError, KeyError) as e:
            raise ExtensionDecodeError(
                f"{self.name} extension payload does not decode: {e}",
                identifier=self.identifier,
            ) from e

    def __repr__(self):
        return f"ExtensionDecoder({self.identifier!r}, {self.name!r})"


_DECODERS = {}


def register(identifier, name, spec):
    """Decorator registering a formatter as the decoder for ``identifier``."""

    def wrap(formatter):
        _DECODERS[identifier] = ExtensionDecoder(identifier, name, spec, formatter)
        return formatter

    return wrap


def lookup(identifier):
    return _DECODERS.get(identifier)


def registered_identifiers():
    return sorted(_DECODERS)


def decode_extension(identifier, data):
    """Decode one extension payload into ``(name, value)`` pairs."""
    decoder = lookup(identifier)
    if decoder is None:
        raise ExtensionDecodeError(
            f"no decoder registered for extension {identifier}",
            identifier=identifier,
        )
    return decoder.decode(data)


# -----------------------------------
# General names (subjectAltName, issuerAltName)
# -----------------------------------

# Labels follow the ASN.1 GeneralName alternatives.
_GENERAL_NAME_LABELS = {
    "other_name": "othername",
    "rfc822_name": "email",
    "dns_name": "DNS",
    "x400_address": "X400Name",
    "directory_name": "DirName",
    "edi_party_name": "EdiPartyName",
    "uniform_resource_identifier": "URI",
    "ip_address": "iPAddress",
    "registered_id": "Registered ID",
}


def _general_name_value(general_name):
    choice = general_name.name
    chosen = general_name.chosen
    if choice == "directory_name":
        return chosen.human_friendly
    if choice == "registered_id":
        return chosen.dotted
    if choice in ("other_name", "x400_address", "edi_party_name"):
        return "<unsupported>"
    return str(chosen.native)


def _general_names(parsed):
    return [
        (_GENERAL_NAME_LABELS.get(gn.name, gn.name), _general_name_value(gn))
        for gn in parsed
    ]


register(SUBJECT_ALT_NAME, "subjectAltName", asn1_x509.GeneralNames)(_general_names)
register(ISSUER_ALT_NAME, "issuerAltName", asn1_x509.GeneralNames)(_general_names)


# -----------------------------------
# Usage and constraint extensions
# -----------------------------------

@register(BASIC_CONSTRAINTS, "basicConstraints", asn1_x509.BasicConstraints)
def _basic_constraints(parsed):
    out = [("CA", "TRUE" if parsed["ca"].native else "FALSE")]
    pathlen = parsed["path_len_constraint"].native
    if pathlen is not None:
        out.append(("pathlen", str(pathlen)))
    return out


# Bit order of RFC 5280 keyUsage
KEY_USAGE_BITS = (
    "digital_signature",
    "non_repudiation",
    "key_encipherment",
    "data_encipherment",
    "key_agreement",
    "key_cert_sign",
    "crl_sign",
    "encipher_only",
    "decipher_only",
)


@register(KEY_USAGE, "keyUsage", asn1_x509.KeyUsage)
def _key_usage(parsed):
    flags = parsed.native
    return [(bit, "") for bit in KEY_USAGE_BITS if bit in flags]


@register(EXTENDED_KEY_USAGE, "extendedKeyUsage", asn1_x509.ExtKeyUsageSyntax)
def _extended_key_usage(parsed):
    return [(purpose.native, purpose.dotted) for purpose in parsed]


NETSCAPE_CERT_TYPE_BITS = (
    "ssl_client",
    "ssl_server",
    "email",
    "object_signing",
    "reserved",
    "ssl_ca",
    "email_ca",
    "object_signing_ca",
)


class NetscapeCertType(core.BitString):
    _map = dict(enumerate(NETSCAPE_CERT_TYPE_BITS))


@register(NETSCAPE_CERT_TYPE, "nsCertType", NetscapeCertType)
def _netscape_cert_type(parsed):
    flags = parsed.native
    return [(bit, "") for bit in NETSCAPE_CERT_TYPE_BITS if bit in flags]


# -----------------------------------
# Subject Alternative Name extraction
# -----------------------------------

_SAN_KINDS = {
    "dns": SanKind.DNS,
    "ipaddress": SanKind.IP,
    "email": SanKind.EMAIL,
}


def classify(name):
    """Map a decoded general-name label to a SAN kind, case-insensitively."""
    return _SAN_KINDS.get(name.lower(), SanKind.UNKNOWN)


def decode_subject_alt_names(record):
    """
    Collect the SAN entries of ``record`` in extension storage order.

    A certificate without the extension yields an empty tuple. Several SAN
    extensions are concatenated in the order they are stored. Any payload
    that fails to decode raises ExtensionDecodeError and nothing is returned.
    """
    entries = []
    for ext in record.raw_extensions:
        if ext.identifier != SUBJECT_ALT_NAME:
            logger.debug(f"Skipping extension {ext.identifier}")
            continue
        for name, value in decode_extension(ext.identifier, ext.value):
            entries.append(SubjectAltNameEntry(classify(name), value))
    return tuple(entries)


# -----------------------------------
# Display of the remaining extensions
# -----------------------------------

UNDECODABLE = "<undecodable>"


def _pairs_text(pairs):
    return ", ".join(f"{name}:{value}" if value else name for name, value in pairs)


def describe_extensions(record):
    """
    ``(name, text)`` for every registered extension of ``record`` other than
    subjectAltName, in storage order. Unregistered extensions are left out;
    a payload that does not decode is shown as undecodable.
    """
    described = []
    for ext in record.raw_extensions:
        decoder = lookup(ext.identifier)
        if decoder is None or ext.identifier == SUBJECT_ALT_NAME:
            continue
        name = f"{decoder.name} (critical)" if ext.critical else decoder.name
        try:
            text = _pairs_text(decoder.decode(ext.value))
        except ExtensionDecodeError as e:
            logger.warning(f"Cannot display extension: {e}")
            text = UNDECODABLE
        described.append((name, text))
    return tuple(described)

import logging
from dataclasses import dataclass

from asn1crypto import x509 as asn1_x509

from . import extensions
from .errors import ExtensionDecodeError
from .models import CertificateInfo

logger = logging.getLogger(__name__)

CLIENT_AUTH = "1.3.6.1.5.5.7.3.2"
SERVER_AUTH = "1.3.6.1.5.5.7.3.1"
NS_SGC = "2.16.840.1.113730.4.1"
MS_SGC = "1.3.6.1.4.1.311.10.3.3"

NS_ANY_CA = {"ssl_ca", "email_ca", "object_signing_ca"}


def common_name(record):
    """First commonName attribute of the subject, or None when there is none."""
    subject = asn1_x509.Name.load(record.subject_dn)
    for rdn in subject.chosen:
        for attribute in rdn:
            if attribute["type"].native == "common_name":
                value = attribute["value"].native
                return value if isinstance(value, str) else str(value)
    return None


@dataclass
class _UsageFlags:
    key_usage: set = None
    ext_key_usage: set = None
    basic_ca: bool = None
    ns_cert_type: set = None


def _usage_flags(record):
    flags = _UsageFlags()
    for ext in record.raw_extensions:
        decoder = extensions.lookup(ext.identifier)
        if decoder is None:
            continue
        if ext.identifier == extensions.KEY_USAGE:
            flags.key_usage = set(decoder.parse(ext.value).native)
        elif ext.identifier == extensions.EXTENDED_KEY_USAGE:
            flags.ext_key_usage = {purpose.dotted for purpose in decoder.parse(ext.value)}
        elif ext.identifier == extensions.BASIC_CONSTRAINTS:
            flags.basic_ca = bool(decoder.parse(ext.value)["ca"].native)
        elif ext.identifier == extensions.NETSCAPE_CERT_TYPE:
            flags.ns_cert_type = set(decoder.parse(ext.value).native)
    return flags


def _eku_rejects(flags, accepted):
    return flags.ext_key_usage is not None and not (flags.ext_key_usage & accepted)


def _ku_rejects(flags, wanted):
    return flags.key_usage is not None and not (flags.key_usage & wanted)


def _ns_rejects(flags, wanted):
    return flags.ns_cert_type is not None and wanted not in flags.ns_cert_type


def _check_ca(record, flags):
    """
    CA classification as OpenSSL's check_ca() does it.

    0 = not a CA, 1 = basicConstraints CA, 3 = v1 self-issued root,
    4 = keyUsage present (and allowing certSign), 5 = Netscape CA type.
    """
    if _ku_rejects(flags, {"key_cert_sign"}):
        return 0
    if flags.basic_ca is not None:
        return 1 if flags.basic_ca else 0
    if record.version == "v1" and record.self_issued:
        return 3
    if flags.key_usage is not None:
        return 4
    if flags.ns_cert_type is not None and flags.ns_cert_type & NS_ANY_CA:
        return 5
    return 0


def _check_ssl_ca(record, flags):
    ca = _check_ca(record, flags)
    if ca == 0:
        return False
    if ca != 5:
        return True
    return flags.ns_cert_type is not None and "ssl_ca" in flags.ns_cert_type


def _ssl_client(record, flags, check_ca):
    if _eku_rejects(flags, {CLIENT_AUTH}):
        return False
    if check_ca:
        return _check_ssl_ca(record, flags)
    if _ku_rejects(flags, {"digital_signature", "key_agreement"}):
        return False
    return not _ns_rejects(flags, "ssl_client")


def _ssl_server(record, flags, check_ca):
    if _eku_rejects(flags, {SERVER_AUTH, NS_SGC, MS_SGC}):
        return False
    if check_ca:
        return _check_ssl_ca(record, flags)
    if _ns_rejects(flags, "ssl_server"):
        return False
    return not _ku_rejects(flags, {"digital_signature", "key_encipherment", "key_agreement"})


PURPOSES = {
    "sslclient": _ssl_client,
    "sslserver": _ssl_server,
}


def purpose_check(record, purpose="sslclient", check_ca=True):
    """
    Whether ``record`` qualifies for ``purpose``; with ``check_ca`` the
    question is whether it may act as a CA for that purpose.

    Usage extensions that fail to decode make the certificate unfit for any
    purpose.
    """
    try:
        check = PURPOSES[purpose]
    except KeyError:
        raise ValueError(f"unknown certificate purpose: {purpose}") from None
    try:
        flags = _usage_flags(record)
    except ExtensionDecodeError as e:
        logger.warning(f"Purpose check: {e}")
        return False
    logger.debug(f"Purpose check {purpose} (ca={check_ca}) on {flags}")
    return check(record, flags, check_ca)


def is_ca(record):
    return purpose_check(record, "sslclient", check_ca=True)


def has_self_signed_anchor(chain):
    """True if any certificate in the chain names itself as its issuer."""
    return any(record.subject_dn == record.issuer_dn for record in chain)


def build_certificate_info(leaf, chain):
    """Run SAN decoding and chain analysis; raises ExtensionDecodeError."""
    logger.info("Decoding Subject Alternative Names")
    sans = extensions.decode_subject_alt_names(leaf)
    logger.info(f"Found {len(sans)} Subject Alternative Name(s)")

    cn = common_name(leaf)
    leaf_is_ca = is_ca(leaf)
    anchor = has_self_signed_anchor(chain)
    logger.info(f"Analyzed chain of depth {len(chain)}: CN={cn!r}, CA={leaf_is_ca}, self-signed anchor={anchor}")
    described = extensions.describe_extensions(leaf)

    return CertificateInfo(
        common_name=cn,
        is_ca=leaf_is_ca,
        chain_has_self_signed_anchor=anchor,
        sans=sans,
        chain=tuple(chain),
        extensions=described,
    )

import datetime

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import NameOID

from tlschain.models import CertificateRecord

_KEY = ec.generate_private_key(ec.SECP256R1())


def name(cn=None, org="Example Org"):
    attributes = [x509.NameAttribute(NameOID.ORGANIZATION_NAME, org)]
    if cn is not None:
        attributes.append(x509.NameAttribute(NameOID.COMMON_NAME, cn))
    return x509.Name(attributes)


def key_usage(**flags):
    values = dict(
        digital_signature=False,
        content_commitment=False,
        key_encipherment=False,
        data_encipherment=False,
        key_agreement=False,
        key_cert_sign=False,
        crl_sign=False,
        encipher_only=False,
        decipher_only=False,
    )
    values.update(flags)
    return x509.KeyUsage(**values)


def build_der(subject, issuer=None, extensions=()):
    now = datetime.datetime.now(datetime.timezone.utc)
    builder = (
        x509.CertificateBuilder()
        .subject_name(subject)
        .issuer_name(issuer if issuer is not None else subject)
        .public_key(_KEY.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - datetime.timedelta(days=1))
        .not_valid_after(now + datetime.timedelta(days=30))
    )
    for extension in extensions:
        builder = builder.add_extension(extension, critical=False)
    cert = builder.sign(_KEY, hashes.SHA256())
    return cert.public_bytes(serialization.Encoding.DER)


@pytest.fixture
def make_der():
    return build_der


@pytest.fixture
def make_record():
    def make(subject=None, issuer=None, extensions=()):
        subject = subject if subject is not None else name("leaf.example")
        return CertificateRecord.from_der(build_der(subject, issuer, extensions))

    return make


@pytest.fixture
def x509_name():
    return name


@pytest.fixture
def usage():
    return key_usage

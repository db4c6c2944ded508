import pytest
from cryptography import x509

from tlschain import config
from tlschain.models import (
    CertificateInfo,
    CertificateRecord,
    ConnectionParams,
    ProtocolVersion,
    version_label,
)


def test_record_from_der(make_record, x509_name):
    record = make_record(
        subject=x509_name("leaf.example"),
        issuer=x509_name("Issuer CA"),
        extensions=[x509.SubjectAlternativeName([x509.DNSName("leaf.example")])],
    )
    assert record.version == "v3"
    assert record.subject_dn != record.issuer_dn
    assert "leaf.example" in record.subject_text
    assert "Issuer CA" in record.issuer_text
    assert [ext.identifier for ext in record.raw_extensions] == ["2.5.29.17"]
    assert not record.raw_extensions[0].critical


def test_record_without_extensions(make_record):
    record = make_record()
    assert record.raw_extensions == ()
    assert record.self_issued


@pytest.mark.parametrize("der", [b"", b"not a certificate"])
def test_record_from_garbage(der):
    with pytest.raises(ValueError):
        CertificateRecord.from_der(der)


def test_certificate_info_needs_a_chain():
    with pytest.raises(ValueError):
        CertificateInfo(common_name=None, is_ca=False, chain_has_self_signed_anchor=False, sans=(), chain=())


@pytest.mark.parametrize("kwargs", [
    {"host": ""},
    {"host": "example.com", "port": 0},
    {"host": "example.com", "port": 65536},
    {"host": "example.com", "connect_timeout_ms": -1},
])
def test_connection_params_validation(kwargs):
    with pytest.raises(ValueError):
        ConnectionParams(**kwargs)


def test_connection_params_defaults():
    params = ConnectionParams("example.com")
    assert params.port == 443
    assert params.requested_version == 12
    assert params.connect_timeout_ms == 30000


@pytest.mark.parametrize("code,label", [(2, "SSLv2"), (3, "SSLv3"), (10, "TLS1.0"), (11, "TLS1.1"), (12, "TLS1.2"), (0, "UNKNOWN")])
def test_version_labels(code, label):
    assert version_label(code) == label


def test_protocol_codes():
    assert [int(v) for v in ProtocolVersion] == [2, 3, 10, 11, 12]


def test_environment_overrides():
    env = {"TLSCHAIN_LOG": "debug", "TLSCHAIN_TIMEOUT_MS": "1500", "TLSCHAIN_CIPHER_LIST": "HIGH"}
    assert config.log_level(env) == 10
    assert config.timeout_ms(env) == 1500
    assert config.cipher_list(env) == "HIGH"


def test_invalid_environment_overrides_fall_back():
    env = {"TLSCHAIN_LOG": "chatty", "TLSCHAIN_TIMEOUT_MS": "soon", "TLSCHAIN_CIPHER_LIST": "  "}
    assert config.log_level(env) == 20
    assert config.timeout_ms(env) == config.DEFAULT_TIMEOUT_MS
    assert config.cipher_list(env) == config.CIPHER_LIST

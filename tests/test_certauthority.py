import ipaddress
import os

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import serialization
from cryptography.x509.oid import NameOID

from inigo.certauthority import CertAuthority


def _load_cert(path):
    with open(path, "rb") as handle:
        data = handle.read()
    assert data.startswith(b"-----BEGIN CERTIFICATE-----")
    return x509.load_pem_x509_certificate(data)


def _load_key(path):
    with open(path, "rb") as handle:
        return serialization.load_pem_private_key(handle.read(), password=None)


def _common_name(cert):
    return cert.subject.get_attributes_for_oid(NameOID.COMMON_NAME)[0].value


@pytest.fixture(scope="module")
def depot(tmp_path_factory):
    return tmp_path_factory.mktemp("depot")


@pytest.fixture(scope="module")
def authority(depot):
    return CertAuthority(depot, "some-name")


def test_creates_ca_cert_and_key_files(authority, depot):
    key, cert = authority.ca_and_key()
    assert os.path.isfile(cert)
    assert os.path.isfile(key)
    assert os.path.dirname(cert) == str(depot)


def test_ca_certificate_has_common_name(authority):
    _, cert = authority.ca_and_key()
    assert _common_name(_load_cert(cert)) == "some-name"


def test_ca_key_matches_ca_certificate(authority):
    key, cert = authority.ca_and_key()
    ca_cert = _load_cert(cert)
    assert (
        _load_key(key).public_key().public_numbers()
        == ca_cert.public_key().public_numbers()
    )
    assert ca_cert.extensions.get_extension_for_class(x509.BasicConstraints).value.ca


def test_generates_host_certificates(authority, depot):
    key, cert = authority.generate_self_signed_cert_and_key(
        "some-component", ["some-component"], False
    )
    assert os.path.isfile(cert)
    assert os.path.isfile(key)
    assert os.path.dirname(key) == str(depot)
    assert key != cert


def test_host_certificate_contents(authority):
    _, ca_path = authority.ca_and_key()
    ca_cert = _load_cert(ca_path)
    key_path, cert_path = authority.generate_self_signed_cert_and_key(
        "some-component", ["some-component"], False
    )
    cert = _load_cert(cert_path)

    assert _common_name(cert) == "some-component"
    assert cert.issuer == ca_cert.subject
    cert.verify_directly_issued_by(ca_cert)

    alt_names = cert.extensions.get_extension_for_class(x509.SubjectAlternativeName).value
    assert alt_names.get_values_for_type(x509.DNSName) == ["some-component"]
    assert alt_names.get_values_for_type(x509.IPAddress) == [
        ipaddress.ip_address("127.0.0.1")
    ]
    assert not cert.extensions.get_extension_for_class(x509.BasicConstraints).value.ca
    assert (
        _load_key(key_path).public_key().public_numbers()
        == cert.public_key().public_numbers()
    )


def test_generates_intermediate_certificate_authorities(authority):
    key, cert = authority.generate_self_signed_cert_and_key(
        "some-intermediate", ["some-intermediate"], True
    )
    assert os.path.isfile(key)
    parsed = _load_cert(cert)
    assert _common_name(parsed) == "some-intermediate"
    assert parsed.extensions.get_extension_for_class(x509.BasicConstraints).value.ca


def test_invalid_depot_dir_fails(tmp_path):
    with pytest.raises(FileNotFoundError, match="(?i)no such file or directory"):
        CertAuthority(tmp_path / "random", "some-name")
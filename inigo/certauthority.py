"""A throwaway certificate authority that writes its keys and certificates to disk."""

import datetime
import ipaddress
import os
import tempfile

from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.x509.oid import ExtendedKeyUsageOID, NameOID

_FILE_MODE = 0o655


def _new_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=4096)


def _one_year_from(moment):
    try:
        return moment.replace(year=moment.year + 1)
    except ValueError:
        # 29 February rolls over to 1 March.
        return moment.replace(year=moment.year + 1, month=3, day=1)


def _name(common_name):
    return x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, common_name)])


def _export_key(key):
    return key.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.TraditionalOpenSSL,
        serialization.NoEncryption(),
    )


def _sign(common_name, public_key, issuer, issuer_key, *, ca, alt_names=()):
    now = datetime.datetime.now(datetime.timezone.utc)
    usage = x509.KeyUsage(
        digital_signature=not ca, content_commitment=False, key_encipherment=not ca,
        data_encipherment=False, key_agreement=False, key_cert_sign=ca, crl_sign=ca,
        encipher_only=False, decipher_only=False,
    )
    builder = (
        x509.CertificateBuilder()
        .subject_name(_name(common_name))
        .issuer_name(issuer)
        .public_key(public_key)
        .serial_number(x509.random_serial_number())
        .not_valid_before(now)
        .not_valid_after(_one_year_from(now))
        .add_extension(x509.BasicConstraints(ca=ca, path_length=None), critical=True)
        .add_extension(usage, critical=True)
        .add_extension(x509.SubjectKeyIdentifier.from_public_key(public_key), critical=False)
        .add_extension(
            x509.AuthorityKeyIdentifier.from_issuer_public_key(issuer_key.public_key()),
            critical=False,
        )
    )
    if not ca:
        builder = builder.add_extension(
            x509.ExtendedKeyUsage([ExtendedKeyUsageOID.SERVER_AUTH, ExtendedKeyUsageOID.CLIENT_AUTH]),
            critical=False,
        )
    if alt_names:
        builder = builder.add_extension(x509.SubjectAlternativeName(list(alt_names)), critical=False)
    return builder.sign(issuer_key, hashes.SHA256())


def _write(path, data):
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, _FILE_MODE)
    with os.fdopen(fd, "wb") as handle:
        handle.write(data)


class CertAuthority:
    """A certificate authority whose key and certificate live in ``depot_dir``."""

    def __init__(self, depot_dir, common_name):
        self.depot_dir = os.fspath(depot_dir)
        root_key = _new_key()
        root = _sign(common_name, root_key.public_key(), _name(common_name), root_key, ca=True)
        ca_key = _new_key()
        ca_cert = _sign(common_name, ca_key.public_key(), root.subject, root_key, ca=True)

        self._ca_key_path = os.path.join(self.depot_dir, common_name + ".key")
        _write(self._ca_key_path, _export_key(ca_key))
        self._ca_cert_path = os.path.join(self.depot_dir, common_name + ".crt")
        _write(self._ca_cert_path, ca_cert.public_bytes(serialization.Encoding.PEM))

    def ca_and_key(self):
        """Return the paths of the CA key and CA certificate, in that order."""
        return self._ca_key_path, self._ca_cert_path

    def generate_self_signed_cert_and_key(self, common_name, sans, intermediate_ca):
        """Issue a certificate for 127.0.0.1 and ``sans``; return its key and cert paths."""
        key = _new_key()
        with open(self._ca_cert_path, "rb") as handle:
            ca_cert = x509.load_pem_x509_certificate(handle.read())
        with open(self._ca_key_path, "rb") as handle:
            ca_key = serialization.load_pem_private_key(handle.read(), password=None)

        alt_names = [x509.IPAddress(ipaddress.ip_address("127.0.0.1"))]
        alt_names += [x509.DNSName(name) for name in sans or ()]
        cert = _sign(
            common_name, key.public_key(), ca_cert.subject, ca_key,
            ca=bool(intermediate_ca), alt_names=alt_names,
        )

        paths = []
        for data in (_export_key(key), cert.public_bytes(serialization.Encoding.PEM)):
            fd, path = tempfile.mkstemp(prefix=common_name, dir=self.depot_dir)
            with os.fdopen(fd, "wb") as handle:
                handle.write(data)
            paths.append(path)
        return paths[0], paths[1]
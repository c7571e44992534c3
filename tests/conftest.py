import datetime
import os
import sys

import jwt
import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec, rsa
from cryptography.x509.oid import NameOID

# Add package root to path
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))


def _self_signed_pem(private_key, common_name: str) -> str:
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, common_name)])
    now = datetime.datetime.now(datetime.timezone.utc)
    cert = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(private_key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - datetime.timedelta(days=1))
        .not_valid_after(now + datetime.timedelta(days=1))
        .sign(private_key, hashes.SHA256())
    )
    return cert.public_bytes(serialization.Encoding.PEM).decode("ascii")


@pytest.fixture(scope="session")
def rsa_key() -> rsa.RSAPrivateKey:
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def other_rsa_key() -> rsa.RSAPrivateKey:
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def ec_key() -> ec.EllipticCurvePrivateKey:
    return ec.generate_private_key(ec.SECP256R1())


@pytest.fixture(scope="session")
def rsa_cert_pem(rsa_key) -> str:
    return _self_signed_pem(rsa_key, "k1.example.com")


@pytest.fixture(scope="session")
def other_rsa_cert_pem(other_rsa_key) -> str:
    return _self_signed_pem(other_rsa_key, "k2.example.com")


@pytest.fixture(scope="session")
def ec_cert_pem(ec_key) -> str:
    return _self_signed_pem(ec_key, "ec.example.com")


@pytest.fixture
def make_token():
    def _make(private_key, kid: str | None = "k1", claims: dict | None = None) -> str:
        headers = {"kid": kid} if kid is not None else None
        return jwt.encode(
            claims or {"sub": "user@example.com", "aud": "tokenauth"},
            private_key,
            algorithm="RS256",
            headers=headers,
        )

    return _make

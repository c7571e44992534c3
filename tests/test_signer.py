import os
import sys

import pytest
from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from tokenauth.errors import ConfigError, FormatError
from tokenauth.security.signer import ServiceAccountSigner


def test_email_returns_configured_identity(rsa_key):
    signer = ServiceAccountSigner("robot@project.iam.example.com", rsa_key)

    assert signer.email() == "robot@project.iam.example.com"


@pytest.mark.parametrize("email", ["", None, "   "])
def test_email_missing_is_config_error(rsa_key, email):
    signer = ServiceAccountSigner(email, rsa_key)

    with pytest.raises(ConfigError):
        signer.email()


def test_sign_produces_pkcs1v15_sha256_signature(rsa_key):
    signer = ServiceAccountSigner("robot@project.iam.example.com", rsa_key)
    content = b"header.payload"

    signature = signer.sign(content)

    assert len(signature) == rsa_key.key_size // 8
    rsa_key.public_key().verify(signature, content, padding.PKCS1v15(), hashes.SHA256())
    with pytest.raises(InvalidSignature):
        rsa_key.public_key().verify(signature, b"header.other", padding.PKCS1v15(), hashes.SHA256())


def test_sign_without_private_key_is_config_error():
    signer = ServiceAccountSigner("robot@project.iam.example.com", None)

    with pytest.raises(ConfigError):
        signer.sign(b"content")


def test_from_pem_parses_private_key(rsa_key):
    pem = rsa_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )

    signer = ServiceAccountSigner.from_pem("robot@project.iam.example.com", pem)
    signature = signer.sign(b"content")

    rsa_key.public_key().verify(signature, b"content", padding.PKCS1v15(), hashes.SHA256())


def test_from_pem_without_key_builds_email_only_signer():
    signer = ServiceAccountSigner.from_pem("robot@project.iam.example.com", "")

    assert signer.email() == "robot@project.iam.example.com"
    with pytest.raises(ConfigError):
        signer.sign(b"content")


def test_from_pem_rejects_garbage():
    with pytest.raises(FormatError):
        ServiceAccountSigner.from_pem("robot@project.iam.example.com", "garbage")

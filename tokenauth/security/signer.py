from __future__ import annotations

from cryptography.hazmat.primitives.asymmetric import rsa
from jwt.algorithms import RSAAlgorithm

from tokenauth.errors import ConfigError
from tokenauth.security.key_parser import parse_private_key

_RS256 = RSAAlgorithm(RSAAlgorithm.SHA256)


class ServiceAccountSigner:
    """Signs content with a locally held RSA private key on behalf of a service account."""

    def __init__(self, email: str | None, private_key: rsa.RSAPrivateKey | None):
        self._email = (email or "").strip()
        self._private_key = private_key

    @classmethod
    def from_pem(cls, email: str | None, pem: str | bytes | None) -> "ServiceAccountSigner":
        private_key = parse_private_key(pem) if pem else None
        return cls(email, private_key)

    def email(self) -> str:
        if not self._email:
            raise ConfigError("Service account email not available.")
        return self._email

    def sign(self, content: bytes) -> bytes:
        """Return the RSA PKCS#1 v1.5 signature of the SHA-256 digest of content."""
        if self._private_key is None:
            raise ConfigError("Private key not available.")
        return _RS256.sign(content, self._private_key)

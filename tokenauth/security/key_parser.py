from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass
import json
import re

from cryptography import x509
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from tokenauth.errors import FormatError, KeyTypeError

_PEM_BLOCK = re.compile(
    rb"-----BEGIN ([A-Z0-9 ]+)-----(.*?)-----END \1-----",
    re.DOTALL,
)


@dataclass(frozen=True)
class PublicKey:
    """An RSA public key paired with the key id it was published under."""

    kid: str
    key: rsa.RSAPublicKey


def _as_bytes(value: str | bytes) -> bytes:
    if isinstance(value, bytes):
        return value
    return value.encode("utf-8")


def _decode_pem_block(data: bytes) -> bytes:
    """Return the DER bytes of the first PEM block in data."""
    match = _PEM_BLOCK.search(data)
    if match is None:
        raise FormatError("No private key data found in the supplied value.")

    # Encrypted legacy blocks carry "Name: value" headers ahead of the body.
    body = b"".join(line for line in match.group(2).splitlines() if b":" not in line)
    try:
        der = base64.b64decode(b"".join(body.split()), validate=True)
    except binascii.Error as exc:
        raise FormatError(f"Private key PEM block is not valid base64: {exc}") from exc
    if not der:
        raise FormatError("No private key data found in the supplied value.")
    return der


def parse_public_key(kid: str, pem: str | bytes) -> PublicKey:
    """Decode a PEM-wrapped X.509 certificate and extract its RSA public key."""
    try:
        cert = x509.load_pem_x509_certificate(_as_bytes(pem))
    except ValueError as exc:
        raise FormatError(f"Invalid certificate for key id '{kid}': {exc}") from exc

    try:
        public_key = cert.public_key()
    except (ValueError, UnsupportedAlgorithm) as exc:
        raise FormatError(f"Unreadable public key for key id '{kid}': {exc}") from exc

    if not isinstance(public_key, rsa.RSAPublicKey):
        raise KeyTypeError(f"Certificate for key id '{kid}' is not an RSA key.")
    return PublicKey(kid=kid, key=public_key)


def parse_public_keys(document: str | bytes) -> list[PublicKey]:
    """
    Parse a key document of the form {"<kid>": "<PEM certificate>", ...}.

    All-or-nothing: the first entry that fails to parse aborts the whole document.
    """
    try:
        payload = json.loads(document)
    except ValueError as exc:
        raise FormatError(f"Key document is not valid JSON: {exc}") from exc

    if not isinstance(payload, dict):
        raise FormatError("Key document must be a JSON object of key id to certificate.")

    result: list[PublicKey] = []
    for kid, pem in payload.items():
        if not isinstance(pem, str):
            raise FormatError(f"Certificate for key id '{kid}' must be a string.")
        result.append(parse_public_key(kid, pem))
    return result


def parse_private_key(pem: str | bytes) -> rsa.RSAPrivateKey:
    """
    Parse an unencrypted RSA private key from a PEM block.

    The block body is parsed as DER whatever its BEGIN label says: PKCS#8 is
    tried first, then PKCS#1.
    """
    der = _decode_pem_block(_as_bytes(pem or b""))

    try:
        private_key = serialization.load_der_private_key(der, password=None)
    except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
        raise FormatError(
            f"Private key should be a PEM encoded PKCS#1 or PKCS#8 key; parse error: {exc}"
        ) from exc

    if not isinstance(private_key, rsa.RSAPrivateKey):
        raise KeyTypeError("Private key is not an RSA key.")
    return private_key

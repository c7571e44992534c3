from __future__ import annotations

import binascii
from typing import Iterable, Sequence

from jwt.algorithms import RSAAlgorithm
from jwt.utils import base64url_decode

from tokenauth.errors import FormatError, SignatureError, UnknownKeyIDError
from tokenauth.security.key_parser import PublicKey

_RS256 = RSAAlgorithm(RSAAlgorithm.SHA256)


def split_token(token: str) -> list[str]:
    parts = (token or "").split(".")
    if len(parts) != 3:
        raise FormatError(
            f"Token must have exactly 3 segments separated by '.', got {len(parts)}."
        )
    return parts


def signing_input(parts: Sequence[str]) -> bytes:
    return f"{parts[0]}.{parts[1]}".encode("utf-8")


def verify_signature(parts: Sequence[str], key: PublicKey) -> None:
    """
    Verify the RS256 signature carried in the third token segment.

    The signing input is the header and payload segments joined by '.'; the
    signature is checked with RSA PKCS#1 v1.5 over its SHA-256 digest using
    exactly the key given.
    """
    if len(parts) != 3:
        raise FormatError("Token must be split into exactly 3 segments.")

    try:
        signature = base64url_decode(parts[2])
    except (binascii.Error, ValueError) as exc:
        raise SignatureError(f"Malformed signature encoding: {exc}") from exc

    if not _RS256.verify(signing_input(parts), key.key, signature):
        raise SignatureError(f"Signature verification failed for key id '{key.kid}'.")


def find_key(keys: Iterable[PublicKey], kid: str) -> PublicKey:
    for key in keys:
        if key.kid == kid:
            return key
    raise UnknownKeyIDError(kid)

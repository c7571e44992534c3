from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import httpx
import jwt
from jwt import InvalidTokenError

from tokenauth.errors import FormatError, SignatureError
from tokenauth.security.key_source import KeySource
from tokenauth.security.signature import find_key, split_token, verify_signature

_SUPPORTED_ALGORITHM = "RS256"


@dataclass(frozen=True)
class VerifiedToken:
    kid: str
    header: dict[str, Any] = field(default_factory=dict)


class TokenVerifier:
    """
    Verifies the signature layer of RS256 bearer tokens.

    Claims (exp, aud, iss, ...) are not checked. A token that passes here was
    signed by one of the key source's keys, nothing more.
    """

    def __init__(self, key_source: KeySource):
        self.key_source = key_source

    def verify(self, token: str, http_client: httpx.Client | None = None) -> VerifiedToken:
        raw = (token or "").strip()
        if not raw:
            raise FormatError("Missing token.")

        parts = split_token(raw)

        try:
            header = jwt.get_unverified_header(raw)
        except InvalidTokenError as exc:
            raise FormatError(f"Invalid token header: {exc}") from exc

        kid = str(header.get("kid") or "").strip()
        if not kid:
            raise FormatError("Token header missing key id (kid).")

        alg = header.get("alg")
        if alg != _SUPPORTED_ALGORITHM:
            raise SignatureError(f"Unsupported token algorithm: {alg!r}")

        keys = self.key_source.keys(http_client)
        verify_signature(parts, find_key(keys, kid))
        return VerifiedToken(kid=kid, header=dict(header))

from __future__ import annotations

from functools import lru_cache

from fastapi import Header, HTTPException

from tokenauth.config import get_settings
from tokenauth.errors import (
    FormatError,
    SignatureError,
    TokenAuthError,
    UnknownKeyIDError,
)
from tokenauth.logging import get_logger
from tokenauth.security.key_source import HTTPKeySource
from tokenauth.security.signer import ServiceAccountSigner
from tokenauth.security.token_verifier import TokenVerifier, VerifiedToken

logger = get_logger("tokenauth.auth_dependency")

_REJECTED = (FormatError, SignatureError, UnknownKeyIDError)


@lru_cache(maxsize=1)
def get_key_source() -> HTTPKeySource:
    settings = get_settings()
    return HTTPKeySource(
        settings.keys_uri,
        timeout_seconds=settings.http_timeout_seconds,
    )


@lru_cache(maxsize=1)
def get_verifier() -> TokenVerifier:
    return TokenVerifier(get_key_source())


@lru_cache(maxsize=1)
def get_signer() -> ServiceAccountSigner:
    settings = get_settings()
    return ServiceAccountSigner.from_pem(
        settings.service_account_email,
        settings.private_key_pem,
    )


def _extract_bearer_token(authorization: str | None) -> str | None:
    header = authorization or ""
    prefix = "Bearer "
    if not header.startswith(prefix):
        return None
    token = header[len(prefix) :].strip()
    return token or None


def require_verified_token(
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> VerifiedToken:
    token = _extract_bearer_token(authorization)
    if not token:
        raise HTTPException(status_code=401, detail="Missing Bearer access token.")

    try:
        return get_verifier().verify(token)
    except _REJECTED as exc:
        logger.info("Rejected bearer token", reason=str(exc), error_type=type(exc).__name__)
        raise HTTPException(status_code=401, detail=str(exc)) from exc
    except TokenAuthError as exc:
        raise HTTPException(status_code=502, detail=f"Failed to load public keys: {exc}") from exc

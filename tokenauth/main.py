from fastapi import Depends, FastAPI, HTTPException, status

from tokenauth.config import get_settings
from tokenauth.errors import TokenAuthError
from tokenauth.logging import configure_logging
from tokenauth.schemas import IdentityResponse, KeySetResponse, VerifiedTokenResponse
from tokenauth.security.auth_dependency import (
    get_key_source,
    get_signer,
    require_verified_token,
)
from tokenauth.security.token_verifier import VerifiedToken

_settings = get_settings()
configure_logging(_settings.log_level, _settings.log_format)

app = FastAPI(title="Token Auth Service", version="2026.1")


@app.get("/health")
def health_check():
    return {"status": "ok"}


@app.get("/auth/keys", response_model=KeySetResponse)
def list_public_keys():
    """Returns the cached key ids, refreshing them from the key endpoint when stale."""
    try:
        snapshot = get_key_source().current_snapshot()
    except TokenAuthError as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Failed to load public keys: {e}",
        ) from e
    return KeySetResponse(
        keys=[key.kid for key in snapshot.keys],
        expires_at=snapshot.expires_at,
    )


@app.get("/auth/verify", response_model=VerifiedTokenResponse)
def verify_bearer_token(verified: VerifiedToken = Depends(require_verified_token)):
    return VerifiedTokenResponse(kid=verified.kid, header=verified.header)


@app.get("/auth/identity", response_model=IdentityResponse)
def service_identity():
    try:
        return IdentityResponse(email=get_signer().email())
    except TokenAuthError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e)) from e

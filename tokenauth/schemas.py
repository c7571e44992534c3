from datetime import datetime
from typing import Any, Dict, List

from pydantic import BaseModel, Field


class KeySetResponse(BaseModel):
    keys: List[str] = Field(default_factory=list, description="Key ids currently cached")
    expires_at: datetime | None = Field(
        default=None,
        description="Instant after which the cached key set is refreshed.",
    )


class VerifiedTokenResponse(BaseModel):
    kid: str
    header: Dict[str, Any] = Field(default_factory=dict)


class IdentityResponse(BaseModel):
    email: str

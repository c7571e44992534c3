from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
import os
from pathlib import Path

from tokenauth.errors import ConfigError


def _as_float(value: str | None, default: float) -> float:
    if value is None:
        return default
    try:
        return float(value.strip())
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    keys_uri: str
    http_timeout_seconds: float
    service_account_email: str
    private_key_pem: str
    log_level: str
    log_format: str


def _read_private_key_pem() -> str:
    inline = (os.getenv("TOKENAUTH_PRIVATE_KEY", "") or "").strip()
    if inline:
        # Env files commonly carry PEM blocks with escaped newlines.
        return inline.replace("\\n", "\n")

    path = (os.getenv("TOKENAUTH_PRIVATE_KEY_FILE", "") or "").strip()
    if not path:
        return ""
    try:
        return Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Could not read private key file '{path}': {exc}") from exc


def load_settings() -> Settings:
    return Settings(
        keys_uri=(os.getenv("TOKENAUTH_KEYS_URI", "") or "").strip(),
        http_timeout_seconds=max(
            0.1, _as_float(os.getenv("TOKENAUTH_HTTP_TIMEOUT_SECONDS"), 5.0)
        ),
        service_account_email=(
            os.getenv("TOKENAUTH_SERVICE_ACCOUNT_EMAIL", "") or ""
        ).strip(),
        private_key_pem=_read_private_key_pem(),
        log_level=(os.getenv("LOG_LEVEL", "INFO") or "INFO").strip(),
        log_format=(os.getenv("LOG_FORMAT", "json") or "json").strip().lower(),
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return load_settings()

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
import threading
from typing import Mapping, Protocol, Sequence

import httpx

from tokenauth.clock import Clock, SystemClock
from tokenauth.errors import ConfigError, FormatError, NetworkError
from tokenauth.logging import get_logger
from tokenauth.security.key_parser import PublicKey, parse_public_keys

logger = get_logger("tokenauth.key_source")

_MAX_AGE_PREFIX = "max-age="


@dataclass(frozen=True)
class KeySnapshot:
    keys: tuple[PublicKey, ...] = ()
    expires_at: datetime | None = None

    @property
    def is_empty(self) -> bool:
        return not self.keys


_EMPTY = KeySnapshot()


class KeySource(Protocol):
    def keys(
        self,
        http_client: httpx.Client | None = None,
        *,
        timeout: float | None = None,
    ) -> list[PublicKey]: ...


class StaticKeySource:
    """Serves a fixed set of keys; never expires and never touches the network."""

    def __init__(self, keys: Sequence[PublicKey]):
        self._keys = tuple(keys)

    def keys(
        self,
        http_client: httpx.Client | None = None,
        *,
        timeout: float | None = None,
    ) -> list[PublicKey]:
        return list(self._keys)


def find_max_age(headers: Mapping[str, str]) -> timedelta:
    """Read the max-age directive from a Cache-Control header."""
    cache_control = headers.get("cache-control") or ""
    for directive in cache_control.split(","):
        directive = directive.strip()
        if not directive.startswith(_MAX_AGE_PREFIX):
            continue
        raw = directive[len(_MAX_AGE_PREFIX):]
        digits = raw[1:] if raw.startswith(("+", "-")) else raw
        # Plain ASCII digits only: int() would also take "1_000" or non-ASCII numerals.
        if not (digits.isascii() and digits.isdigit()):
            raise FormatError(f"Invalid max-age value in Cache-Control header: {raw!r}")
        try:
            return timedelta(seconds=int(raw))
        except OverflowError as exc:
            raise FormatError(f"max-age value out of range: {raw!r}") from exc
    raise ConfigError("Could not find expiry time from HTTP headers.")


class HTTPKeySource:
    """
    Fetches RSA public keys from a remote HTTP endpoint and caches them in memory.

    Freshness is driven by the max-age directive of the response's Cache-Control
    header. A single lock covers the whole of keys(), network fetch included, so
    concurrent callers never trigger more than one refresh at a time.
    """

    def __init__(
        self,
        key_uri: str,
        http_client: httpx.Client | None = None,
        *,
        clock: Clock | None = None,
        timeout_seconds: float | None = None,
    ):
        self._key_uri = (key_uri or "").strip()
        self._timeout_seconds = timeout_seconds or 5.0
        self._owns_client = http_client is None
        self._http_client = http_client or httpx.Client(timeout=self._timeout_seconds)
        self._clock = clock or SystemClock()

        self._lock = threading.Lock()
        self._snapshot: KeySnapshot = _EMPTY

    @property
    def key_uri(self) -> str:
        return self._key_uri

    @property
    def snapshot(self) -> KeySnapshot:
        return self._snapshot

    def keys(
        self,
        http_client: httpx.Client | None = None,
        *,
        timeout: float | None = None,
    ) -> list[PublicKey]:
        """Return the cached keys, refreshing them first if the cache is stale."""
        return list(self.current_snapshot(http_client, timeout=timeout).keys)

    def current_snapshot(
        self,
        http_client: httpx.Client | None = None,
        *,
        timeout: float | None = None,
    ) -> KeySnapshot:
        """Like keys(), but returns the keys and their expiry read under one lock."""
        with self._lock:
            if self._snapshot.is_empty or self._has_expired():
                self._refresh(http_client, timeout)
            else:
                logger.debug("Serving cached public keys", key_uri=self._key_uri)
            return self._snapshot

    def close(self) -> None:
        """Close the default HTTP client; clients passed in by the caller are left open."""
        if self._owns_client:
            self._http_client.close()

    def __enter__(self) -> "HTTPKeySource":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _has_expired(self) -> bool:
        expires_at = self._snapshot.expires_at
        return expires_at is None or expires_at <= self._clock.now()

    def _refresh(self, http_client: httpx.Client | None, timeout: float | None) -> None:
        # A failed refresh leaves the cache empty; the previous snapshot is not
        # served as a fallback.
        self._snapshot = _EMPTY
        try:
            snapshot = self._fetch(http_client or self._http_client, timeout)
        except Exception as exc:
            logger.warning(
                "Public key refresh failed",
                key_uri=self._key_uri,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            raise

        self._snapshot = snapshot
        logger.info(
            "Public keys refreshed",
            key_uri=self._key_uri,
            keys_count=len(snapshot.keys),
            expires_at=snapshot.expires_at.isoformat() if snapshot.expires_at else None,
        )

    def _fetch(self, client: httpx.Client, timeout: float | None) -> KeySnapshot:
        if not self._key_uri:
            raise ConfigError("Public key URI is not configured.")

        request_timeout = timeout if timeout is not None else self._timeout_seconds
        try:
            response = client.get(self._key_uri, timeout=request_timeout)
        except httpx.HTTPError as exc:
            raise NetworkError(f"Public key request failed: {exc}") from exc

        if response.status_code >= 400:
            raise NetworkError(
                f"Public key request failed with HTTP {response.status_code}"
            )

        new_keys = parse_public_keys(response.content)
        max_age = find_max_age(response.headers)
        try:
            expires_at = self._clock.now() + max_age
        except OverflowError as exc:
            raise FormatError(f"max-age of {max_age.total_seconds():.0f}s is out of range") from exc
        return KeySnapshot(keys=tuple(new_keys), expires_at=expires_at)

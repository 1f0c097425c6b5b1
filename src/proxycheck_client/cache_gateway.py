"""
Cache Gateway.

Derives cache keys and wraps a CacheStore so that caching never makes an
otherwise successful check fail: read and write failures degrade to a
miss. Explicit clears do report failure.
"""

import hashlib
import json
from typing import Optional

from .config import CacheConfig
from .event_logger import EventLogger
from .cache_store import CacheStore, MemoryCacheStore


def _digest(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


class CacheGateway:
    """Keyed access to cached payloads for one client instance."""

    COMPONENT = "CacheGateway"

    def __init__(
        self,
        config: CacheConfig,
        store: Optional[CacheStore] = None,
        logger: Optional[EventLogger] = None,
    ) -> None:
        self._config = config
        self._store = store if store is not None else MemoryCacheStore()
        self._logger = logger

    @property
    def enabled(self) -> bool:
        return self._config.enabled

    @property
    def prefix(self) -> str:
        return self._config.prefix

    @property
    def store(self) -> CacheStore:
        return self._store

    def subject_prefix(self, subject: str) -> str:
        """Common prefix of every key derived for ``subject``."""
        return f"{self._config.prefix}{_digest(subject)}_"

    def key_for(self, subject: str, options: Optional[dict] = None) -> str:
        """
        Derive the cache key for a subject and the options shaping its answer.

        Options are serialized canonically (sorted keys), so dict order
        does not change the key. No options and empty options are the same.
        Keys have the form ``<prefix><subject digest>_<options digest>``.
        """
        serialized = json.dumps(options or {}, sort_keys=True, separators=(",", ":"), default=str)
        return f"{self.subject_prefix(subject)}{_digest(serialized)}"

    def get(self, key: str) -> Optional[dict]:
        """Return the cached payload, or None on miss or backend failure."""
        if not self.enabled:
            return None
        try:
            raw = self._store.get(key)
        except Exception as e:
            self._warn("Cache read failed, treating as miss", key, e)
            return None
        if raw is None:
            return None
        try:
            payload = json.loads(raw.decode("utf-8"))
        except (AttributeError, UnicodeDecodeError, ValueError) as e:
            self._warn("Cached payload is not valid JSON, treating as miss", key, e)
            return None
        return payload if isinstance(payload, dict) else None

    def set(self, key: str, payload: dict, ttl_seconds: Optional[int] = None) -> None:
        """Store a payload; failures are logged and otherwise ignored."""
        if not self.enabled:
            return
        ttl = ttl_seconds if ttl_seconds is not None else self._config.expiration_seconds
        try:
            serialized = json.dumps(payload, sort_keys=True).encode("utf-8")
            self._store.set(key, serialized, ttl)
        except Exception as e:
            self._warn("Cache write failed", key, e)

    def clear(self, subject: Optional[str] = None) -> bool:
        """
        Delete every entry for one subject, or every entry under the prefix.

        Clearing a subject removes its entries for all parameter sets and
        request options.

        Returns:
            True if the backend reported success, False otherwise
        """
        prefix = self.subject_prefix(subject) if subject is not None else self._config.prefix
        try:
            return bool(self._store.delete_by_prefix(prefix))
        except Exception as e:
            if self._logger:
                self._logger.log_error(
                    self.COMPONENT, "Cache clear failed", e, {"subject": subject}
                )
            return False

    def _warn(self, message: str, key: str, error: Exception) -> None:
        if self._logger:
            self._logger.warn(
                self.COMPONENT,
                message,
                {"cache_entry": key, "reason": str(error), "error_type": type(error).__name__},
            )

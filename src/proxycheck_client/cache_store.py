"""
Cache store backends.

A cache store is a plain key/value store with per-entry TTL. Backends raise
CacheError when they fail; the CacheGateway decides what a failure means.
"""

import hashlib
import hmac
import json
import threading
import time
from pathlib import Path
from typing import Callable, Optional, Protocol, runtime_checkable

from .enums import ErrorCode
from .exceptions import CacheError, TamperingError


@runtime_checkable
class CacheStore(Protocol):
    """Interface every cache backend implements."""

    def get(self, key: str) -> Optional[bytes]:
        ...

    def set(self, key: str, value: bytes, ttl_seconds: int) -> None:
        ...

    def delete(self, key: str) -> bool:
        ...

    def delete_by_prefix(self, prefix: str) -> bool:
        ...


class MemoryCacheStore:
    """
    In-process cache store.

    Entries expire ``ttl_seconds`` after they were written, measured with
    the injected clock (``time.monotonic`` by default).
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._entries: dict[str, tuple[bytes, float]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[bytes]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            value, expires_at = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                return None
            return value

    def set(self, key: str, value: bytes, ttl_seconds: int) -> None:
        with self._lock:
            self._entries[key] = (value, self._clock() + ttl_seconds)

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def delete_by_prefix(self, prefix: str) -> bool:
        with self._lock:
            for key in [k for k in self._entries if k.startswith(prefix)]:
                del self._entries[key]
        return True

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class JsonFileCacheStore:
    """
    Cache store persisted to a JSON file with HMAC protection.

    The whole file is rewritten on each change. Expiry uses wall-clock time
    so entries survive process restarts.
    """

    VERSION = 1

    def __init__(
        self,
        file_path: Path,
        hmac_secret: str,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """
        Initialize the file store.

        Args:
            file_path: Path to the cache file (JSON format)
            hmac_secret: Secret key for HMAC computation
            clock: Wall-clock source, seconds since the epoch
        """
        self._file_path = file_path
        self._hmac_secret = hmac_secret.encode("utf-8")
        self._clock = clock
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[bytes]:
        with self._lock:
            entries = self._load()
            entry = entries.get(key)
            if entry is None:
                return None
            if self._clock() >= entry["expires_at"]:
                return None
            return entry["value"].encode("utf-8")

    def set(self, key: str, value: bytes, ttl_seconds: int) -> None:
        with self._lock:
            entries = self._purge_expired(self._load())
            entries[key] = {
                "value": value.decode("utf-8"),
                "expires_at": self._clock() + ttl_seconds,
            }
            self._save(entries)

    def delete(self, key: str) -> bool:
        with self._lock:
            entries = self._load()
            if key not in entries:
                return False
            del entries[key]
            self._save(entries)
            return True

    def delete_by_prefix(self, prefix: str) -> bool:
        with self._lock:
            entries = self._load()
            kept = {k: v for k, v in entries.items() if not k.startswith(prefix)}
            self._save(kept)
            return True

    def _purge_expired(self, entries: dict) -> dict:
        now = self._clock()
        return {k: v for k, v in entries.items() if v["expires_at"] > now}

    def _load(self) -> dict:
        """
        Read and validate the cache file.

        Raises:
            TamperingError: If HMAC validation fails
            CacheError: If the file cannot be read or parsed
        """
        if not self._file_path.exists():
            return {}

        try:
            with open(self._file_path, "r", encoding="utf-8") as f:
                raw_data = json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise CacheError(
                code=ErrorCode.CACHE_ERROR.value,
                message=f"Failed to parse cache file: {e}",
                details={"file_path": str(self._file_path)},
            )
        except OSError as e:
            raise CacheError(
                code=ErrorCode.CACHE_ERROR.value,
                message=f"Failed to read cache file: {e}",
                details={"file_path": str(self._file_path)},
            )

        if not isinstance(raw_data, dict) or not isinstance(raw_data.get("entries", {}), dict):
            raise CacheError(
                code=ErrorCode.CACHE_ERROR.value,
                message="Cache file has an unexpected structure",
                details={"file_path": str(self._file_path)},
            )

        entries = raw_data.get("entries", {})
        data_for_hmac = {"version": raw_data.get("version"), "entries": entries}
        stored_hmac = str(raw_data.get("hmac", ""))
        computed_hmac = self.compute_hmac(data_for_hmac)
        if not hmac.compare_digest(stored_hmac.encode("utf-8"), computed_hmac.encode("utf-8")):
            raise TamperingError(
                code=ErrorCode.HMAC_MISMATCH.value,
                message="HMAC validation failed - cache file may have been tampered with",
                details={"file_path": str(self._file_path)},
            )
        for key, entry in entries.items():
            if not self._is_valid_entry(entry):
                raise CacheError(
                    code=ErrorCode.CACHE_ERROR.value,
                    message="Cache entry has an unexpected structure",
                    details={"file_path": str(self._file_path), "cache_entry": key},
                )
        return entries

    @staticmethod
    def _is_valid_entry(entry) -> bool:
        return (
            isinstance(entry, dict)
            and isinstance(entry.get("value"), str)
            and isinstance(entry.get("expires_at"), (int, float))
            and not isinstance(entry.get("expires_at"), bool)
        )

    def _save(self, entries: dict) -> None:
        data_for_hmac = {"version": self.VERSION, "entries": entries}
        output_data = {**data_for_hmac, "hmac": self.compute_hmac(data_for_hmac)}

        try:
            self._file_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self._file_path, "w", encoding="utf-8") as f:
                json.dump(output_data, f, indent=2, sort_keys=True)
        except OSError as e:
            raise CacheError(
                code=ErrorCode.CACHE_ERROR.value,
                message=f"Failed to write cache file: {e}",
                details={"file_path": str(self._file_path)},
            )

    def compute_hmac(self, data: dict) -> str:
        """Compute HMAC-SHA256 over the canonical JSON form of ``data``."""
        serialized = json.dumps(data, sort_keys=True, separators=(",", ":"))
        return hmac.new(
            self._hmac_secret,
            serialized.encode("utf-8"),
            hashlib.sha256,
        ).hexdigest()

    @property
    def file_path(self) -> Path:
        return self._file_path

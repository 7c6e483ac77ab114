from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from typing import Any

from tourbooking.application.ports.cart_id_store import CartIdStorePort
from tourbooking.core.config import settings


class JsonCartIdStore(CartIdStorePort):
    """Persists the active cart id in a small JSON document under a fixed key."""

    def __init__(self, file_path: str | Path, key: str | None = None) -> None:
        self._file_path = Path(file_path)
        self._file_path.parent.mkdir(parents=True, exist_ok=True)
        self._key = key or settings.CART_ID_STORAGE_KEY
        self._lock = threading.Lock()
        self._logger = logging.getLogger(__name__)

    @property
    def file_path(self) -> Path:
        return self._file_path

    def _load(self) -> dict[str, Any]:
        """Load the document, return empty if missing or corrupted."""
        if not self._file_path.exists():
            return {}
        try:
            with open(self._file_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, IOError) as e:
            self._logger.warning("Cart id file unreadable, ignoring", extra={"error": str(e)})
            return {}
        return data if isinstance(data, dict) else {}

    def _save(self, data: dict[str, Any]) -> None:
        """Save the document atomically."""
        temp_path = self._file_path.with_suffix(".json.tmp")
        try:
            with open(temp_path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            # Atomic rename
            temp_path.replace(self._file_path)
        except Exception:
            if temp_path.exists():
                temp_path.unlink(missing_ok=True)
            raise

    def get(self) -> str | None:
        with self._lock:
            value = self._load().get(self._key)
        return str(value) if value else None

    def set(self, cart_id: str) -> None:
        with self._lock:
            data = self._load()
            data[self._key] = cart_id
            self._save(data)

    def clear(self) -> None:
        with self._lock:
            data = self._load()
            if self._key not in data:
                return
            del data[self._key]
            self._save(data)

    def discard(self) -> None:
        with self._lock:
            self._file_path.unlink(missing_ok=True)

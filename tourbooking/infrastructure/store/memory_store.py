from __future__ import annotations

from tourbooking.application.ports.cart_id_store import CartIdStorePort
from tourbooking.application.use_cases.booking import BookingOrchestrator
from tourbooking.core.config import settings


class MemoryCartIdStore(CartIdStorePort):
    def __init__(self, key: str | None = None) -> None:
        self._key = key or settings.CART_ID_STORAGE_KEY
        self._values: dict[str, str] = {}

    def get(self) -> str | None:
        return self._values.get(self._key)

    def set(self, cart_id: str) -> None:
        self._values[self._key] = cart_id

    def clear(self) -> None:
        self._values.pop(self._key, None)

    def discard(self) -> None:
        self._values.clear()


class BookingSessionRegistry:
    """Live orchestrators keyed by booking session id."""

    def __init__(self, max_sessions: int = 1000) -> None:
        self._sessions: dict[str, BookingOrchestrator] = {}
        self._max_sessions = max_sessions

    def get(self, session_id: str) -> BookingOrchestrator | None:
        return self._sessions.get(session_id)

    def put(self, session_id: str, orchestrator: BookingOrchestrator) -> None:
        self._sessions[session_id] = orchestrator
        if len(self._sessions) > self._max_sessions:
            # dicts keep insertion order; drop the oldest session
            oldest = next(iter(self._sessions))
            self._sessions.pop(oldest).close()

    def remove(self, session_id: str) -> BookingOrchestrator | None:
        return self._sessions.pop(session_id, None)

    def __len__(self) -> int:
        return len(self._sessions)

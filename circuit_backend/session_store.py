"""In-memory play sessions: one CircuitState and ProgressTracker each."""

import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Optional

from circuit_engine.circuit import CircuitState, LevelCompletion
from circuit_engine.levels import DEFAULT_CATALOG, LevelCatalog
from circuit_engine.scoring import ProgressTracker

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class PlaySession:
    circuit: CircuitState
    tracker: ProgressTracker
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)
    _pending: list = field(default_factory=list, repr=False)

    def __post_init__(self):
        self.tracker.attach(self.circuit)
        self.circuit.on_level_complete(self._collect)

    def _collect(self, level_id, elapsed_seconds, attempts) -> None:
        completion = LevelCompletion(level_id, elapsed_seconds, attempts)
        self._pending.append(completion)

    def drain_completions(self) -> list[LevelCompletion]:
        """Completion events raised since the last drain, oldest first."""
        pending, self._pending = self._pending, []
        return pending


class InMemorySessionStore:
    def __init__(self, catalog: LevelCatalog = DEFAULT_CATALOG, ttl_hours: float = 24):
        self.catalog = catalog
        self._sessions: dict[str, PlaySession] = {}
        self._lock = asyncio.Lock()
        self._ttl = timedelta(hours=ttl_hours)

    async def create_session(self, multi_slot: bool = False) -> PlaySession:
        session = PlaySession(
            circuit=CircuitState(self.catalog, multi_slot=multi_slot),
            tracker=ProgressTracker(total_levels=len(self.catalog)),
        )
        async with self._lock:
            self._sessions[session.id] = session
        logger.info("Created session %s (multi_slot=%s)", session.id, multi_slot)
        return session

    async def get_session(self, session_id: str) -> Optional[PlaySession]:
        async with self._lock:
            return self._sessions.get(session_id)

    async def touch_session(self, session: PlaySession) -> None:
        session.updated_at = _now()

    async def delete_session(self, session_id: str) -> bool:
        async with self._lock:
            return self._sessions.pop(session_id, None) is not None

    async def list_sessions(self) -> list[PlaySession]:
        async with self._lock:
            return list(self._sessions.values())

    async def cleanup_expired(self) -> int:
        now = _now()
        async with self._lock:
            expired = [sid for sid, s in self._sessions.items() if now - s.updated_at > self._ttl]
            for sid in expired:
                del self._sessions[sid]
        if expired:
            logger.info("Expired %d idle session(s)", len(expired))
        return len(expired)

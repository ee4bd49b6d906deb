# repository/session_repository.py
import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional
from uuid import uuid4
from config.settings import settings
from core.artifact_store import ArtifactStore
from core.extension import ExtensionEngine
from core.gemini_client import GenerationGateway
from core.interaction import InteractionLayer
from core.pipeline import PipelineOrchestrator

logger = logging.getLogger(__name__)


@dataclass
class StudySession:
    id: str
    store: ArtifactStore
    pipeline: PipelineOrchestrator
    extensions: ExtensionEngine
    interaction: InteractionLayer
    last_seen: float = field(default_factory=time.monotonic)


class SessionRepository:
    """
    Flow:
    - Process-local map sessionId -> StudySession; nothing survives a restart.
    - Sessions idle longer than the TTL are evicted on the next access.
    - delete() drops the session; in-flight derivations still finish but write into
      an orphaned store nobody reads.
    """

    def __init__(
        self,
        gateway_factory: Callable[[], GenerationGateway],
        ttl_seconds: int = settings.SESSION_TTL_SECONDS,
    ) -> None:
        self._ttl = int(ttl_seconds)
        self._gateway_factory = gateway_factory
        self._sessions: Dict[str, StudySession] = {}

    def _evict_expired(self) -> None:
        now = time.monotonic()
        expired = [sid for sid, s in self._sessions.items() if now - s.last_seen > self._ttl]
        for sid in expired:
            del self._sessions[sid]
        if expired:
            logger.info("sessions.evicted count=%d", len(expired))

    def _build(self, sid: str) -> StudySession:
        store = ArtifactStore(sid, max_uploads=settings.MAX_UPLOAD_IMAGES)
        gateway = self._gateway_factory()
        pipeline = PipelineOrchestrator(store, gateway)
        session = StudySession(
            id=sid,
            store=store,
            pipeline=pipeline,
            extensions=ExtensionEngine(pipeline),
            interaction=InteractionLayer(store, gateway),
        )
        return session

    def create(self) -> StudySession:
        self._evict_expired()
        session = self._build(uuid4().hex)
        self._sessions[session.id] = session
        logger.info("sessions.created id=%s total=%d", session.id, len(self._sessions))
        return session

    def replace(self, session_id: str) -> Optional[StudySession]:
        """Discard a session and start a fresh one under the same id."""
        if self.get(session_id) is None:
            return None
        session = self._build(session_id)
        self._sessions[session_id] = session
        logger.info("sessions.reset id=%s", session_id)
        return session

    def get(self, session_id: str) -> Optional[StudySession]:
        self._evict_expired()
        session = self._sessions.get(session_id)
        if session is not None:
            session.last_seen = time.monotonic()
        return session

    def delete(self, session_id: str) -> bool:
        return self._sessions.pop(session_id, None) is not None

    def count(self) -> int:
        return len(self._sessions)

    def all(self) -> list[StudySession]:
        return list(self._sessions.values())

# config/registry.py
import asyncio
from typing import Optional
from core.gemini_client import GeminiGateway
from repository.session_repository import SessionRepository

_sessions: Optional[SessionRepository] = None


def get_sessions() -> SessionRepository:
    global _sessions
    if _sessions is None:
        _sessions = SessionRepository(gateway_factory=GeminiGateway)
    return _sessions


async def close_sessions(timeout: float = 10.0) -> None:
    """Give in-flight derivations a bounded grace period, then drop every session."""
    global _sessions
    if _sessions is None:
        return
    try:
        pending = [s.pipeline.wait_idle() for s in _sessions.all()]
        if pending:
            await asyncio.wait_for(asyncio.gather(*pending), timeout=timeout)
    finally:
        _sessions = None

import asyncio
import os
from typing import Any, Callable, Dict, List, Optional

os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("GEMINI_API_KEY", "test-key")
os.environ.setdefault("ALLOWED_ORIGIN", "http://localhost:5173")

import pytest

from config.settings import settings
from core.artifact_store import ArtifactStore
from core.entities import GenerationRequest, GenerationResult, ImagePayload
from core.extension import ExtensionEngine
from core.interaction import InteractionLayer
from core.pipeline import PipelineOrchestrator
from util.enums import TaskKind


def task_of(request: GenerationRequest) -> str:
    """Name the task a prompt belongs to."""
    p = request.prompt
    if p == settings.EXTRACTION_PROMPT:
        return "extraction"
    if "3-layer Master Note" in p:
        return "note"
    if "ADDITIONAL High-Yield" in p:
        return "bonus"
    if "MCQs for Batch" in p:
        return "mcq"
    if "flashcards" in p:
        return "flashcards"
    if "linguistic tutor" in p:
        return "clarify"
    if "Summary" in p:
        return "summary"
    raise AssertionError(f"unexpected prompt: {p[:60]}")


def make_question(i: int, text: Optional[str] = None) -> Dict[str, Any]:
    return {
        "id": i,
        "question": text or f"Question {i}?",
        "options": {"A": "a", "B": "b", "C": "c", "D": "d"},
        "correctAnswer": "A",
        "briefExplanation": f"Because {i}",
        "sourceTag": "p1",
        "covers": [f"fact-{i}"],
    }


def default_responses() -> Dict[str, Any]:
    return {
        "extraction": {"ocrText": "The area of a circle is pi r squared.", "subject": "Math"},
        "note": {"layer1": "L1", "layer2": "L2", "layer3": "L3"},
        "summary": "## Summary\n- point",
        "mcq": {"questions": [make_question(i) for i in range(1, 4)]},
        "flashcards": {"cards": [{"id": i, "question": f"Card {i}"} for i in range(1, 11)]},
        "bonus": "🧠 Bonus more",
        "clarify": {"definition": "def", "fullExplanation": "explained"},
    }


class FakeGateway:
    """
    Scripted gateway. Each task maps to a value, an exception (raised) or a callable
    taking the request. A task can be held on an asyncio.Event to control completion order.
    """

    def __init__(self, responses: Optional[Dict[str, Any]] = None) -> None:
        self.responses = {**default_responses(), **(responses or {})}
        self.calls: List[GenerationRequest] = []
        self.kinds: List[str] = []
        self.gates: Dict[str, asyncio.Event] = {}
        self.on_call: Optional[Callable[[str], None]] = None

    async def invoke(self, request: GenerationRequest) -> GenerationResult:
        kind = task_of(request)
        self.calls.append(request)
        self.kinds.append(kind)
        if self.on_call is not None:
            self.on_call(kind)
        value = self.responses[kind]
        if callable(value) and not isinstance(value, type):
            value = value(request)
        gate = self.gates.get(kind)
        if gate is not None:
            await gate.wait()
        if isinstance(value, BaseException):
            raise value
        if request.task_kind == TaskKind.FREEFORM:
            return GenerationResult(text=value)
        return GenerationResult(text="", data=value)


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def store() -> ArtifactStore:
    return ArtifactStore("session-1")


@pytest.fixture
def pipeline(store, gateway) -> PipelineOrchestrator:
    return PipelineOrchestrator(store, gateway)


@pytest.fixture
def extensions(pipeline) -> ExtensionEngine:
    return ExtensionEngine(pipeline)


@pytest.fixture
def interaction(store, gateway) -> InteractionLayer:
    return InteractionLayer(store, gateway)


@pytest.fixture
def images() -> List[ImagePayload]:
    return [ImagePayload(data=b"\xff\xd8page-%d" % i) for i in range(2)]

# core/entities.py
import asyncio
from dataclasses import dataclass, field
from typing import Any, List, Optional, Tuple
from util.enums import ArtifactKind, OutputLanguage, TaskKind
from util.types import Outcome


@dataclass(frozen=True)
class ImagePayload:
    data: bytes
    mime_type: str = "image/jpeg"


@dataclass(frozen=True)
class AddOutcome:
    added: int
    size: int
    truncated: bool = False
    max_reached: bool = False


@dataclass
class UploadSet:
    """
    Ordered page photos, never more than `capacity`.
    Extra images are truncated; adding to a full set is a no-op reported via max_reached.
    """

    capacity: int = 5
    images: List[ImagePayload] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.images)

    def add(self, new_images: List[ImagePayload]) -> AddOutcome:
        remaining = self.capacity - len(self.images)
        if remaining <= 0:
            return AddOutcome(added=0, size=len(self.images), max_reached=True)
        accepted = list(new_images[:remaining])
        self.images = self.images + accepted
        return AddOutcome(
            added=len(accepted),
            size=len(self.images),
            truncated=len(accepted) < len(new_images),
        )

    def remove(self, index: int) -> ImagePayload:
        if not 0 <= index < len(self.images):
            raise IndexError(index)
        removed = self.images[index]
        self.images = self.images[:index] + self.images[index + 1 :]
        return removed

    def clear(self) -> None:
        self.images = []

    def snapshot(self) -> Tuple[ImagePayload, ...]:
        return tuple(self.images)


@dataclass(frozen=True)
class GenerationRequest:
    task_kind: TaskKind
    prompt: str
    images: Tuple[ImagePayload, ...] = ()


@dataclass(frozen=True)
class GenerationResult:
    text: str = ""
    data: Any = None


@dataclass(frozen=True)
class RunContext:
    """Values fixed when a run starts; every derivation reads these, never live session state."""

    run_id: str
    language: OutputLanguage


@dataclass(frozen=True)
class ArtifactEvent:
    kind: ArtifactKind
    outcome: Outcome
    run_id: Optional[str] = None
    payload: Any = None
    message: Optional[str] = None


@dataclass
class RunHandle:
    run_id: str
    extracted: bool = False
    tasks: List[asyncio.Task] = field(default_factory=list)

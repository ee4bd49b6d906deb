# model/session.py
from pydantic import BaseModel, Field
from model.study import (
    Clarification,
    ExtractionResult,
    Flashcard,
    MasterNote,
    MCQBatch,
    MCQQuestion,
)
from util.enums import ActiveTab, ArtifactKind, OutputLanguage, Subject
from util.types import NoticeLevel, Option

PIPELINE_FLAGS: tuple[ArtifactKind, ...] = (
    ArtifactKind.EXTRACTION,
    ArtifactKind.NOTE,
    ArtifactKind.SUMMARY,
    ArtifactKind.PRACTICE,
    ArtifactKind.FLASHCARDS,
)


class LoadingFlags(BaseModel):
    extraction: bool = False
    note: bool = False
    summary: bool = False
    practice: bool = False
    flashcards: bool = False
    clarification: bool = False
    bonus: bool = False
    batch: bool = False

    def is_set(self, kind: ArtifactKind) -> bool:
        return bool(getattr(self, kind.value))

    def with_flags(self, value: bool, *kinds: ArtifactKind) -> "LoadingFlags":
        return self.model_copy(update={k.value: value for k in kinds})

    def any(self) -> bool:
        return any(self.model_dump().values())


class Notice(BaseModel):
    level: NoticeLevel
    message: str


class SessionState(BaseModel):
    sessionId: str
    runId: str | None = None
    extraction: ExtractionResult | None = None
    masterNote: MasterNote | None = None
    summary: str | None = None
    batches: list[MCQBatch] = Field(default_factory=list)
    flashcards: list[Flashcard] = Field(default_factory=list)
    language: OutputLanguage = OutputLanguage.BN
    activeTab: ActiveTab = ActiveTab.MASTER
    activeBatchIndex: int = 0
    currentQuestionIndex: int = 0
    userAnswers: dict[int, Option] = Field(default_factory=dict)
    examFinished: bool = False
    clarification: Clarification | None = None
    notice: Notice | None = None
    error: str | None = None
    loading: LoadingFlags = Field(default_factory=LoadingFlags)

    @property
    def active_batch(self) -> MCQBatch | None:
        if 0 <= self.activeBatchIndex < len(self.batches):
            return self.batches[self.activeBatchIndex]
        return None


class ExamReport(BaseModel):
    batchNumber: int | None = None
    total: int = 0
    answered: int = 0
    correct: int = 0
    finished: bool = False
    mistakes: list[MCQQuestion] = Field(default_factory=list)


class ExportSnapshot(BaseModel):
    subject: Subject | None = None
    masterNote: MasterNote | None = None
    summary: str | None = None
    questions: list[MCQQuestion] = Field(default_factory=list)

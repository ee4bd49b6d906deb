# core/artifact_store.py
import logging
import threading
from typing import Callable, List, Optional
from core.entities import ArtifactEvent, UploadSet
from model.session import PIPELINE_FLAGS, LoadingFlags, Notice, SessionState
from model.study import (
    Clarification,
    ExtractionResult,
    Flashcard,
    GeneratedBatch,
    MasterNote,
    MCQBatch,
)
from util.enums import ActiveTab, ArtifactKind, OutputLanguage
from util.errors import BusyError
from util.types import NoticeLevel

logger = logging.getLogger(__name__)

NO_MORE_QUESTIONS = "No more unique questions could be generated for this text."
NO_MORE_BONUS = "No additional bonus content could be generated for this text."


class ArtifactStore:
    """
    Single source of truth for one study session.

    Every transition builds a new SessionState (model_copy) and swaps the
    reference under one lock, so readers never observe a half-applied artifact.
    Gateway completions arrive as ArtifactEvents through dispatch(); events
    tagged with a superseded run id are dropped.
    """

    def __init__(self, session_id: str, max_uploads: int = 5) -> None:
        self._lock = threading.RLock()
        self._state = SessionState(sessionId=session_id)
        self.uploads = UploadSet(capacity=max_uploads)

    @property
    def state(self) -> SessionState:
        return self._state

    def _swap(self, **update) -> SessionState:
        self._state = self._state.model_copy(update=update)
        return self._state

    def _settled(self, kind: ArtifactKind) -> LoadingFlags:
        return self._state.loading.with_flags(False, kind)

    # ---------------- Run lifecycle ----------------

    def reset(self) -> SessionState:
        """Clear every artifact, flag, notice and exam position together."""
        with self._lock:
            fresh = SessionState(
                sessionId=self._state.sessionId,
                language=self._state.language,
            )
            self._state = fresh
            return fresh

    def begin_run(self, run_id: str, language: OutputLanguage) -> SessionState:
        with self._lock:
            self.reset()
            return self._swap(
                runId=run_id,
                language=language,
                loading=LoadingFlags().with_flags(True, *PIPELINE_FLAGS),
            )

    def begin(self, kind: ArtifactKind) -> None:
        """Mark a single operation in flight; rejects a second concurrent call of the same kind."""
        with self._lock:
            if self._state.loading.is_set(kind):
                raise BusyError(kind.value)
            self._swap(loading=self._state.loading.with_flags(True, kind))

    def fail_run(self, message: str) -> SessionState:
        with self._lock:
            return self._swap(error=message, loading=LoadingFlags())

    # ---------------- Atomic setters ----------------

    def set_extraction(self, extraction: ExtractionResult) -> SessionState:
        with self._lock:
            return self._swap(
                extraction=extraction, loading=self._settled(ArtifactKind.EXTRACTION)
            )

    def set_note(self, note: MasterNote) -> SessionState:
        with self._lock:
            return self._swap(masterNote=note, loading=self._settled(ArtifactKind.NOTE))

    def set_summary(self, summary: str) -> SessionState:
        with self._lock:
            return self._swap(summary=summary, loading=self._settled(ArtifactKind.SUMMARY))

    def set_batches(self, batches: List[MCQBatch]) -> SessionState:
        with self._lock:
            return self._swap(
                batches=list(batches),
                activeBatchIndex=0,
                currentQuestionIndex=0,
                userAnswers={},
                examFinished=False,
                loading=self._settled(ArtifactKind.PRACTICE),
            )

    def set_flashcards(self, cards: List[Flashcard]) -> SessionState:
        with self._lock:
            return self._swap(
                flashcards=list(cards), loading=self._settled(ArtifactKind.FLASHCARDS)
            )

    def set_clarification(self, clarification: Optional[Clarification]) -> SessionState:
        with self._lock:
            return self._swap(
                clarification=clarification,
                loading=self._settled(ArtifactKind.CLARIFICATION),
            )

    def append_bonus(self, text: str) -> SessionState:
        with self._lock:
            note = self._state.masterNote
            if note is None:
                # Note vanished (reset) while the call was in flight
                return self._swap(loading=self._settled(ArtifactKind.BONUS))
            grown = note.model_copy(update={"layer3": note.layer3 + "\n\n" + text})
            return self._swap(masterNote=grown, loading=self._settled(ArtifactKind.BONUS))

    def append_batch(self, generated: GeneratedBatch) -> MCQBatch:
        with self._lock:
            batch = MCQBatch(
                batchNumber=len(self._state.batches) + 1,
                questions=generated.questions,
                coverageReport=generated.coverageReport,
            )
            self._swap(
                batches=[*self._state.batches, batch],
                loading=self._settled(ArtifactKind.BATCH),
            )
            return batch

    def settle(self, kind: ArtifactKind) -> SessionState:
        with self._lock:
            return self._swap(loading=self._settled(kind))

    def set_notice(self, level: NoticeLevel, message: str) -> SessionState:
        with self._lock:
            return self._swap(notice=Notice(level=level, message=message))

    # ---------------- Interaction state ----------------

    def update(self, mutate: Callable[[SessionState], dict]) -> SessionState:
        """Apply a computed field update atomically; `mutate` must not touch artifacts."""
        with self._lock:
            changes = mutate(self._state)
            return self._swap(**changes) if changes else self._state

    def activate_batch(self, index: int) -> SessionState:
        with self._lock:
            return self._swap(
                activeBatchIndex=index,
                currentQuestionIndex=0,
                userAnswers={},
                examFinished=False,
                activeTab=ActiveTab.PRACTICE,
            )

    # ---------------- Event reducer ----------------

    def is_current(self, run_id: Optional[str]) -> bool:
        return run_id is None or run_id == self._state.runId

    def dispatch(self, event: ArtifactEvent) -> bool:
        """
        Apply one settled gateway call. Returns False when the event was discarded as stale.
        """
        with self._lock:
            if not self.is_current(event.run_id):
                logger.info(
                    "store.event.stale kind=%s run=%s current=%s",
                    event.kind.value,
                    event.run_id,
                    self._state.runId,
                )
                return False
            self._reduce(event)
            logger.info("store.event kind=%s outcome=%s", event.kind.value, event.outcome)
            return True

    def _reduce(self, event: ArtifactEvent) -> None:
        kind, ok = event.kind, event.outcome == "success"

        if kind == ArtifactKind.EXTRACTION:
            if ok:
                self.set_extraction(event.payload)
            else:
                self.fail_run(event.message or "Analysis failed.")
            return

        if not ok:
            self.settle(kind)
            if kind == ArtifactKind.BATCH and event.outcome == "empty":
                self.set_notice("info", event.message or NO_MORE_QUESTIONS)
            elif kind == ArtifactKind.BONUS and event.outcome == "empty":
                self.set_notice("info", event.message or NO_MORE_BONUS)
            elif kind in (ArtifactKind.BONUS, ArtifactKind.BATCH, ArtifactKind.CLARIFICATION):
                self.set_notice("error", event.message or "Request failed. Please try again.")
            # Pipeline derivations fail silently: artifact stays absent, error stays null.
            return

        if kind == ArtifactKind.NOTE:
            self.set_note(event.payload)
        elif kind == ArtifactKind.SUMMARY:
            self.set_summary(event.payload)
        elif kind == ArtifactKind.PRACTICE:
            if self._state.batches:
                # Batches are append-only; a late first batch never replaces them
                logger.warning(
                    "store.practice.ignored run=%s batches=%d",
                    event.run_id,
                    len(self._state.batches),
                )
                self.settle(kind)
                return
            self.set_batches(
                [
                    MCQBatch(
                        batchNumber=1,
                        questions=event.payload.questions,
                        coverageReport=event.payload.coverageReport,
                    )
                ]
            )
        elif kind == ArtifactKind.FLASHCARDS:
            self.set_flashcards(event.payload)
        elif kind == ArtifactKind.CLARIFICATION:
            self.set_clarification(event.payload)
        elif kind == ArtifactKind.BONUS:
            self.append_bonus(event.payload)
        elif kind == ArtifactKind.BATCH:
            self.append_batch(event.payload)
            self.activate_batch(len(self._state.batches) - 1)

# core/interaction.py
import logging
from typing import Optional
from core import prompt_builder, response_parser
from core.artifact_store import ArtifactStore
from core.entities import ArtifactEvent
from core.gemini_client import GenerationGateway
from model.session import ExamReport, ExportSnapshot, SessionState
from util.enums import ActiveTab, ArtifactKind, OutputLanguage
from util.errors import ExamNotCompleteError, GatewayError, InvalidAnswerError, PreconditionError
from util.types import Option
from util.timing import timed

logger = logging.getLogger(__name__)


class InteractionLayer:
    """Reads the store for the exam and clarification flows; owns no pipeline logic."""

    def __init__(self, store: ArtifactStore, gateway: GenerationGateway) -> None:
        self._store = store
        self._gateway = gateway

    async def clarify(
        self, span: str, context: str, language: Optional[OutputLanguage] = None
    ) -> bool:
        lang = language or self._store.state.language
        self._store.begin(ArtifactKind.CLARIFICATION)
        try:
            with timed(logger, "interact.clarify", chars=len(span)):
                res = await self._gateway.invoke(prompt_builder.clarify_request(span, context, lang))
                clarification = response_parser.parse_clarification(res.data)
        except GatewayError as e:
            logger.warning("interact.clarify.failed err=%s", type(e).__name__)
            self._store.dispatch(
                ArtifactEvent(
                    kind=ArtifactKind.CLARIFICATION,
                    outcome="failure",
                    message="Clarification failed. Please try again.",
                )
            )
            return False
        except Exception:
            self._store.settle(ArtifactKind.CLARIFICATION)
            raise
        return self._store.dispatch(
            ArtifactEvent(kind=ArtifactKind.CLARIFICATION, outcome="success", payload=clarification)
        )

    def dismiss_clarification(self) -> SessionState:
        return self._store.update(lambda s: {"clarification": None})

    def dismiss_notice(self) -> SessionState:
        return self._store.update(lambda s: {"notice": None})

    # ---------------- Exam progression ----------------

    def record_answer(self, question_id: int, option: Option) -> bool:
        """Record the first answer for a question in the active batch; later clicks are ignored."""
        recorded = False

        def _apply(state: SessionState) -> dict:
            nonlocal recorded
            batch = state.active_batch
            if batch is None or all(q.id != question_id for q in batch.questions):
                raise InvalidAnswerError(question_id)
            if question_id in state.userAnswers:
                return {}
            recorded = True
            return {"userAnswers": {**state.userAnswers, question_id: option}}

        self._store.update(_apply)
        return recorded

    def advance_question(self, direction: int) -> int:
        def _apply(state: SessionState) -> dict:
            batch = state.active_batch
            if batch is None or not batch.questions:
                return {}
            last = len(batch.questions) - 1
            target = max(0, min(last, state.currentQuestionIndex + (1 if direction > 0 else -1)))
            return {"currentQuestionIndex": target}

        return self._store.update(_apply).currentQuestionIndex

    def finish_exam(self) -> SessionState:
        def _apply(state: SessionState) -> dict:
            batch = state.active_batch
            if batch is None or not batch.questions:
                raise PreconditionError("no active batch")
            if state.currentQuestionIndex != len(batch.questions) - 1:
                raise ExamNotCompleteError(state.currentQuestionIndex)
            return {"examFinished": True}

        return self._store.update(_apply)

    def select_batch(self, index: int) -> SessionState:
        if not 0 <= index < len(self._store.state.batches):
            raise PreconditionError(f"no batch at {index}")
        return self._store.activate_batch(index)

    def set_preferences(
        self, tab: Optional[ActiveTab] = None, language: Optional[OutputLanguage] = None
    ) -> SessionState:
        # Language applies from the next run; an in-flight run keeps its RunContext.
        changes = {}
        if tab is not None:
            changes["activeTab"] = tab
        if language is not None:
            changes["language"] = language
        return self._store.update(lambda s: changes)

    # ---------------- Read-only projections ----------------

    def exam_report(self) -> ExamReport:
        state = self._store.state
        batch = state.active_batch
        if batch is None:
            return ExamReport()
        answers = state.userAnswers
        mistakes = [
            q for q in batch.questions if q.id in answers and answers[q.id] != q.correctAnswer
        ]
        return ExamReport(
            batchNumber=batch.batchNumber,
            total=len(batch.questions),
            answered=sum(1 for q in batch.questions if q.id in answers),
            correct=sum(1 for q in batch.questions if answers.get(q.id) == q.correctAnswer),
            finished=state.examFinished,
            mistakes=mistakes,
        )

    def export_snapshot(self) -> ExportSnapshot:
        state = self._store.state
        return ExportSnapshot(
            subject=state.extraction.subject if state.extraction else None,
            masterNote=state.masterNote,
            summary=state.summary,
            questions=[q for b in state.batches for q in b.questions],
        )

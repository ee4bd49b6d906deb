# core/extension.py
import logging
from typing import Optional
from core import prompt_builder, response_parser
from core.artifact_store import NO_MORE_BONUS, NO_MORE_QUESTIONS
from core.entities import ArtifactEvent
from core.pipeline import PipelineOrchestrator
from model.study import MCQBatch
from util.enums import ArtifactKind
from util.errors import BusyError, EmptyResult, GatewayError, PreconditionError
from util.timing import timed

logger = logging.getLogger(__name__)


class ExtensionEngine:
    """
    "Generate more" operations. Both append to existing artifacts and never replace them;
    failures only raise a dismissable notice.
    """

    def __init__(self, pipeline: PipelineOrchestrator) -> None:
        self._store = pipeline.store
        self._gateway = pipeline.gateway

    async def extend_bonus(self) -> bool:
        state = self._store.state
        if state.extraction is None or state.masterNote is None:
            raise PreconditionError("bonus needs a master note")
        run_id, language = state.runId, state.language
        self._store.begin(ArtifactKind.BONUS)

        try:
            with timed(logger, "extend.bonus", run=run_id):
                res = await self._gateway.invoke(
                    prompt_builder.bonus_request(
                        state.extraction, state.masterNote.layer3, language
                    )
                )
            if not res.text:
                raise EmptyResult("empty bonus", user_message=NO_MORE_BONUS)
        except EmptyResult as e:
            return self._settle_empty(ArtifactKind.BONUS, run_id, e.user_message)
        except GatewayError as e:
            return self._settle_failed(ArtifactKind.BONUS, run_id, e)
        except Exception:
            self._store.settle(ArtifactKind.BONUS)
            raise

        return self._store.dispatch(
            ArtifactEvent(kind=ArtifactKind.BONUS, outcome="success", run_id=run_id, payload=res.text)
        )

    async def extend_batch(self) -> Optional[MCQBatch]:
        """
        Request batch N+1 with every prior question text as a bounded do-not-repeat hint.
        Returns the appended batch, or None when nothing was appended.
        """
        state = self._store.state
        if state.extraction is None:
            raise PreconditionError("batch needs an extraction")
        if state.loading.practice:
            # Batch 1 is still being generated by the run
            raise BusyError(ArtifactKind.PRACTICE.value)
        run_id, language = state.runId, state.language
        next_number = len(state.batches) + 1
        previous = [q.question for b in state.batches for q in b.questions]
        self._store.begin(ArtifactKind.BATCH)

        try:
            with timed(logger, "extend.batch", run=run_id, batch=next_number):
                res = await self._gateway.invoke(
                    prompt_builder.mcq_request(state.extraction, language, next_number, previous)
                )
                generated = response_parser.parse_mcq_batch(res.data)
            if not generated.questions:
                raise EmptyResult("zero questions", user_message=NO_MORE_QUESTIONS)
        except EmptyResult as e:
            self._settle_empty(ArtifactKind.BATCH, run_id, e.user_message)
            return None
        except GatewayError as e:
            self._settle_failed(ArtifactKind.BATCH, run_id, e)
            return None
        except Exception:
            self._store.settle(ArtifactKind.BATCH)
            raise

        applied = self._store.dispatch(
            ArtifactEvent(kind=ArtifactKind.BATCH, outcome="success", run_id=run_id, payload=generated)
        )
        if not applied:
            return None
        batch = self._store.state.batches[-1]
        logger.info("extend.batch.ok run=%s batch=%d questions=%d", run_id, batch.batchNumber, len(batch.questions))
        return batch

    def _settle_empty(self, kind: ArtifactKind, run_id: Optional[str], message: str) -> bool:
        logger.info("extend.%s.empty run=%s", kind.value, run_id)
        self._store.dispatch(ArtifactEvent(kind=kind, outcome="empty", run_id=run_id, message=message))
        return False

    def _settle_failed(self, kind: ArtifactKind, run_id: Optional[str], err: GatewayError) -> bool:
        logger.warning("extend.%s.failed run=%s err=%s", kind.value, run_id, type(err).__name__)
        self._store.dispatch(
            ArtifactEvent(kind=kind, outcome="failure", run_id=run_id, message=err.user_message)
        )
        return False

# core/pipeline.py
import asyncio
import logging
from typing import Awaitable, Callable, Optional, Sequence, Set
from uuid import uuid4
from config.settings import settings
from core import prompt_builder, response_parser
from core.artifact_store import ArtifactStore
from core.entities import ArtifactEvent, ImagePayload, RunContext, RunHandle
from core.gemini_client import GenerationGateway
from model.study import ExtractionResult
from util.enums import ArtifactKind, OutputLanguage
from util.errors import EmptyResult, EmptyUploadError, GatewayError
from util.timing import timed

logger = logging.getLogger(__name__)

NO_TEXT_FOUND = "No readable text was found on the uploaded pages."


class PipelineOrchestrator:
    """
    Flow:
    - Extraction is awaited; nothing else may start before it settles.
    - Its failure is fatal to the run: session error set, all flags cleared.
    - Otherwise note, summary, first MCQ batch and flashcards run as independent
      tasks; each settles its own slice through the store's reducer.
    """

    def __init__(self, store: ArtifactStore, gateway: GenerationGateway) -> None:
        self._store = store
        self._gateway = gateway
        self._tasks: Set[asyncio.Task] = set()

    @property
    def store(self) -> ArtifactStore:
        return self._store

    @property
    def gateway(self) -> GenerationGateway:
        return self._gateway

    def spawn(self, coro: Awaitable[None], name: str) -> asyncio.Task:
        """Create a tracked task; the set keeps it referenced until it finishes."""
        task = asyncio.create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def wait_idle(self) -> None:
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def start_run(
        self, images: Sequence[ImagePayload], language: OutputLanguage
    ) -> RunHandle:
        if not images:
            raise EmptyUploadError("no images")

        ctx = RunContext(run_id=uuid4().hex, language=language)
        self._store.begin_run(ctx.run_id, ctx.language)
        handle = RunHandle(run_id=ctx.run_id)
        logger.info("pipeline.run.start run=%s images=%d lang=%s", ctx.run_id, len(images), language.value)

        extraction = await self._extract(ctx, images)
        if extraction is None:
            return handle

        handle.extracted = True
        handle.tasks = [
            self.spawn(self._derive(ctx, kind, job), name=f"{kind.value}:{ctx.run_id}")
            for kind, job in self._derivations(extraction, ctx)
        ]
        logger.info("pipeline.run.dispatched run=%s derivations=%d", ctx.run_id, len(handle.tasks))
        return handle

    async def _extract(
        self, ctx: RunContext, images: Sequence[ImagePayload]
    ) -> Optional[ExtractionResult]:
        try:
            with timed(logger, "pipeline.extract", run=ctx.run_id):
                result = await self._gateway.invoke(prompt_builder.extraction_request(images))
                extraction = response_parser.parse_extraction(result.data)
            if not extraction.text:
                raise EmptyResult("empty ocr text", user_message=NO_TEXT_FOUND)
        except GatewayError as e:
            logger.error("pipeline.extract.failed run=%s err=%s", ctx.run_id, type(e).__name__)
            self._store.dispatch(
                ArtifactEvent(
                    kind=ArtifactKind.EXTRACTION,
                    outcome="failure",
                    run_id=ctx.run_id,
                    message=e.user_message,
                )
            )
            return None
        except Exception:
            logger.error("pipeline.extract.crashed run=%s", ctx.run_id, exc_info=True)
            self._store.dispatch(
                ArtifactEvent(kind=ArtifactKind.EXTRACTION, outcome="failure", run_id=ctx.run_id)
            )
            raise

        applied = self._store.dispatch(
            ArtifactEvent(
                kind=ArtifactKind.EXTRACTION,
                outcome="success",
                run_id=ctx.run_id,
                payload=extraction,
            )
        )
        logger.info(
            "pipeline.extract.ok run=%s subject=%s chars=%d",
            ctx.run_id,
            extraction.subject.name,
            len(extraction.text),
        )
        # A newer run took over while extraction was in flight
        return extraction if applied else None

    def _derivations(self, extraction: ExtractionResult, ctx: RunContext):
        gw, lang = self._gateway, ctx.language

        async def note():
            res = await gw.invoke(prompt_builder.master_note_request(extraction, lang))
            return response_parser.parse_master_note(res.data)

        async def summary():
            res = await gw.invoke(prompt_builder.summary_request(extraction, lang))
            if not res.text:
                raise EmptyResult("empty summary")
            return res.text

        async def practice():
            res = await gw.invoke(prompt_builder.mcq_request(extraction, lang, batch_number=1))
            batch = response_parser.parse_mcq_batch(res.data)
            if not batch.questions:
                raise EmptyResult("no questions in first batch")
            return batch

        async def flashcards():
            res = await gw.invoke(prompt_builder.flashcards_request(extraction, lang))
            cards = response_parser.parse_flashcards(res.data, settings.FLASHCARD_COUNT)
            if not cards:
                raise EmptyResult("no flashcards")
            return cards

        return [
            (ArtifactKind.NOTE, note),
            (ArtifactKind.SUMMARY, summary),
            (ArtifactKind.PRACTICE, practice),
            (ArtifactKind.FLASHCARDS, flashcards),
        ]

    async def _derive(
        self, ctx: RunContext, kind: ArtifactKind, job: Callable[[], Awaitable[object]]
    ) -> None:
        try:
            with timed(logger, f"pipeline.{kind.value}", run=ctx.run_id):
                payload = await job()
        except GatewayError as e:
            logger.warning(
                "pipeline.derive.failed kind=%s run=%s err=%s", kind.value, ctx.run_id, type(e).__name__
            )
            self._store.dispatch(
                ArtifactEvent(kind=kind, outcome="failure", run_id=ctx.run_id, message=e.user_message)
            )
            return
        except Exception:
            # Unexpected bug in one derivation must still settle its flag
            logger.error("pipeline.derive.crashed kind=%s run=%s", kind.value, ctx.run_id, exc_info=True)
            self._store.dispatch(ArtifactEvent(kind=kind, outcome="failure", run_id=ctx.run_id))
            raise
        self._store.dispatch(
            ArtifactEvent(kind=kind, outcome="success", run_id=ctx.run_id, payload=payload)
        )

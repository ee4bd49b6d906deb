import asyncio

import pytest

from conftest import FakeGateway
from core.pipeline import NO_TEXT_FOUND, PipelineOrchestrator
from util.enums import OutputLanguage, Subject
from util.errors import (
    EmptyUploadError,
    MalformedResponse,
    QuotaOrAuthFailure,
    TransportFailure,
)

DERIVATIONS = {"note", "summary", "mcq", "flashcards"}


async def run_to_completion(pipeline, images, language=OutputLanguage.EN):
    handle = await pipeline.start_run(images, language)
    await asyncio.gather(*handle.tasks)
    return handle


async def test_successful_run_populates_every_artifact(pipeline, store, images):
    handle = await run_to_completion(pipeline, images)

    state = store.state
    assert handle.extracted
    assert state.runId == handle.run_id
    assert state.error is None
    assert state.extraction.subject == Subject.MATH
    assert state.masterNote.layer3 == "L3"
    assert state.summary.startswith("## Summary")
    assert [b.batchNumber for b in state.batches] == [1]
    assert len(state.batches[0].questions) == 3
    assert len(state.flashcards) == 10
    assert not state.loading.any()


async def test_extraction_is_stored_before_any_derivation_is_issued(store, images):
    gateway = FakeGateway()
    seen = []
    gateway.on_call = lambda kind: seen.append((kind, store.state.extraction is not None))
    pipeline = PipelineOrchestrator(store, gateway)

    await run_to_completion(pipeline, images)

    assert seen[0] == ("extraction", False)
    assert {k for k, _ in seen[1:]} == DERIVATIONS
    assert all(ready for _, ready in seen[1:])


async def test_extraction_receives_all_images(pipeline, gateway, images):
    await run_to_completion(pipeline, images)
    assert gateway.calls[0].images == tuple(images)
    assert all(not c.images for c in gateway.calls[1:])


@pytest.mark.parametrize(
    "error",
    [TransportFailure("down"), QuotaOrAuthFailure("quota", 429), MalformedResponse("bad json")],
)
async def test_extraction_failure_aborts_the_run(store, images, error):
    gateway = FakeGateway({"extraction": error})
    pipeline = PipelineOrchestrator(store, gateway)

    handle = await pipeline.start_run(images, OutputLanguage.BN)

    assert not handle.extracted
    assert handle.tasks == []
    assert gateway.kinds == ["extraction"]
    assert store.state.error == error.user_message
    assert not store.state.loading.any()
    assert store.state.masterNote is None
    assert store.state.summary is None
    assert store.state.batches == []
    assert store.state.flashcards == []


async def test_empty_extracted_text_is_fatal(store, images):
    gateway = FakeGateway({"extraction": {"ocrText": "   ", "subject": "GK"}})
    pipeline = PipelineOrchestrator(store, gateway)

    await pipeline.start_run(images, OutputLanguage.BN)

    assert store.state.error == NO_TEXT_FOUND
    assert gateway.kinds == ["extraction"]


async def test_summary_failure_leaves_other_artifacts_intact(store, images):
    gateway = FakeGateway({"summary": TransportFailure("timeout")})
    pipeline = PipelineOrchestrator(store, gateway)

    await run_to_completion(pipeline, images)

    state = store.state
    assert state.summary is None
    assert state.loading.summary is False
    assert state.error is None
    assert state.masterNote is not None
    assert len(state.batches) == 1
    assert len(state.flashcards) == 10


@pytest.mark.parametrize(
    "failing, absent",
    [
        ("note", lambda s: s.masterNote is None),
        ("mcq", lambda s: s.batches == []),
        ("flashcards", lambda s: s.flashcards == []),
    ],
)
async def test_each_derivation_fails_independently(store, images, failing, absent):
    gateway = FakeGateway({failing: MalformedResponse("nope")})
    pipeline = PipelineOrchestrator(store, gateway)

    await run_to_completion(pipeline, images)

    state = store.state
    assert absent(state)
    assert state.error is None
    assert not state.loading.any()
    assert state.summary is not None


async def test_first_batch_with_zero_questions_leaves_practice_empty(store, images):
    gateway = FakeGateway({"mcq": {"questions": []}})
    pipeline = PipelineOrchestrator(store, gateway)

    await run_to_completion(pipeline, images)

    assert store.state.batches == []
    assert store.state.loading.practice is False
    assert store.state.error is None


async def test_derivations_complete_in_any_order(store, images):
    gateway = FakeGateway()
    for kind in DERIVATIONS:
        gateway.gates[kind] = asyncio.Event()
    pipeline = PipelineOrchestrator(store, gateway)

    handle = await pipeline.start_run(images, OutputLanguage.EN)
    await asyncio.sleep(0)
    assert store.state.loading.note and store.state.loading.flashcards

    gateway.gates["flashcards"].set()
    await handle.tasks[3]
    assert store.state.flashcards and store.state.masterNote is None
    assert store.state.loading.note is True

    for kind in ("summary", "mcq", "note"):
        gateway.gates[kind].set()
    await asyncio.gather(*handle.tasks)
    assert not store.state.loading.any()


async def test_stale_run_completion_is_discarded(store, images):
    gateway = FakeGateway()
    counter = iter(range(1, 10))
    gateway.responses["note"] = lambda req: {
        "layer1": f"run-{next(counter)}",
        "layer2": "",
        "layer3": "",
    }
    held = asyncio.Event()
    gateway.gates["note"] = held
    pipeline = PipelineOrchestrator(store, gateway)

    first = await pipeline.start_run(images, OutputLanguage.EN)
    await asyncio.sleep(0)

    gateway.gates["note"] = asyncio.Event()
    gateway.gates["note"].set()
    second = await pipeline.start_run(images, OutputLanguage.EN)
    await asyncio.gather(*second.tasks)
    assert store.state.masterNote.layer1 == "run-2"

    held.set()
    await asyncio.gather(*first.tasks)
    assert store.state.runId == second.run_id
    assert store.state.masterNote.layer1 == "run-2"
    assert not store.state.loading.any()


async def test_language_is_fixed_for_the_whole_run(store, images):
    gateway = FakeGateway()
    gateway.gates["summary"] = asyncio.Event()
    pipeline = PipelineOrchestrator(store, gateway)

    handle = await pipeline.start_run(images, OutputLanguage.EN)
    store.update(lambda s: {"language": OutputLanguage.BN})
    gateway.gates["summary"].set()
    await asyncio.gather(*handle.tasks)

    summary_prompt = next(c.prompt for c, k in zip(gateway.calls, gateway.kinds) if k == "summary")
    assert "Language: EN" in summary_prompt


async def test_run_without_images_is_rejected(pipeline, gateway):
    with pytest.raises(EmptyUploadError):
        await pipeline.start_run([], OutputLanguage.EN)
    assert gateway.calls == []


async def test_no_automatic_retry_after_failure(store, images):
    gateway = FakeGateway({"note": TransportFailure("down")})
    pipeline = PipelineOrchestrator(store, gateway)

    await run_to_completion(pipeline, images)

    assert gateway.kinds.count("note") == 1

# core/prompt_builder.py
from typing import Sequence
from config.settings import settings
from core.entities import GenerationRequest, ImagePayload
from model.study import ExtractionResult
from util.enums import OutputLanguage, TaskKind
from util.functions import bounded_used_facts, clip_chars


def extraction_request(images: Sequence[ImagePayload]) -> GenerationRequest:
    return GenerationRequest(
        task_kind=TaskKind.STRUCTURED,
        prompt=settings.EXTRACTION_PROMPT,
        images=tuple(images),
    )


def master_note_request(
    extraction: ExtractionResult, language: OutputLanguage
) -> GenerationRequest:
    prompt = settings.MASTER_NOTE_PROMPT.format(
        text=extraction.text,
        subject=extraction.subject.value,
        language=language.value,
    )
    return GenerationRequest(task_kind=TaskKind.STRUCTURED, prompt=prompt)


def summary_request(
    extraction: ExtractionResult, language: OutputLanguage
) -> GenerationRequest:
    prompt = settings.SUMMARY_PROMPT.format(text=extraction.text, language=language.value)
    return GenerationRequest(task_kind=TaskKind.FREEFORM, prompt=prompt)


def mcq_request(
    extraction: ExtractionResult,
    language: OutputLanguage,
    batch_number: int,
    previous_questions: Sequence[str] = (),
) -> GenerationRequest:
    """
    Ask for one batch. Previously asked question texts go in as a bounded
    "do not repeat" hint (newest kept, oldest dropped past USED_FACTS_MAX_CHARS).
    """
    used = bounded_used_facts(previous_questions, settings.USED_FACTS_MAX_CHARS)
    prompt = settings.MCQ_PROMPT.format(
        count=settings.MCQ_BATCH_SIZE,
        batch_number=batch_number,
        text=extraction.text,
        language=language.value,
        used_facts=used or "(none)",
    )
    return GenerationRequest(task_kind=TaskKind.STRUCTURED, prompt=prompt)


def flashcards_request(
    extraction: ExtractionResult, language: OutputLanguage
) -> GenerationRequest:
    prompt = settings.FLASHCARD_PROMPT.format(
        count=settings.FLASHCARD_COUNT, text=extraction.text, language=language.value
    )
    return GenerationRequest(task_kind=TaskKind.STRUCTURED, prompt=prompt)


def bonus_request(
    extraction: ExtractionResult, existing_bonus: str, language: OutputLanguage
) -> GenerationRequest:
    prompt = settings.BONUS_PROMPT.format(
        text=extraction.text,
        subject=extraction.subject.value,
        language=language.value,
        existing=clip_chars(existing_bonus, settings.BONUS_CONTEXT_CHARS),
    )
    return GenerationRequest(task_kind=TaskKind.FREEFORM, prompt=prompt)


def clarify_request(span: str, context: str, language: OutputLanguage) -> GenerationRequest:
    prompt = settings.CLARIFY_PROMPT.format(
        span=span, context=context or span, language=language.label
    )
    return GenerationRequest(task_kind=TaskKind.STRUCTURED, prompt=prompt)

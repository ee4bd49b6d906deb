# core/response_parser.py
import logging
from typing import Any, Dict, List
from pydantic import ValidationError
from model.study import (
    Clarification,
    CoverageReport,
    ExtractionResult,
    Flashcard,
    GeneratedBatch,
    MasterNote,
    MCQQuestion,
)
from util.enums import Subject
from util.errors import MalformedResponse
from util.types import OPTIONS

logger = logging.getLogger(__name__)

_SUBJECT_KEYWORDS: List[tuple[Subject, tuple[str, ...]]] = [
    (Subject.BANGLA, ("bangla", "bengali", "বাংলা")),
    (Subject.ENGLISH, ("english",)),
    (Subject.MATH, ("math", "arithmetic", "algebra", "গণিত")),
    (Subject.GK, ("gk", "general knowledge", "history", "geography", "current affairs")),
]


def _require_dict(data: Any, what: str) -> Dict[str, Any]:
    if not isinstance(data, dict):
        raise MalformedResponse(f"{what}: expected object, got {type(data).__name__}")
    return data


def _as_text(value: Any) -> str:
    # Models occasionally return a list of lines where one markdown string was asked for.
    if isinstance(value, list):
        return "\n".join(str(v) for v in value)
    return "" if value is None else str(value)


def parse_subject(label: Any) -> Subject:
    s = str(label or "").strip().lower()
    if not s:
        return Subject.UNKNOWN
    for subject in Subject:
        if s == subject.value.lower() or s == subject.name.lower():
            return subject
    for subject, keywords in _SUBJECT_KEYWORDS:
        if any(k in s for k in keywords):
            return subject
    return Subject.UNKNOWN


def parse_extraction(data: Any) -> ExtractionResult:
    obj = _require_dict(data, "extraction")
    text = obj.get("ocrText", obj.get("text"))
    if not isinstance(text, str):
        raise MalformedResponse("extraction: missing ocrText")
    return ExtractionResult(text=text.strip(), subject=parse_subject(obj.get("subject")))


def parse_master_note(data: Any) -> MasterNote:
    obj = _require_dict(data, "master_note")
    missing = [k for k in ("layer1", "layer2", "layer3") if obj.get(k) is None]
    if missing:
        raise MalformedResponse(f"master_note: missing {','.join(missing)}")
    return MasterNote(
        layer1=_as_text(obj["layer1"]),
        layer2=_as_text(obj["layer2"]),
        layer3=_as_text(obj["layer3"]),
    )


def _normalize_question(raw: Any, position: int) -> MCQQuestion:
    q = _require_dict(raw, "question")
    options = q.get("options")
    if isinstance(options, list) and len(options) == len(OPTIONS):
        options = dict(zip(OPTIONS, options))
    answer = str(q.get("correctAnswer") or "").strip().upper()[:1]
    return MCQQuestion.model_validate(
        {
            "id": position,
            "question": str(q.get("question") or "").strip(),
            "options": options,
            "correctAnswer": answer,
            "briefExplanation": str(q.get("briefExplanation") or q.get("explanation") or ""),
            "sourceTag": str(q.get("sourceTag") or ""),
            "covers": [str(c) for c in (q.get("covers") or []) if c],
        }
    )


def parse_mcq_batch(data: Any) -> GeneratedBatch:
    """
    Accepts {"questions": [...]} or {"practice": {...}}, and a bare list of questions.
    Malformed individual questions are dropped; ids are renumbered 1..n.
    """
    if isinstance(data, list):
        root: Dict[str, Any] = {"questions": data}
    else:
        obj = _require_dict(data, "mcq")
        root = obj.get("practice") if isinstance(obj.get("practice"), dict) else obj

    raw_questions = root.get("questions") or []
    if not isinstance(raw_questions, list):
        raise MalformedResponse("mcq: questions is not a list")

    questions: List[MCQQuestion] = []
    dropped = 0
    for raw in raw_questions:
        try:
            q = _normalize_question(raw, len(questions) + 1)
        except (MalformedResponse, ValidationError):
            dropped += 1
            continue
        if not q.question:
            dropped += 1
            continue
        questions.append(q)
    if dropped:
        logger.warning("parse.mcq.dropped count=%d kept=%d", dropped, len(questions))

    end = root.get("endOfBatch") if isinstance(root.get("endOfBatch"), dict) else {}
    report_raw = end.get("coverageReport") or root.get("coverageReport") or {}
    try:
        report = CoverageReport.model_validate(report_raw)
    except ValidationError:
        report = CoverageReport()
    return GeneratedBatch(questions=questions, coverageReport=report)


def parse_flashcards(data: Any, limit: int) -> List[Flashcard]:
    if isinstance(data, list):
        raw_cards = data
    else:
        raw_cards = _require_dict(data, "flashcards").get("cards")
    if not isinstance(raw_cards, list):
        raise MalformedResponse("flashcards: cards is not a list")
    cards: List[Flashcard] = []
    for raw in raw_cards:
        text = raw.get("question") if isinstance(raw, dict) else raw
        text = str(text or "").strip()
        if text:
            cards.append(Flashcard(id=len(cards) + 1, question=text))
        if len(cards) >= limit:
            break
    return cards


def parse_clarification(data: Any) -> Clarification:
    obj = _require_dict(data, "clarification")
    try:
        return Clarification(
            definition=_as_text(obj["definition"]),
            fullExplanation=_as_text(obj["fullExplanation"]),
        )
    except KeyError as e:
        raise MalformedResponse(f"clarification: missing {e.args[0]}") from e

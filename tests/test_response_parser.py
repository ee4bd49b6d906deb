import pytest

from conftest import make_question
from core.response_parser import (
    parse_clarification,
    parse_extraction,
    parse_flashcards,
    parse_master_note,
    parse_mcq_batch,
    parse_subject,
)
from util.enums import Subject
from util.errors import MalformedResponse


@pytest.mark.parametrize(
    "label, expected",
    [
        ("Math", Subject.MATH),
        ("Bangla 2nd Paper", Subject.BANGLA),
        ("English (Grammar/Vocab)", Subject.ENGLISH),
        ("GK", Subject.GK),
        ("Physics", Subject.UNKNOWN),
        (None, Subject.UNKNOWN),
    ],
)
def test_parse_subject(label, expected):
    assert parse_subject(label) == expected


def test_extraction_accepts_text_alias_and_strips():
    res = parse_extraction({"text": "  hello  ", "subject": "english"})
    assert res.text == "hello"
    assert res.subject == Subject.ENGLISH


def test_extraction_without_text_is_malformed():
    with pytest.raises(MalformedResponse):
        parse_extraction({"subject": "GK"})


def test_master_note_joins_list_layers():
    note = parse_master_note({"layer1": ["a", "b"], "layer2": "c", "layer3": "d"})
    assert note.layer1 == "a\nb"


def test_master_note_requires_all_layers():
    with pytest.raises(MalformedResponse):
        parse_master_note({"layer1": "a", "layer2": "b"})


def test_mcq_batch_drops_broken_questions_and_renumbers():
    broken = {"question": "No options?", "correctAnswer": "A"}
    bad_answer = {**make_question(9), "correctAnswer": "E"}
    data = {"questions": [make_question(7), broken, bad_answer, make_question(8)]}

    batch = parse_mcq_batch(data)

    assert [q.id for q in batch.questions] == [1, 2]
    assert [q.question for q in batch.questions] == ["Question 7?", "Question 8?"]


def test_mcq_batch_accepts_practice_wrapper_and_end_of_batch_report():
    data = {
        "practice": {
            "questions": [make_question(1)],
            "endOfBatch": {"coverageReport": {"usedFactsCount": 4, "unusedFactsCount": 2}},
        }
    }

    batch = parse_mcq_batch(data)

    assert len(batch.questions) == 1
    assert batch.coverageReport.usedFactsCount == 4


def test_mcq_batch_accepts_bare_list_and_option_lists():
    q = {**make_question(1), "options": ["w", "x", "y", "z"], "correctAnswer": "c) y"}

    batch = parse_mcq_batch([q])

    assert batch.questions[0].options.C == "y"
    assert batch.questions[0].correctAnswer == "C"


def test_flashcards_are_capped_and_renumbered():
    cards = parse_flashcards({"cards": [{"question": f"Q{i}"} for i in range(15)] + ["tail"]}, 10)

    assert len(cards) == 10
    assert [c.id for c in cards] == list(range(1, 11))


def test_clarification_requires_both_fields():
    with pytest.raises(MalformedResponse):
        parse_clarification({"definition": "x"})

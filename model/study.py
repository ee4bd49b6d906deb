# model/study.py
from pydantic import BaseModel, ConfigDict, Field
from util.enums import Subject
from util.types import Option


class ExtractionResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str
    subject: Subject = Subject.UNKNOWN


class MasterNote(BaseModel):
    layer1: str
    layer2: str
    layer3: str


class Options(BaseModel):
    A: str
    B: str
    C: str
    D: str


class MCQQuestion(BaseModel):
    id: int
    question: str
    options: Options
    correctAnswer: Option
    briefExplanation: str = ""
    sourceTag: str = ""
    covers: list[str] = Field(default_factory=list)


class CoverageReport(BaseModel):
    usedFactsCount: int = 0
    unusedFactsCount: int = 0
    unusedFactsPreview: list[str] = Field(default_factory=list)


class MCQBatch(BaseModel):
    batchNumber: int = Field(ge=1)
    questions: list[MCQQuestion]
    coverageReport: CoverageReport = Field(default_factory=CoverageReport)


class GeneratedBatch(BaseModel):
    """A batch as returned by the model, before it is numbered into the session."""

    questions: list[MCQQuestion]
    coverageReport: CoverageReport = Field(default_factory=CoverageReport)


class Flashcard(BaseModel):
    id: int
    question: str


class Clarification(BaseModel):
    definition: str
    fullExplanation: str

# util/enums.py
from enum import Enum
from typing import NamedTuple
from fastapi import status


class Color(str, Enum):
    RESET = "\033[0m"
    RED = "\033[31m"
    GREEN = "\033[32m"
    BLUE = "\033[34m"

    def __str__(self):
        return self.value


class Environment(str, Enum):
    DEV = "dev"
    PROD = "prod"


class Subject(str, Enum):
    BANGLA = "Bangla 2nd Paper (Grammar)"
    ENGLISH = "English (Grammar/Vocab)"
    MATH = "Math (Arithmetic/Algebra)"
    GK = "GK (History/Geography/Current Affairs)"
    UNKNOWN = "Unknown"


class OutputLanguage(str, Enum):
    BN = "BN"
    EN = "EN"

    @property
    def label(self) -> str:
        return "Bengali" if self is OutputLanguage.BN else "English"


class ActiveTab(str, Enum):
    MASTER = "master"
    SUMMARY = "summary"
    PRACTICE = "practice"
    FLASHCARDS = "flashcards"
    MISTAKES = "mistakes"


class ArtifactKind(str, Enum):
    EXTRACTION = "extraction"
    NOTE = "note"
    SUMMARY = "summary"
    PRACTICE = "practice"
    FLASHCARDS = "flashcards"
    CLARIFICATION = "clarification"
    BONUS = "bonus"
    BATCH = "batch"


class TaskKind(str, Enum):
    FREEFORM = "freeform"
    STRUCTURED = "structured"


class ErrorInfo(NamedTuple):
    message: str
    http_status: int


class ErrorMessage(Enum):
    UNKNOWN_SESSION = ErrorInfo("Unknown or expired sessionId", status.HTTP_404_NOT_FOUND)
    NO_IMAGES = ErrorInfo("Upload at least one photo first.", status.HTTP_400_BAD_REQUEST)
    IMAGE_INDEX = ErrorInfo("No photo at that position.", status.HTTP_404_NOT_FOUND)
    NOT_AN_IMAGE = ErrorInfo("Only image files are accepted.", status.HTTP_415_UNSUPPORTED_MEDIA_TYPE)
    BUSY = ErrorInfo("That operation is already running.", status.HTTP_409_CONFLICT)
    PRECONDITION = ErrorInfo("Generate a study kit first.", status.HTTP_409_CONFLICT)
    INVALID_ANSWER = ErrorInfo("Question is not part of the active batch.", status.HTTP_422_UNPROCESSABLE_ENTITY)
    NOT_AT_LAST_QUESTION = ErrorInfo("Reach the last question before finishing.", status.HTTP_409_CONFLICT)
    INTERNAL_ERROR = ErrorInfo("Internal Error", status.HTTP_502_BAD_GATEWAY)

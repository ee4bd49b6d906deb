# model/api.py
from typing import Literal
from pydantic import BaseModel, Field
from model.session import SessionState
from util.enums import ActiveTab, OutputLanguage
from util.types import Option


class CreateSessionResponse(BaseModel):
    sessionId: str


class SessionSnapshot(SessionState):
    uploads: int = 0
    maxUploads: int = 5


class AddImagesResponse(BaseModel):
    added: int
    uploads: int
    truncated: bool = False
    maxReached: bool = False


class StartRunRequest(BaseModel):
    language: OutputLanguage | None = None


class ClarifyRequest(BaseModel):
    span: str = Field(min_length=1)
    context: str = ""
    language: OutputLanguage | None = None


class AnswerRequest(BaseModel):
    questionId: int
    option: Option


class NavigateRequest(BaseModel):
    direction: Literal[-1, 1]


class SelectBatchRequest(BaseModel):
    index: int = Field(ge=0)


class PreferencesRequest(BaseModel):
    activeTab: ActiveTab | None = None
    language: OutputLanguage | None = None

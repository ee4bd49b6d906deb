# service/study_service.py
import logging
from typing import List, Optional
from fastapi import UploadFile
from core.entities import ImagePayload
from model.api import AddImagesResponse, PreferencesRequest, SessionSnapshot
from model.session import ExamReport, ExportSnapshot
from repository.session_repository import SessionRepository, StudySession
from util.enums import ErrorMessage, OutputLanguage
from util.errors import (
    AppError,
    BusyError,
    EmptyUploadError,
    ExamNotCompleteError,
    InvalidAnswerError,
    PreconditionError,
    StudyKitError,
)
from util.types import Option

logger = logging.getLogger(__name__)

_ERROR_MAP = {
    EmptyUploadError: ErrorMessage.NO_IMAGES,
    BusyError: ErrorMessage.BUSY,
    PreconditionError: ErrorMessage.PRECONDITION,
    InvalidAnswerError: ErrorMessage.INVALID_ANSWER,
    ExamNotCompleteError: ErrorMessage.NOT_AT_LAST_QUESTION,
}


def _app_error(err: StudyKitError) -> AppError:
    return AppError.of(_ERROR_MAP.get(type(err), ErrorMessage.INTERNAL_ERROR))


class StudyService:
    def __init__(self, sessions: SessionRepository) -> None:
        self._sessions = sessions

    def _session(self, session_id: str) -> StudySession:
        session = self._sessions.get(session_id)
        if session is None:
            logger.warning("session.unknown id=%s", session_id)
            raise AppError.of(ErrorMessage.UNKNOWN_SESSION)
        return session

    @staticmethod
    def _snapshot(session: StudySession) -> SessionSnapshot:
        return SessionSnapshot(
            **session.store.state.model_dump(),
            uploads=len(session.store.uploads),
            maxUploads=session.store.uploads.capacity,
        )

    # ---------------- Session lifecycle ----------------

    def create_session(self) -> str:
        return self._sessions.create().id

    def snapshot(self, session_id: str) -> SessionSnapshot:
        return self._snapshot(self._session(session_id))

    def reset_session(self, session_id: str) -> SessionSnapshot:
        session = self._sessions.replace(session_id)
        if session is None:
            raise AppError.of(ErrorMessage.UNKNOWN_SESSION)
        return self._snapshot(session)

    def delete_session(self, session_id: str) -> None:
        if not self._sessions.delete(session_id):
            raise AppError.of(ErrorMessage.UNKNOWN_SESSION)

    # ---------------- Uploads ----------------

    async def add_images(self, session_id: str, files: List[UploadFile]) -> AddImagesResponse:
        """
        Read uploads into the session's UploadSet. Files past the free slots are not read.
        Logs: counts and byte sizes only.
        """
        session = self._session(session_id)
        uploads = session.store.uploads
        free = max(0, uploads.capacity - len(uploads))

        payloads: List[ImagePayload] = []
        for f in files[:free]:
            if not (f.content_type or "").startswith("image/"):
                raise AppError.of(ErrorMessage.NOT_AN_IMAGE)
            try:
                data = await f.read()
            except Exception:
                logger.error("upload.read.error session=%s", session_id)
                raise
            payloads.append(ImagePayload(data=data, mime_type=f.content_type or "image/jpeg"))

        outcome = uploads.add(payloads)
        if outcome.max_reached:
            logger.info("upload.max_reached session=%s rejected=%d", session_id, len(files))
        truncated = outcome.truncated or len(files) > free
        logger.info(
            "upload.ok session=%s added=%d size=%d bytes=%d truncated=%s",
            session_id,
            outcome.added,
            outcome.size,
            sum(len(p.data) for p in payloads),
            truncated,
        )
        return AddImagesResponse(
            added=outcome.added,
            uploads=outcome.size,
            truncated=truncated,
            maxReached=outcome.size >= uploads.capacity,
        )

    def remove_image(self, session_id: str, index: int) -> SessionSnapshot:
        session = self._session(session_id)
        try:
            session.store.uploads.remove(index)
        except IndexError:
            raise AppError.of(ErrorMessage.IMAGE_INDEX)
        return self._snapshot(session)

    # ---------------- Generation ----------------

    async def start_run(
        self, session_id: str, language: Optional[OutputLanguage] = None
    ) -> SessionSnapshot:
        session = self._session(session_id)
        lang = language or session.store.state.language
        try:
            await session.pipeline.start_run(session.store.uploads.snapshot(), lang)
        except StudyKitError as e:
            raise _app_error(e)
        return self._snapshot(session)

    async def extend_bonus(self, session_id: str) -> SessionSnapshot:
        session = self._session(session_id)
        try:
            await session.extensions.extend_bonus()
        except StudyKitError as e:
            raise _app_error(e)
        return self._snapshot(session)

    async def extend_batch(self, session_id: str) -> SessionSnapshot:
        session = self._session(session_id)
        try:
            await session.extensions.extend_batch()
        except StudyKitError as e:
            raise _app_error(e)
        return self._snapshot(session)

    # ---------------- Interaction ----------------

    async def clarify(
        self, session_id: str, span: str, context: str, language: Optional[OutputLanguage]
    ) -> SessionSnapshot:
        session = self._session(session_id)
        try:
            await session.interaction.clarify(span, context, language)
        except StudyKitError as e:
            raise _app_error(e)
        return self._snapshot(session)

    def dismiss_clarification(self, session_id: str) -> SessionSnapshot:
        session = self._session(session_id)
        session.interaction.dismiss_clarification()
        return self._snapshot(session)

    def dismiss_notice(self, session_id: str) -> SessionSnapshot:
        session = self._session(session_id)
        session.interaction.dismiss_notice()
        return self._snapshot(session)

    def record_answer(self, session_id: str, question_id: int, option: Option) -> SessionSnapshot:
        session = self._session(session_id)
        try:
            session.interaction.record_answer(question_id, option)
        except StudyKitError as e:
            raise _app_error(e)
        return self._snapshot(session)

    def navigate(self, session_id: str, direction: int) -> SessionSnapshot:
        session = self._session(session_id)
        session.interaction.advance_question(direction)
        return self._snapshot(session)

    def finish_exam(self, session_id: str) -> SessionSnapshot:
        session = self._session(session_id)
        try:
            session.interaction.finish_exam()
        except StudyKitError as e:
            raise _app_error(e)
        return self._snapshot(session)

    def select_batch(self, session_id: str, index: int) -> SessionSnapshot:
        session = self._session(session_id)
        try:
            session.interaction.select_batch(index)
        except StudyKitError as e:
            raise _app_error(e)
        return self._snapshot(session)

    def set_preferences(self, session_id: str, prefs: PreferencesRequest) -> SessionSnapshot:
        session = self._session(session_id)
        session.interaction.set_preferences(prefs.activeTab, prefs.language)
        return self._snapshot(session)

    def exam_report(self, session_id: str) -> ExamReport:
        return self._session(session_id).interaction.exam_report()

    def export_snapshot(self, session_id: str) -> ExportSnapshot:
        session = self._session(session_id)
        if session.store.state.extraction is None:
            raise AppError.of(ErrorMessage.PRECONDITION)
        return session.interaction.export_snapshot()

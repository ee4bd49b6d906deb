# controller/exam_controller.py
from fastapi import APIRouter, Depends
from controller.controller_dependencies import get_study_service
from model.api import (
    AnswerRequest,
    ClarifyRequest,
    NavigateRequest,
    SelectBatchRequest,
    SessionSnapshot,
)
from model.session import ExamReport
from service.study_service import StudyService
from util.constants import InternalURIs

exam_router = APIRouter()


@exam_router.post(InternalURIs.ANSWERS, response_model=SessionSnapshot)
async def record_answer(
    session_id: str,
    payload: AnswerRequest,
    service: StudyService = Depends(get_study_service),
):
    return service.record_answer(session_id, payload.questionId, payload.option)


@exam_router.post(InternalURIs.NAVIGATE, response_model=SessionSnapshot)
async def navigate(
    session_id: str,
    payload: NavigateRequest,
    service: StudyService = Depends(get_study_service),
):
    return service.navigate(session_id, payload.direction)


@exam_router.post(InternalURIs.FINISH, response_model=SessionSnapshot)
async def finish_exam(session_id: str, service: StudyService = Depends(get_study_service)):
    return service.finish_exam(session_id)


@exam_router.put(InternalURIs.ACTIVE_BATCH, response_model=SessionSnapshot)
async def select_batch(
    session_id: str,
    payload: SelectBatchRequest,
    service: StudyService = Depends(get_study_service),
):
    return service.select_batch(session_id, payload.index)


@exam_router.get(InternalURIs.REPORT, response_model=ExamReport)
async def exam_report(session_id: str, service: StudyService = Depends(get_study_service)):
    return service.exam_report(session_id)


@exam_router.post(InternalURIs.CLARIFY, response_model=SessionSnapshot)
async def clarify(
    session_id: str,
    payload: ClarifyRequest,
    service: StudyService = Depends(get_study_service),
):
    return await service.clarify(session_id, payload.span, payload.context, payload.language)


@exam_router.delete(InternalURIs.CLARIFY, response_model=SessionSnapshot)
async def dismiss_clarification(
    session_id: str, service: StudyService = Depends(get_study_service)
):
    return service.dismiss_clarification(session_id)

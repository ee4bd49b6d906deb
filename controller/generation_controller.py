# controller/generation_controller.py
from typing import Optional
from fastapi import APIRouter, Depends, status
from controller.controller_dependencies import get_study_service
from model.api import SessionSnapshot, StartRunRequest
from model.session import ExportSnapshot
from service.study_service import StudyService
from util.constants import InternalURIs

generation_router = APIRouter()


@generation_router.post(
    InternalURIs.RUNS,
    response_model=SessionSnapshot,
    status_code=status.HTTP_202_ACCEPTED,
)
async def start_run(
    session_id: str,
    payload: Optional[StartRunRequest] = None,
    service: StudyService = Depends(get_study_service),
):
    # Returns once extraction settled; derivations keep running, poll the session.
    return await service.start_run(session_id, payload.language if payload else None)


@generation_router.post(InternalURIs.BONUS, response_model=SessionSnapshot)
async def extend_bonus(session_id: str, service: StudyService = Depends(get_study_service)):
    return await service.extend_bonus(session_id)


@generation_router.post(InternalURIs.BATCHES, response_model=SessionSnapshot)
async def extend_batch(session_id: str, service: StudyService = Depends(get_study_service)):
    return await service.extend_batch(session_id)


@generation_router.get(InternalURIs.EXPORT, response_model=ExportSnapshot)
async def export_kit(session_id: str, service: StudyService = Depends(get_study_service)):
    return service.export_snapshot(session_id)

# controller/session_controller.py
from typing import List
from fastapi import APIRouter, Depends, File, UploadFile, status
from controller.controller_dependencies import enforce_max_image_size, get_study_service
from model.api import (
    AddImagesResponse,
    CreateSessionResponse,
    PreferencesRequest,
    SessionSnapshot,
)
from service.study_service import StudyService
from util.constants import InternalURIs

session_router = APIRouter()


@session_router.post(
    InternalURIs.SESSIONS,
    response_model=CreateSessionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_session(
    service: StudyService = Depends(get_study_service),
) -> CreateSessionResponse:
    return CreateSessionResponse(sessionId=service.create_session())


@session_router.get(InternalURIs.SESSION, response_model=SessionSnapshot)
async def get_session(session_id: str, service: StudyService = Depends(get_study_service)):
    return service.snapshot(session_id)


@session_router.delete(InternalURIs.SESSION, status_code=status.HTTP_204_NO_CONTENT)
async def delete_session(session_id: str, service: StudyService = Depends(get_study_service)):
    service.delete_session(session_id)


@session_router.post(InternalURIs.RESET, response_model=SessionSnapshot)
async def reset_session(session_id: str, service: StudyService = Depends(get_study_service)):
    return service.reset_session(session_id)


@session_router.post(
    InternalURIs.IMAGES,
    response_model=AddImagesResponse,
    dependencies=[Depends(enforce_max_image_size)],
)
async def add_images(
    session_id: str,
    files: List[UploadFile] = File(...),
    service: StudyService = Depends(get_study_service),
) -> AddImagesResponse:
    return await service.add_images(session_id, files)


@session_router.delete(InternalURIs.IMAGE, response_model=SessionSnapshot)
async def remove_image(
    session_id: str, index: int, service: StudyService = Depends(get_study_service)
):
    return service.remove_image(session_id, index)


@session_router.put(InternalURIs.PREFERENCES, response_model=SessionSnapshot)
async def set_preferences(
    session_id: str,
    payload: PreferencesRequest,
    service: StudyService = Depends(get_study_service),
):
    return service.set_preferences(session_id, payload)


@session_router.delete(InternalURIs.NOTICE, response_model=SessionSnapshot)
async def dismiss_notice(session_id: str, service: StudyService = Depends(get_study_service)):
    return service.dismiss_notice(session_id)

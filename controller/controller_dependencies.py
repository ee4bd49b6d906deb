# controller/controller_dependencies.py
from typing import List
from fastapi import Depends, File, HTTPException, Request, UploadFile
from config.registry import get_sessions
from config.settings import settings
from repository.session_repository import SessionRepository
from service.study_service import StudyService


def get_study_service(
    sessions: SessionRepository = Depends(get_sessions),
) -> StudyService:
    return StudyService(sessions)


def _too_large() -> HTTPException:
    return HTTPException(
        status_code=413,
        detail={
            "ok": False,
            "error": "file_too_large",
            "maxMb": settings.MAX_IMAGE_MB,
        },
    )


async def enforce_max_image_size(
    request: Request, files: List[UploadFile] = File(...)
) -> List[UploadFile]:
    MAX_BYTES = settings.MAX_IMAGE_MB * 1024 * 1024
    # Whole request can carry at most MAX_UPLOAD_IMAGES full-size photos
    cl = request.headers.get("content-length")
    if cl and int(cl) > MAX_BYTES * settings.MAX_UPLOAD_IMAGES + 64 * 1024:
        raise _too_large()

    # Hard cap per photo while reading (works even without Content-Length)
    for file in files:
        blob = await file.read(MAX_BYTES + 1)
        if len(blob) > MAX_BYTES:
            raise _too_large()
        await file.seek(0)
    return files

# routes.py
from fastapi import FastAPI
from controller.exam_controller import exam_router
from controller.generation_controller import generation_router
from controller.session_controller import session_router


def register_routes(app: FastAPI) -> None:
    """Register & Access control controllers here."""
    app.include_router(session_router)
    app.include_router(generation_router)
    app.include_router(exam_router)

import logging
import routes
from contextlib import asynccontextmanager
from util.enums import Environment, Color
from fastapi import FastAPI, Request
from starlette.middleware.cors import CORSMiddleware
from config.settings import settings
from config.registry import close_sessions, get_sessions
from fastapi.responses import JSONResponse
from util.errors import GatewayError
from util.logger import init_logger

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(fastApi: FastAPI):
    init_logger()
    print(f"{Color.GREEN}Initializing...{Color.RESET}")
    get_sessions()
    print(f"{Color.BLUE}Server Started{Color.RESET}")

    try:
        yield
    finally:
        try:
            await close_sessions()
        except Exception as e:
            print("Error draining sessions:", e)

        print(f"{Color.RED}Server Shutdown{Color.RESET}")


app: FastAPI = FastAPI(lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.ALLOWED_ORIGIN],
    allow_credentials=True,  # Allow cookies and other credentials
    allow_methods=["GET", "POST", "PUT", "DELETE"],  # Allowed HTTP Methods
    allow_headers=["Content-Type", "Accept"],  # Allowed HTTP Headers
)


@app.get("/healthz")
async def healthz():
    return {"ok": True, "sessions": get_sessions().count()}


@app.exception_handler(GatewayError)
async def gateway_error_handler(request: Request, exc: GatewayError):
    # Core settles gateway failures into session state; this only catches leaks.
    logger.error("gateway.unhandled path=%s err=%s", request.url.path, type(exc).__name__)
    return JSONResponse(
        status_code=502,
        content={"ok": False, "error": "generation_failed", "message": exc.user_message},
    )


routes.register_routes(app)

if __name__ == "__main__":
    import uvicorn

    reload = settings.APP_ENV == Environment.DEV
    uvicorn.run("main:app", host="127.0.0.1", port=8000, reload=reload)

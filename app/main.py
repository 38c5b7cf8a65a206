import logging
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import settings
from app.core.database import engine, Base
from app.core.errors import AppError
from app.core.logging_setup import setup_logging
from app.models.storage_item import StorageItem  # noqa: F401  (table registration)
from app.routers import health, session, tasks, chat
from app.services.session_registry import SessionRegistry

setup_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

# Init DB
Base.metadata.create_all(bind=engine)

app = FastAPI(
    title="Todo Chat API",
    version="0.1.0"
)
app.state.sessions = SessionRegistry()


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": message, "timestamp": datetime.now(timezone.utc).isoformat()}
    )


@app.exception_handler(AppError)
async def handle_app_error(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.__class__.__name__}: {exc.message}")
    return error_response(exc.status_code, exc.message)


@app.exception_handler(StarletteHTTPException)
async def handle_http_error(request: Request, exc: StarletteHTTPException):
    return error_response(exc.status_code, str(exc.detail))


@app.exception_handler(RequestValidationError)
async def handle_request_validation_error(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid request")
    return error_response(400, f"{location}: {message}" if location else message)


# Routes
app.include_router(health.router, prefix="/health")
app.include_router(session.router)
app.include_router(tasks.router)
app.include_router(chat.router)

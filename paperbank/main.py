"""
Main FastAPI application entry point.
"""
from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.sessions import SessionMiddleware

from paperbank.api.assignments import router as assignments_router
from paperbank.api.auth import router as auth_router
from paperbank.api.dashboard import router as dashboard_router
from paperbank.api.questions import router as questions_router
from paperbank.api.students import router as students_router
from paperbank.api.tests import router as tests_router
from paperbank.core.config import settings
from paperbank.core.database import close_db, get_sessionmaker, init_db
from paperbank.core.errors import PaperBankError, error_details
from paperbank.core.logging import configure_logging
from paperbank.seed import seed_questions
from paperbank.storage import SqlStorage, get_memory_storage

configure_logging(settings)
logger = logging.getLogger(__name__)

# Initialize Sentry if configured
if settings.SENTRY_DSN:
    import sentry_sdk
    from sentry_sdk.integrations.fastapi import FastApiIntegration
    from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        environment=settings.ENVIRONMENT,
        integrations=[
            FastApiIntegration(transaction_style="endpoint"),
            SqlalchemyIntegration(),
        ],
        traces_sample_rate=settings.SENTRY_TRACES_SAMPLE_RATE,
    )


def _seed() -> None:
    if settings.STORAGE_BACKEND == "memory":
        seed_questions(get_memory_storage())
        return
    db = get_sessionmaker()()
    try:
        seed_questions(SqlStorage(db))
    finally:
        db.close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.
    """
    logger.info(f"Starting {settings.APP_NAME} API with {settings.STORAGE_BACKEND} storage...")
    if settings.STORAGE_BACKEND == "sql":
        init_db()
    if settings.SEED_SAMPLE_QUESTIONS:
        _seed()

    yield

    logger.info(f"Shutting down {settings.APP_NAME} API...")
    close_db()
    logger.info("Shutdown complete")


app = FastAPI(
    title=settings.APP_NAME,
    description=settings.APP_DESCRIPTION,
    version=settings.APP_VERSION,
    docs_url=settings.DOCS_URL if not settings.is_production() else None,
    redoc_url=settings.REDOC_URL if not settings.is_production() else None,
    openapi_url=settings.OPENAPI_URL if not settings.is_production() else None,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
    allow_methods=settings.CORS_ALLOW_METHODS,
    allow_headers=settings.CORS_ALLOW_HEADERS,
)
app.add_middleware(GZipMiddleware, minimum_size=1000)
app.add_middleware(
    SessionMiddleware,
    secret_key=settings.SECRET_KEY.get_secret_value(),
    session_cookie=settings.SESSION_COOKIE,
    max_age=settings.SESSION_TTL,
    same_site="lax",
    https_only=settings.is_production(),
)

if settings.PROMETHEUS_ENABLED:
    from prometheus_fastapi_instrumentator import Instrumentator

    Instrumentator().instrument(app).expose(app, endpoint="/metrics")


# Exception handlers
@app.exception_handler(PaperBankError)
async def paperbank_exception_handler(request: Request, exc: PaperBankError):
    """Map application errors onto their HTTP status."""
    if exc.status_code >= 500:
        logger.error(f"{exc.error_type} on {request.method} {request.url.path}: {exc.message}")
    else:
        logger.warning(f"{exc.error_type} on {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"error": exc.to_dict()})


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Handle HTTP exceptions."""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": {
                "message": exc.detail,
                "type": "http_error",
                "status_code": exc.status_code
            }
        }
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle validation errors."""
    logger.warning(f"validation_error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": {
                "message": "Invalid input data",
                "type": "validation_error",
                "status_code": status.HTTP_400_BAD_REQUEST,
                "details": error_details(exc.errors())
            }
        }
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle general exceptions."""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)

    error = {
        "message": "Internal server error",
        "type": "internal_error",
        "status_code": status.HTTP_500_INTERNAL_SERVER_ERROR,
    }
    if settings.DEBUG:
        error["debug"] = True
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"error": error})


@app.get("/health", tags=["Health"])
def health_check():
    """Basic health check endpoint."""
    return {
        "status": "healthy",
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
        "storage": settings.STORAGE_BACKEND,
    }


app.include_router(auth_router, prefix="/api/auth", tags=["auth"])
app.include_router(dashboard_router, prefix="/api/dashboard", tags=["dashboard"])
app.include_router(students_router, prefix="/api/students", tags=["students"])
app.include_router(questions_router, prefix="/api/questions", tags=["questions"])
app.include_router(tests_router, prefix="/api/tests", tags=["tests"])
app.include_router(assignments_router, prefix="/api/assignments", tags=["assignments"])


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "paperbank.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.RELOAD,
        log_level=settings.LOG_LEVEL.lower(),
        access_log=True,
    )

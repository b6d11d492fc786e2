"""
Hostnote API

Table sessions and attendance for hospitality venues, one tenant per API
key. Run with ``uvicorn hostnote.main:app``.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from hostnote.api.routes import attendance, health, sessions
from hostnote.config import settings
from hostnote.core.sessions.errors import HostnoteError, PersistenceError
from hostnote.infra.database import engine, init_db
from hostnote.infra.redis import RedisClient

logger = logging.getLogger(__name__)


def setup_logging() -> None:
    logging.basicConfig(
        level=logging.DEBUG if settings.debug else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if settings.debug else logging.WARNING
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    setup_logging()
    logger.info(f"Starting {settings.app_name} {settings.app_version} | Env: {settings.app_env}")

    # Outside development the schema comes from migrations
    if settings.is_development:
        await init_db()
        logger.info("Database tables ensured")

    if await RedisClient.get_client() is None:
        logger.warning("Starting without tenant cache; every request resolves its tenant from the database")

    yield

    await RedisClient.close()
    await engine.dispose()
    logger.info("Shutdown complete")


app = FastAPI(
    title="Hostnote API",
    description=(
        "Table sessions with linked patrons and staff, and the attendance "
        "records derived from them. Send the tenant API key in `X-API-Key`."
    ),
    version=settings.app_version,
    docs_url="/docs" if settings.is_development else None,
    redoc_url=None,
    openapi_url="/openapi.json" if settings.is_development else None,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Content-Type", "X-API-Key"],
)


def error_body(error: str, detail) -> dict:
    """Every error response has the same two keys."""
    return {"error": error, "detail": detail}


@app.exception_handler(HostnoteError)
async def hostnote_error_handler(request: Request, exc: HostnoteError) -> JSONResponse:
    detail = exc.message
    if isinstance(exc, PersistenceError) and not settings.is_development:
        detail = "Internal server error"
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.error, detail))


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    # ctx and input can hold values that are not JSON serializable
    errors = [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg"), "type": error.get("type")}
        for error in exc.errors()
    ]
    logger.info(f"Rejected request body | Path: {request.url.path} | Errors: {len(errors)}")
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=error_body("Validation error", errors),
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error | {request.method} {request.url.path}")
    detail = str(exc) if settings.is_development else "Internal server error"
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body("Internal server error", detail),
    )


app.include_router(health.router)
app.include_router(sessions.router)
app.include_router(attendance.router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "hostnote.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.is_development,
    )

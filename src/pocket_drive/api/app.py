"""FastAPI application for pocket-drive."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from loguru import logger

from pocket_drive import __version__, db
from pocket_drive.api.routers import item_router
from pocket_drive.config import ConfigManager, init_api_logging
from pocket_drive.services.exceptions import (
    AccessDeniedError,
    FileOperationError,
    InvalidParentError,
    InvalidPermissionsError,
    ItemCycleError,
    NotFoundError,
    PocketDriveError,
    TreeLimitExceededError,
)

# First match wins, so subclasses must come before their bases
ERROR_STATUS_CODES: list[tuple[type[PocketDriveError], int]] = [
    (NotFoundError, 404),
    (AccessDeniedError, 403),
    (InvalidPermissionsError, 400),
    (InvalidParentError, 400),
    (ItemCycleError, 409),
    (TreeLimitExceededError, 422),
    (FileOperationError, 500),
]


def status_code_for(exc: PocketDriveError) -> int:
    for error_type, status_code in ERROR_STATUS_CODES:
        if isinstance(exc, error_type):
            return status_code
    return 500


@asynccontextmanager
async def lifespan(app: FastAPI):  # pragma: no cover
    """Lifecycle manager for the FastAPI app."""
    init_api_logging()
    app_config = ConfigManager().config
    logger.info(f"Starting pocket-drive API {__version__} (env={app_config.env})")

    await db.get_or_create_db(app_config.database_path, app_config)
    yield

    logger.info("Shutting down pocket-drive API")
    await db.shutdown_db()


app = FastAPI(
    title="pocket-drive",
    description="Multi-tenant file storage with per-item access control",
    version=__version__,
    lifespan=lifespan,
)

app.include_router(item_router)


@app.exception_handler(PocketDriveError)
async def pocket_drive_error_handler(request: Request, exc: PocketDriveError) -> JSONResponse:
    status_code = status_code_for(exc)
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    else:
        logger.info(f"{request.method} {request.url.path} -> {status_code}: {exc}")
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})

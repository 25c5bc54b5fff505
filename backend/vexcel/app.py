"""FastAPI application setup for VExcel."""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from vexcel.api.dependencies import get_app_settings, get_metadata_store
from vexcel.api.routes_ai import router as ai_router
from vexcel.api.routes_files import router as files_router
from vexcel.api.routes_status import router as status_router
from vexcel.api.routes_voice import router as voice_router
from vexcel.core.errors import (
    ConfigurationError,
    FileNotRegistered,
    MetadataError,
    StoreError,
    StoreUnavailable,
    UploadRejected,
    VExcelError,
)
from vexcel.core.logging import configure_logging, get_logger

configure_logging()
logger = get_logger(__name__)

app = FastAPI(
    title="VExcel",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://127.0.0.1:3000",
        "http://localhost:3000",
    ],
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)

app.include_router(files_router, prefix="/files", tags=["files"])
app.include_router(ai_router, prefix="/ai", tags=["ai"])
app.include_router(voice_router, prefix="/voice", tags=["voice"])
app.include_router(status_router, prefix="", tags=["status"])

_ERROR_STATUS: tuple[tuple[type[VExcelError], int], ...] = (
    (UploadRejected, 400),
    (FileNotRegistered, 404),
    (StoreUnavailable, 503),
    (ConfigurationError, 503),
    (StoreError, 502),
    (MetadataError, 500),
)


@app.exception_handler(VExcelError)
async def vexcel_error_handler(request: Request, exc: VExcelError) -> JSONResponse:
    status_code = next((code for cls, code in _ERROR_STATUS if isinstance(exc, cls)), 500)
    if isinstance(exc, MetadataError) and not isinstance(exc, FileNotRegistered):
        message = "File information could not be saved. Please try again."
    elif isinstance(exc, StoreError):
        message = f"The Excel processing server rejected the request: {exc}"
    else:
        message = str(exc)
    logger.warning("%s on %s: %s", type(exc).__name__, request.url.path, exc)
    return JSONResponse(status_code=status_code, content={"detail": message})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled error on %s", request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


@app.on_event("startup")
async def startup() -> None:
    """Warm up core singletons on startup."""
    get_app_settings()
    get_metadata_store()


@app.get("/health", tags=["status"])
def health() -> dict[str, bool]:
    """Simple liveness check."""
    return {"ok": True}

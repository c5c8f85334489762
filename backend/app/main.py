"""VoiceDoc Backend Application.

This is the main entry point for the VoiceDoc backend service.
VoiceDoc turns uploaded documents and images into spoken audio: text is
extracted (direct read, PDF text layer or OCR) and narrated with a
text-to-speech backend.

Modules:
    - auth: username/password accounts with bearer tokens
    - files: document upload and text extraction
    - conversions: text-to-speech conversion, history and audio download
    - presets: saved texts for registered users
    - quota: guest daily conversion limit
    - cleanup: background removal of expired guest uploads
    - notifications: SendGrid email
"""
import logging
from contextlib import asynccontextmanager
from datetime import timedelta
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.auth.router import router as auth_router
from app.cleanup.sweeper import CleanupSweeper
from app.config import get_config
from app.conversions.router import router as conversions_router
from app.conversions.service import ConversionService
from app.database import Database
from app.files.router import router as files_router
from app.files.service import FileStorageService
from app.presets.router import router as presets_router
from app.synthesis.service import get_synthesizer

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

# gTTS logs every token request, PIL every decoder lookup.
for _noisy in (
    "urllib3",
    "urllib3.connectionpool",
    "gtts",
    "PIL",
    "python_http_client",
):
    logging.getLogger(_noisy).setLevel(logging.WARNING)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup/shutdown events."""
    # Startup
    config = get_config()

    configured_level = getattr(logging, config.logging.level.upper(), None)
    if configured_level is not None:
        logging.getLogger().setLevel(configured_level)
        logger.info("Root logger level set to %s", config.logging.level.upper())

    Path(config.storage.upload_dir).mkdir(parents=True, exist_ok=True)
    Path(config.storage.audio_dir).mkdir(parents=True, exist_ok=True)
    Database.get_instance()

    sweeper = None
    if config.cleanup.enabled:
        sweeper = CleanupSweeper(
            files=FileStorageService.get_instance(),
            conversions=ConversionService.get_instance(),
            synthesizer=get_synthesizer(),
            interval_seconds=config.cleanup.interval_seconds,
            max_age=timedelta(hours=config.cleanup.max_age_hours),
        )
        await sweeper.start()
    else:
        logger.info("Guest cleanup disabled in config.")
    app.state.cleanup_sweeper = sweeper

    yield  # Application runs here

    # Shutdown
    if sweeper is not None:
        await sweeper.stop()
    Database.reset_instance()
    logger.info("Application shutdown complete")


# Create FastAPI application with metadata
app = FastAPI(
    title="VoiceDoc API",
    description="Document-to-speech service: upload, extract, narrate",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_config().server.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render every HTTP error as ``{"error": message}``."""
    return JSONResponse(
        {"error": exc.detail},
        status_code=exc.status_code,
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed request bodies are client errors (400), not 422."""
    errors = exc.errors()
    message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
    logger.info("Rejected request to %s: %s", request.url.path, message)
    return JSONResponse({"error": message}, status_code=400)


# Register all routers
app.include_router(auth_router)
app.include_router(files_router)
app.include_router(conversions_router)
app.include_router(presets_router)


@app.get("/health")
async def health() -> dict:
    """Health check endpoint.

    Returns:
        dict: Status object indicating the server is running.
    """
    return {"status": "ok"}

"""FastAPI application entry point."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from paddock.api import backfill_router, config_router, horses_router, races_router
from paddock.config import get_settings
from paddock.config_validator import validate_or_raise
from paddock.database import init_db
from paddock.errors import ErrorKind, ETLError
from paddock.logging_config import get_logger, setup_logging

settings = get_settings()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup
    setup_logging(settings.log_level)
    validate_or_raise(settings)
    await init_db()
    logger.info("Application started", extra={"version": settings.app_version})
    yield
    # Shutdown
    pass


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Horse racing feed ETL service",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ETLError)
async def etl_error_handler(request: Request, exc: ETLError):
    """Render pipeline errors that escape a route."""
    logger.error("Request failed", extra={"path": request.url.path, **exc.format_for_logging()})
    status_code = 400 if exc.kind in (ErrorKind.VALIDATION, ErrorKind.PARSE) else 503
    return JSONResponse(
        status_code=status_code,
        content={"detail": exc.message, "error_type": exc.kind.value},
    )


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "status": "running",
    }


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}


# Register API routers
app.include_router(races_router, prefix="/api")
app.include_router(horses_router, prefix="/api")
app.include_router(backfill_router, prefix="/api")
app.include_router(config_router, prefix="/api")

"""FastAPI application for Inquiry Analyzer.

Logging: Uses structured JSON logging.
Set LOG_FORMAT=pretty for development-friendly output.
"""

from contextlib import asynccontextmanager

# Configure structured logging BEFORE importing anything else
from inquiry_analyzer.utils.logging import configure_logging, get_logger, log  # noqa: E402

configure_logging()

MODULE = "api"
logger = get_logger()

from fastapi import FastAPI  # noqa: E402

from inquiry_analyzer import __version__  # noqa: E402
from inquiry_analyzer.api.routes.analyze import get_settings, router as analyze_router  # noqa: E402
from inquiry_analyzer.api.routes.health import router as health_router  # noqa: E402
from inquiry_analyzer.errors import ConfigurationError  # noqa: E402


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Load settings once at startup so configuration mistakes show up early."""
    try:
        settings = get_settings()
    except ConfigurationError as e:
        log.error(logger, MODULE, "config_failed", "Invalid configuration", error=str(e))
        raise

    if settings.api_key:
        log.info(logger, MODULE, "config_ready", "Configuration loaded",
                 model=settings.model, base_url=settings.base_url,
                 token_limit=settings.token_limit, max_retries=settings.max_retries)
    else:
        log.warning(logger, MODULE, "config_missing_key",
                    "DEEPSEEK_API_KEY is not set; /analyze will fail until it is")

    yield

    log.info(logger, MODULE, "shutdown", "Application shutdown complete")


app = FastAPI(
    title="Inquiry Analyzer",
    description="Client inquiry to structured project assessment",
    version=__version__,
    lifespan=lifespan,
)

app.include_router(health_router)
app.include_router(analyze_router, prefix="/analyze", tags=["analyze"])

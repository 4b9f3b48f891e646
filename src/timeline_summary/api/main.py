"""FastAPI application for the activity timeline summary service."""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from timeline_summary.clients.openai_client import OpenAIClient
from timeline_summary.pipeline.notifier import Notifier

from .config import get_settings
from .routes.generate_summary import router as generate_summary_router
from .routes.health import router as health_router

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize shared clients at startup, clean up at shutdown."""
    settings = get_settings()

    logger.info("lifespan.startup", sf_login_url=settings.SF_LOGIN_URL, model=settings.OPENAI_MODEL)

    # OpenAI: shared across requests; Salesforce clients are per request
    openai = OpenAIClient(api_key=settings.OPENAI_API_KEY, model=settings.OPENAI_MODEL)
    notifier = Notifier(timeout_seconds=settings.CALLBACK_TIMEOUT_SECONDS)

    # Store on app.state for request handlers
    app.state.openai = openai
    app.state.notifier = notifier

    logger.info("lifespan.ready")
    yield

    # Shutdown
    logger.info("lifespan.shutdown")
    await notifier.close()
    await openai.close()


app = FastAPI(
    title="activity-timeline-summary",
    description="Monthly and quarterly AI summaries of Salesforce activity timelines",
    lifespan=lifespan,
)


@app.exception_handler(RequestValidationError)
async def invalid_body_handler(request: Request, exc: RequestValidationError):
    """Report malformed bodies as 400."""
    logger.warning("request.invalid_body", path=request.url.path, errors=len(exc.errors()))
    return JSONResponse(status_code=400, content={"detail": "Request body must be a JSON object"})


app.include_router(health_router)
app.include_router(generate_summary_router)

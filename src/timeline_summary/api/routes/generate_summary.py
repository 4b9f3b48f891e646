"""POST /generatesummary: validate the request and run the pipeline in the background."""

from dataclasses import replace
from typing import Any
from uuid import uuid4

import structlog
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError

from timeline_summary.clients.openai_client import OpenAIClient
from timeline_summary.clients.salesforce_client import SalesforceClient
from timeline_summary.config import PipelineConfig
from timeline_summary.models.request import SummaryRequest
from timeline_summary.models.timeline import ProcessResult
from timeline_summary.pipeline.notifier import Notifier
from timeline_summary.pipeline.pipeline import PipelineResult, SummaryPipeline

from ..auth import salesforce_token
from ..config import Settings, get_settings

logger = structlog.get_logger(__name__)

router = APIRouter()

ACCEPTED_MESSAGE = "Summary generation initiated. You will receive a callback."


async def run_summary(
    summary_request: SummaryRequest,
    access_token: str,
    openai_client: OpenAIClient,
    notifier: Notifier,
    settings: Settings,
) -> PipelineResult:
    """
    Run one request end to end with a Salesforce client bound to its token.

    A failure while wiring the pipeline is still reported through the callback.
    """
    salesforce = None
    try:
        salesforce = SalesforceClient(
            instance_url=settings.SF_LOGIN_URL,
            access_token=access_token,
            api_version=settings.SF_API_VERSION,
            max_retries=settings.SF_MAX_RETRIES,
        )
        config = replace(
            PipelineConfig.from_config(),
            model=settings.OPENAI_MODEL,
            callback_timeout_seconds=settings.CALLBACK_TIMEOUT_SECONDS,
        )
        pipeline = SummaryPipeline(
            openai_client=openai_client,
            salesforce_client=salesforce,
            notifier=notifier,
            config=config,
        )
    except Exception as e:
        logger.error(
            "generatesummary.setup_failed",
            account_id=summary_request.account_id,
            error=str(e),
            error_type=type(e).__name__,
        )
        message = f"Critical processing error: {e}"
        notified = await notifier.notify(
            parent_id=summary_request.account_id,
            callback_url=summary_request.callback_url,
            auth_token=access_token,
            status=ProcessResult.FAILED,
            message=message,
            user_id=summary_request.user_id,
        )
        if salesforce is not None:
            await salesforce.close()
        return PipelineResult(
            account_id=summary_request.account_id,
            request_id=uuid4().hex,
            status=ProcessResult.FAILED,
            message=message,
            notified=notified,
            errors=[message],
        )

    try:
        return await pipeline.run(summary_request, access_token)
    finally:
        await salesforce.close()


@router.post("/generatesummary")
async def generate_summary(
    payload: dict[str, Any],
    request: Request,
    background_tasks: BackgroundTasks,
    access_token: str = Depends(salesforce_token),
    settings: Settings = Depends(get_settings),
):
    """Accept a summary request; the outcome is reported via callback."""
    try:
        summary_request = SummaryRequest.model_validate(payload)
    except PydanticValidationError as e:
        details = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'body'}: {err['msg']}" for err in e.errors()
        )
        logger.warning("generatesummary.invalid", error=details)
        raise HTTPException(status_code=400, detail=details)

    logger.info(
        "generatesummary.accepted",
        account_id=summary_request.account_id,
        user_id=summary_request.user_id,
        existing_records=len(summary_request.existing_records),
    )
    background_tasks.add_task(
        run_summary,
        summary_request,
        access_token,
        request.app.state.openai,
        request.app.state.notifier,
        settings,
    )
    return JSONResponse(
        status_code=202,
        content={"status": "processing", "message": ACCEPTED_MESSAGE},
    )

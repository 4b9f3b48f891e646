"""
AI summarization round-trip.

One ``summarize`` call owns every remote resource it creates:
1. Lease an assistant configured with the output function
2. Lease a fresh thread
3. Deliver the batch inline or as a file-search attachment
4. Run with tool_choice forcing the output function
5. Validate the tool call and parse its arguments

Everything acquired is released on every exit path. Release failures
are logged and never replace the call's own outcome.
"""

import asyncio
import json
from contextlib import AsyncExitStack
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Awaitable, Callable, Sequence

from openai import APIError

from ..clients.openai_client import OpenAIClient
from ..config import PipelineConfig
from ..errors import (
    AIRunFailedError,
    AttachmentError,
    MalformedOutputError,
    NoFunctionCallError,
    WrongFunctionError,
    wrap_openai_error,
)
from ..logging import get_logger
from ..models.activity import ActivityRecord
from ..prompts.summary_prompts import (
    ACTIVITY_SEPARATOR,
    ATTACHMENT_INSTRUCTION,
    build_inline_prompt,
)

logger = get_logger(__name__)

RAW_EXCERPT_CHARS = 500


# =============================================================================
# Delivery
# =============================================================================


@dataclass(frozen=True)
class InlineDelivery:
    """Prompt text with any batch data already embedded."""

    prompt: str
    embedded: bool = True

    @property
    def method(self) -> str:
        return 'inline' if self.embedded else 'prompt'


@dataclass(frozen=True)
class AttachmentDelivery:
    """Bare prompt plus a text document to upload for file search."""

    prompt: str
    document: str

    @property
    def method(self) -> str:
        return 'file'


Delivery = InlineDelivery | AttachmentDelivery


def render_activity_document(records: Sequence[ActivityRecord]) -> str:
    """One paragraph per activity, separated by ``---``."""
    paragraphs = []
    for index, record in enumerate(records, start=1):
        lines = [
            f'Activity {index} (ID: {record.id or "N/A"}):',
            f'  ActivityDate: {record.activity_date.isoformat() if record.activity_date else "N/A"}',
            f'  Subject: {record.subject or "No Subject"}',
            f'  Description: {record.description or "No Description"}',
        ]
        paragraphs.append('\n'.join(lines))
    return ACTIVITY_SEPARATOR.join(paragraphs)


def select_delivery(
    prompt: str,
    records: Sequence[ActivityRecord] | None,
    max_inline_records: int,
    max_prompt_chars: int,
) -> Delivery:
    """
    Decide how batch data reaches the model.

    Inline only when the record count and the combined prompt length are
    both strictly below their thresholds; otherwise the records go in an
    attachment and the prompt stays bare. Without records the prompt is
    used as-is.
    """
    if not records:
        return InlineDelivery(prompt=prompt, embedded=False)

    inline_prompt = build_inline_prompt(prompt, [r.to_prompt_dict() for r in records])
    if len(records) < max_inline_records and len(inline_prompt) < max_prompt_chars:
        return InlineDelivery(prompt=inline_prompt)

    return AttachmentDelivery(
        prompt=prompt + ATTACHMENT_INSTRUCTION,
        document=render_activity_document(records),
    )


# =============================================================================
# Results
# =============================================================================


@dataclass(frozen=True)
class AssistantSpec:
    """Name and instructions of the per-call assistant."""

    name: str
    instructions: str


@dataclass
class FunctionCallResult:
    """The forced function call, validated and parsed."""

    function_name: str
    arguments: dict[str, Any]
    raw_arguments: str
    delivery: str


# =============================================================================
# Summarizer
# =============================================================================


class Summarizer:
    """
    Drives one isolated assistant round-trip per call.

    Nothing is reused across calls: each gets its own assistant, thread
    and (when needed) uploaded file.
    """

    def __init__(self, openai_client: OpenAIClient, config: PipelineConfig):
        """
        Initialize the summarizer.

        Args:
            openai_client: Configured OpenAI client
            config: Delivery thresholds, run timeout and temp directory
        """
        self.openai = openai_client
        self.config = config

    async def summarize(
        self,
        records: Sequence[ActivityRecord] | None,
        prompt: str,
        function_schema: dict[str, Any],
        assistant: AssistantSpec,
    ) -> FunctionCallResult:
        """
        Run one forced-function round-trip and return the parsed call.

        Args:
            records: Batch to deliver, or None when the data is in the prompt
            prompt: Rendered user prompt
            function_schema: Output function the model must call
            assistant: Per-call assistant name and instructions

        Raises:
            AIContractViolation: wrong function, malformed arguments, no call
            AIRunFailedError: run failed, cancelled, expired or timed out
            AttachmentError: the activity document could not be written
            OpenAIError: API/transport failure
        """
        function_name = function_schema['name']
        delivery = select_delivery(
            prompt,
            records,
            max_inline_records=self.config.max_inline_records,
            max_prompt_chars=self.config.max_prompt_chars,
        )
        log = logger.bind(
            assistant=assistant.name,
            function=function_name,
            delivery=delivery.method,
            record_count=len(records or ()),
        )
        log.info('summarize_started', prompt_chars=len(delivery.prompt))

        async with AsyncExitStack() as cleanup:
            try:
                assistant_id = await self.openai.create_assistant(
                    name=assistant.name,
                    instructions=assistant.instructions,
                    function_schema=function_schema,
                    model=self.config.model,
                )
                cleanup.push_async_callback(
                    _release, 'assistant', assistant_id, self.openai.delete_assistant
                )

                thread_id = await self.openai.create_thread()
                cleanup.push_async_callback(
                    _release, 'thread', thread_id, self.openai.delete_thread
                )
                log = log.bind(assistant_id=assistant_id, thread_id=thread_id)

                file_ids: list[str] = []
                if isinstance(delivery, AttachmentDelivery):
                    file_ids.append(
                        await self._stage_attachment(cleanup, delivery, thread_id)
                    )

                await self.openai.add_message(thread_id, delivery.prompt, file_ids)
                log.info('summarize_message_added', file_count=len(file_ids))

                run = await self._run(thread_id, assistant_id, function_schema)
            except APIError as e:
                log.error('summarize_api_error', error=str(e), error_type=type(e).__name__)
                raise wrap_openai_error(
                    e, context={'assistant': assistant.name, 'function': function_name}
                ) from e

            result = await self._read_function_call(run, function_name, thread_id, delivery)

        log.info('summarize_complete', argument_chars=len(result.raw_arguments))
        return result

    async def _stage_attachment(
        self,
        cleanup: AsyncExitStack,
        delivery: AttachmentDelivery,
        thread_id: str,
    ) -> str:
        """Write the document to a temp file and upload it; both are released by ``cleanup``."""
        temp_dir = Path(self.config.temp_dir)
        timestamp = datetime.now(timezone.utc).strftime('%Y%m%dT%H%M%S%f')
        path = temp_dir / f'activities_{timestamp}_{thread_id}.txt'

        try:
            await asyncio.to_thread(temp_dir.mkdir, parents=True, exist_ok=True)
            cleanup.push_async_callback(_remove_temp_file, path)
            await asyncio.to_thread(path.write_text, delivery.document, encoding='utf-8')
        except OSError as e:
            raise AttachmentError(
                f'Could not write activity document: {e}',
                context={'path': str(path), 'error_type': type(e).__name__},
            ) from e
        logger.debug('attachment_written', path=str(path), chars=len(delivery.document))

        file_id = await self.openai.upload_file(path)
        cleanup.push_async_callback(_release_file, file_id, self.openai.delete_file)
        logger.info('attachment_uploaded', file_id=file_id, thread_id=thread_id)
        return file_id

    async def _run(
        self,
        thread_id: str,
        assistant_id: str,
        function_schema: dict[str, Any],
    ) -> Any:
        try:
            return await asyncio.wait_for(
                self.openai.run_forced_function(thread_id, assistant_id, function_schema),
                timeout=self.config.run_timeout_seconds,
            )
        except asyncio.TimeoutError as e:
            raise AIRunFailedError(
                f'Assistant run timed out after {self.config.run_timeout_seconds}s',
                context={'thread_id': thread_id},
            ) from e

    async def _read_function_call(
        self,
        run: Any,
        function_name: str,
        thread_id: str,
        delivery: Delivery,
    ) -> FunctionCallResult:
        """Validate the run's terminal state and parse the tool call."""
        status = run.status
        context = {'thread_id': thread_id, 'run_status': status, 'function': function_name}

        if status == 'requires_action':
            required = run.required_action
            outputs = required.submit_tool_outputs if required is not None else None
            tool_calls = outputs.tool_calls if outputs is not None else []
            if not tool_calls:
                raise NoFunctionCallError(
                    'Run requires action but carries no tool call', context=context
                )

            call = tool_calls[0].function
            if call.name != function_name:
                raise WrongFunctionError(
                    f'Assistant called the wrong function: {call.name}',
                    context={**context, 'called': call.name},
                )

            raw = call.arguments or ''
            try:
                arguments = json.loads(raw)
            except ValueError as e:
                raise MalformedOutputError(
                    f'Failed to parse function call arguments from AI: {e}',
                    context={**context, 'raw_excerpt': raw[:RAW_EXCERPT_CHARS]},
                ) from e
            if not isinstance(arguments, dict):
                raise MalformedOutputError(
                    'Function call arguments are not a JSON object',
                    context={**context, 'raw_excerpt': raw[:RAW_EXCERPT_CHARS]},
                )

            return FunctionCallResult(
                function_name=call.name,
                arguments=arguments,
                raw_arguments=raw,
                delivery=delivery.method,
            )

        if status == 'completed':
            last_message = await self._last_message(thread_id)
            raise NoFunctionCallError(
                f'Assistant run completed without making the required function call to {function_name}',
                context={**context, 'last_message': (last_message or '')[:RAW_EXCERPT_CHARS]},
            )

        if run.last_error is not None:
            reason = f'{run.last_error.code}: {run.last_error.message}'
        elif run.incomplete_details is not None:
            reason = str(run.incomplete_details.reason)
        else:
            reason = 'Unknown error'
        raise AIRunFailedError(
            f'Assistant run failed. Status: {status}. Error: {reason}',
            context=context,
        )

    async def _last_message(self, thread_id: str) -> str | None:
        """Best-effort fetch of the assistant's free-text reply for diagnostics."""
        try:
            message = await self.openai.last_assistant_message(thread_id)
        except APIError as e:
            logger.warning('last_message_unavailable', thread_id=thread_id, error=str(e))
            return None
        logger.warning(
            'run_completed_without_function_call',
            thread_id=thread_id,
            last_message=(message or '')[:RAW_EXCERPT_CHARS],
        )
        return message


# =============================================================================
# Release helpers
# =============================================================================


async def _release(kind: str, resource_id: str, delete: Callable[[str], Awaitable[Any]]) -> None:
    try:
        await delete(resource_id)
        logger.debug('resource_released', kind=kind, resource_id=resource_id)
    except Exception as e:
        logger.warning(
            'resource_release_failed',
            kind=kind,
            resource_id=resource_id,
            error=str(e),
            error_type=type(e).__name__,
        )


async def _release_file(file_id: str, delete: Callable[[str], Awaitable[bool]]) -> None:
    try:
        existed = await delete(file_id)
    except Exception as e:
        logger.warning('remote_file_release_failed', file_id=file_id, error=str(e))
        return
    if existed:
        logger.debug('remote_file_deleted', file_id=file_id)
    else:
        logger.debug('remote_file_already_gone', file_id=file_id)


async def _remove_temp_file(path: Path) -> None:
    try:
        await asyncio.to_thread(path.unlink, missing_ok=True)
        logger.debug('temp_file_deleted', path=str(path))
    except OSError as e:
        logger.warning('temp_file_delete_failed', path=str(path), error=str(e))

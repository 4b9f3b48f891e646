"""
OpenAI client wrapper for the timeline summary pipeline.

Handles:
- Assistant, thread and file lifecycle (Assistants API v2)
- Runs that force one specific function call
- Retry logic with exponential backoff on transient failures
"""

import os
from pathlib import Path
from typing import Any

from openai import (
    APIConnectionError,
    AsyncOpenAI,
    InternalServerError,
    NotFoundError,
    RateLimitError,
)
from openai.types.beta.threads import Run
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

_TRANSIENT = (APIConnectionError, RateLimitError, InternalServerError)

_retry_transient = retry(
    retry=retry_if_exception_type(_TRANSIENT),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    reraise=True,
)


class OpenAIClient:
    """
    Async OpenAI client for per-call assistants and forced function runs.

    Configuration via environment variables:
    - OPENAI_API_KEY: Required API key
    - OPENAI_MODEL: Assistant model (default: gpt-4o)
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        poll_interval_ms: int = 1000,
    ):
        """
        Initialize the OpenAI client.

        Args:
            api_key: OpenAI API key (defaults to OPENAI_API_KEY env var)
            model: Model for assistants (defaults to OPENAI_MODEL or gpt-4o)
            poll_interval_ms: Delay between run status polls
        """
        self.api_key = api_key or os.getenv('OPENAI_API_KEY')
        if not self.api_key:
            raise ValueError('OPENAI_API_KEY environment variable is required')

        self.model = model or os.getenv('OPENAI_MODEL', 'gpt-4o')
        self.poll_interval_ms = poll_interval_ms

        self._client = AsyncOpenAI(api_key=self.api_key)

    # -------------------------------------------------------------------------
    # Assistants
    # -------------------------------------------------------------------------

    @_retry_transient
    async def create_assistant(
        self,
        name: str,
        instructions: str,
        function_schema: dict[str, Any],
        model: str | None = None,
    ) -> str:
        """
        Create an assistant with file search and the given function tool.

        Returns:
            The assistant ID
        """
        assistant = await self._client.beta.assistants.create(
            name=name,
            instructions=instructions,
            model=model or self.model,
            tools=[
                {'type': 'file_search'},
                {'type': 'function', 'function': function_schema},
            ],
        )
        return assistant.id

    @_retry_transient
    async def delete_assistant(self, assistant_id: str) -> None:
        await self._client.beta.assistants.delete(assistant_id)

    # -------------------------------------------------------------------------
    # Threads and messages
    # -------------------------------------------------------------------------

    @_retry_transient
    async def create_thread(self) -> str:
        thread = await self._client.beta.threads.create()
        return thread.id

    @_retry_transient
    async def delete_thread(self, thread_id: str) -> None:
        await self._client.beta.threads.delete(thread_id)

    @_retry_transient
    async def add_message(
        self,
        thread_id: str,
        content: str,
        file_ids: list[str] | None = None,
    ) -> str:
        """
        Post a user message, attaching files for file search.

        Returns:
            The message ID
        """
        attachments = [
            {'file_id': file_id, 'tools': [{'type': 'file_search'}]}
            for file_id in file_ids or []
        ]
        kwargs: dict[str, Any] = {'role': 'user', 'content': content}
        if attachments:
            kwargs['attachments'] = attachments

        message = await self._client.beta.threads.messages.create(thread_id, **kwargs)
        return message.id

    async def last_assistant_message(self, thread_id: str) -> str | None:
        """Text of the newest message on the thread, if any."""
        page = await self._client.beta.threads.messages.list(
            thread_id, order='desc', limit=1
        )
        for message in page.data:
            for part in message.content:
                text = getattr(part, 'text', None)
                if text is not None:
                    return text.value
        return None

    # -------------------------------------------------------------------------
    # Runs
    # -------------------------------------------------------------------------

    async def run_forced_function(
        self,
        thread_id: str,
        assistant_id: str,
        function_schema: dict[str, Any],
    ) -> Run:
        """
        Start a run that must call ``function_schema['name']`` and poll it.

        Not retried: a repeated run would post a second completion on
        the same thread.
        """
        return await self._client.beta.threads.runs.create_and_poll(
            thread_id=thread_id,
            assistant_id=assistant_id,
            tools=[
                {'type': 'file_search'},
                {'type': 'function', 'function': function_schema},
            ],
            tool_choice={
                'type': 'function',
                'function': {'name': function_schema['name']},
            },
            poll_interval_ms=self.poll_interval_ms,
        )

    # -------------------------------------------------------------------------
    # Files
    # -------------------------------------------------------------------------

    @_retry_transient
    async def upload_file(self, path: Path) -> str:
        """Upload a local file for assistant use; returns the file ID."""
        uploaded = await self._client.files.create(file=path, purpose='assistants')
        return uploaded.id

    async def delete_file(self, file_id: str) -> bool:
        """
        Delete an uploaded file.

        Returns:
            False if the file was already gone, True otherwise
        """
        try:
            await self._client.files.delete(file_id)
        except NotFoundError:
            return False
        return True

    async def health_check(self) -> dict[str, bool | str]:
        """
        Verify API connectivity with a minimal request.

        Returns:
            Dict with 'healthy' bool and optional 'error' message
        """
        try:
            await self._client.models.retrieve(self.model)
            return {'healthy': True, 'model': self.model}
        except Exception as e:
            return {'healthy': False, 'error': str(e)}

    async def close(self):
        """Close the client connection."""
        await self._client.close()

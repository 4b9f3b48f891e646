"""
Salesforce REST client for the timeline summary pipeline.

Handles:
- SOQL queries with cursor pagination (query / nextRecordsUrl)
- Bulk create and update through sObject Collections (allOrNone=false)
- Bounded retry with exponential backoff on transient failures
"""

from typing import Any, AsyncIterator

import httpx
from tenacity import (
    AsyncRetrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from ..config import MAX_SALESFORCE_RETRIES
from ..errors import wrap_salesforce_error
from ..logging import get_logger

logger = get_logger(__name__)

# sObject Collections accept at most 200 records per request
COLLECTION_CHUNK_SIZE = 200


def _is_transient(exc: BaseException) -> bool:
    """Network failures and 5xx responses are worth another attempt."""
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code >= 500
    return isinstance(exc, httpx.TransportError)


class SalesforceClient:
    """
    Async Salesforce REST client bound to one access token.

    The token comes from the inbound request, so a client is created per
    pipeline run and closed when the run ends.
    """

    def __init__(
        self,
        instance_url: str,
        access_token: str,
        api_version: str = 'v59.0',
        max_retries: int = 3,
        timeout: float = 60.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        """
        Initialize the Salesforce client.

        Args:
            instance_url: Org base URL, e.g. https://acme.my.salesforce.com
            access_token: OAuth access token (sent as a bearer token)
            api_version: REST API version, e.g. v59.0
            max_retries: Retries after the first attempt (capped at 10)
            timeout: Per-request timeout in seconds
            http_client: Pre-built client (tests pass one with a mock transport)
        """
        self.instance_url = instance_url.rstrip('/')
        self.api_version = api_version
        self.max_retries = max(0, min(max_retries, MAX_SALESFORCE_RETRIES))
        self._http = http_client or httpx.AsyncClient(
            base_url=self.instance_url,
            timeout=timeout,
        )
        self._headers = {
            'Authorization': f'Bearer {access_token}',
            'Accept': 'application/json',
        }

    @property
    def data_path(self) -> str:
        return f'/services/data/{self.api_version}'

    async def _request(self, method: str, url: str, **kwargs: Any) -> Any:
        """Send one request with bounded retries; returns the decoded JSON body."""
        try:
            async for attempt in AsyncRetrying(
                retry=retry_if_exception(_is_transient),
                stop=stop_after_attempt(1 + self.max_retries),
                wait=wait_exponential(multiplier=0.5, min=0.5, max=8),
                reraise=True,
            ):
                with attempt:
                    response = await self._http.request(
                        method, url, headers=self._headers, **kwargs
                    )
                    response.raise_for_status()
        except httpx.HTTPError as e:
            raise wrap_salesforce_error(e, context={'method': method, 'url': url}) from e

        if not response.content:
            return None
        return response.json()

    # -------------------------------------------------------------------------
    # Query
    # -------------------------------------------------------------------------

    async def query_pages(self, soql: str) -> AsyncIterator[list[dict[str, Any]]]:
        """
        Yield each page of a SOQL query's records until the cursor is done.

        Raises:
            SalesforceError: on any transport or API failure
        """
        result = await self._request('GET', f'{self.data_path}/query', params={'q': soql})
        page = 1
        while True:
            records = result.get('records') or []
            logger.debug(
                'salesforce.query_page',
                page=page,
                fetched=len(records),
                total_size=result.get('totalSize'),
                done=result.get('done'),
            )
            yield records

            next_url = result.get('nextRecordsUrl')
            if result.get('done', True) or not next_url:
                return
            result = await self._request('GET', next_url)
            page += 1

    # -------------------------------------------------------------------------
    # sObject Collections
    # -------------------------------------------------------------------------

    async def create_records(
        self,
        sobject: str,
        records: list[dict[str, Any]],
    ) -> list[dict[str, Any]]:
        """Insert records; one ``{id, success, errors}`` result per record, in order."""
        return await self._collection('POST', sobject, records)

    async def update_records(
        self,
        sobject: str,
        records: list[dict[str, Any]],
    ) -> list[dict[str, Any]]:
        """Update records by ``Id``; one result per record, in order."""
        return await self._collection('PATCH', sobject, records)

    async def _collection(
        self,
        method: str,
        sobject: str,
        records: list[dict[str, Any]],
    ) -> list[dict[str, Any]]:
        results: list[dict[str, Any]] = []
        for start in range(0, len(records), COLLECTION_CHUNK_SIZE):
            chunk = records[start : start + COLLECTION_CHUNK_SIZE]
            body = {
                'allOrNone': False,
                'records': [{'attributes': {'type': sobject}, **r} for r in chunk],
            }
            response = await self._request(
                method, f'{self.data_path}/composite/sobjects', json=body
            )
            results.extend(response or [])
        return results

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._http.aclose()

"""
Activity record source.

Streams Salesforce activity records page by page as ActivityRecord
objects. Pages are pulled lazily, so only one page is held in memory
at a time; the downstream batcher depends on the query returning
records in ascending ActivityDate order.
"""

from typing import AsyncIterator

from ..clients.salesforce_client import SalesforceClient
from ..config import PipelineConfig
from ..logging import get_logger
from ..models.activity import ActivityRecord
from ..soql import ensure_ascending_order

logger = get_logger(__name__)

__all__ = ['RecordSource', 'ensure_ascending_order']


class RecordSource:
    """
    Lazy, ordered sequence of activity records from a SOQL query.

    Usage:
        source = RecordSource(salesforce_client, config)
        async for record in source.stream(query):
            ...
    """

    def __init__(self, salesforce: SalesforceClient, config: PipelineConfig):
        self.salesforce = salesforce
        self.config = config

    async def stream(self, query: str) -> AsyncIterator[ActivityRecord]:
        """
        Yield records in query order.

        Raises:
            ValidationError: if the query is not sorted by ActivityDate ascending
            SalesforceError: on any transport failure (fatal to the run)
        """
        ensure_ascending_order(query)

        total = 0
        async for page in self.salesforce.query_pages(query):
            total += len(page)
            for raw in page:
                yield ActivityRecord.from_salesforce(
                    raw,
                    max_subject_chars=self.config.max_subject_chars,
                    max_description_chars=self.config.max_description_chars,
                )
            logger.info('records_fetched', fetched=len(page), total=total)

        logger.info('records_fetch_complete', total=total)

"""
Summary persistence to the Salesforce ``Timeline_Summary__c`` object.

Each period is upserted: a caller-supplied lookup of
``"Jan 2024"`` / ``"Q1 2024"`` -> record Id decides update vs create, so
no read is needed first. Creates and updates go out as two bulk calls
with partial-success semantics.
"""

from dataclasses import dataclass, field
from typing import Any, Iterable

from ..clients.salesforce_client import SalesforceClient
from ..config import PipelineConfig
from ..errors import PartialSuccessResult, PersistenceError, SalesforceError
from ..logging import get_logger
from ..models.timeline import PeriodSummary, SummaryCategory

logger = get_logger(__name__)


@dataclass
class PersistOutcome:
    """What one ``persist`` call wrote."""

    created: dict[str, str] = field(default_factory=dict)
    updated: dict[str, str] = field(default_factory=dict)
    results: PartialSuccessResult = field(default_factory=PartialSuccessResult)

    @property
    def failed_keys(self) -> list[str]:
        return [r.item_id for r in self.results.failed if r.item_id]

    @property
    def all_succeeded(self) -> bool:
        return self.results.all_succeeded


class ResultPersister:
    """
    Maps period summaries to records and performs create-or-update.

    Usage:
        persister = ResultPersister(salesforce_client, config)
        outcome = await persister.persist([summary], account_id, SummaryCategory.MONTHLY, lookup)
    """

    def __init__(self, salesforce: SalesforceClient, config: PipelineConfig):
        self.salesforce = salesforce
        self.config = config

    def build_payloads(
        self,
        summaries: Iterable[PeriodSummary],
        parent_id: str,
        existing_records: dict[str, str],
    ) -> tuple[list[tuple[str, dict[str, Any]]], list[tuple[str, dict[str, Any]]]]:
        """Split summaries into (key, payload) lists for create and update."""
        to_create: list[tuple[str, dict[str, Any]]] = []
        to_update: list[tuple[str, dict[str, Any]]] = []

        for summary in summaries:
            key = summary.lookup_key
            payload = summary.to_salesforce_fields(parent_id, self.config.max_field_chars)
            if not parent_id or not payload['Year__c']:
                logger.warning('summary_record_skipped', key=key, reason='missing parent or year')
                continue

            record_id = existing_records.get(key)
            if record_id:
                logger.debug('summary_update_queued', key=key, record_id=record_id)
                to_update.append((key, {'Id': record_id, **payload}))
            else:
                logger.debug('summary_create_queued', key=key)
                to_create.append((key, payload))

        return to_create, to_update

    async def persist(
        self,
        summaries: Iterable[PeriodSummary],
        parent_id: str,
        category: SummaryCategory,
        existing_records: dict[str, str],
    ) -> PersistOutcome:
        """
        Create or update one record per period.

        Individual record failures are logged with their key and returned
        in the outcome; they do not stop the rest of the batch.

        Raises:
            PersistenceError: if a bulk call fails at the transport level
        """
        summaries = [s for s in summaries if s.category is category]
        to_create, to_update = self.build_payloads(summaries, parent_id, existing_records)
        outcome = PersistOutcome()
        sobject = self.config.summary_object

        try:
            if to_create:
                logger.info('summary_records_creating', category=category.value, count=len(to_create))
                results = await self.salesforce.create_records(
                    sobject, [payload for _, payload in to_create]
                )
                for (key, _), result in zip(to_create, results):
                    if self._record_result(outcome, key, result, operation='create'):
                        outcome.created[key] = result.get('id')

            if to_update:
                logger.info('summary_records_updating', category=category.value, count=len(to_update))
                results = await self.salesforce.update_records(
                    sobject, [payload for _, payload in to_update]
                )
                for (key, payload), result in zip(to_update, results):
                    if self._record_result(outcome, key, result, operation='update'):
                        outcome.updated[key] = payload['Id']
        except SalesforceError as e:
            logger.error(
                'summary_records_save_failed',
                category=category.value,
                error=str(e),
            )
            raise PersistenceError(
                f'Salesforce save operation failed: {e.message}',
                context={'category': category.value, **e.context},
            ) from e

        logger.info(
            'summary_records_saved',
            category=category.value,
            created=len(outcome.created),
            updated=len(outcome.updated),
            failed=outcome.results.failure_count,
        )
        return outcome

    @staticmethod
    def _record_result(
        outcome: PersistOutcome,
        key: str,
        result: dict[str, Any],
        operation: str,
    ) -> bool:
        if result.get('success'):
            outcome.results.add_success(item_id=key, data={'id': result.get('id')})
            return True

        errors = result.get('errors') or []
        logger.error(
            'summary_record_failed',
            key=key,
            operation=operation,
            errors=errors,
        )
        message = '; '.join(str(e.get('message', e)) for e in errors) or 'unknown error'
        outcome.results.add_failure(
            PersistenceError(f'Failed to {operation} {key}: {message}', context={'errors': errors}),
            item_id=key,
        )
        return False

"""Publish coordinator: drives transform results through a destination."""

import threading
from datetime import datetime
from typing import List, Optional, Sequence

from loguru import logger
from pydantic import BaseModel, Field

from ..api.client import CodeReviewApi
from ..destination.base import Destination, DestinationError
from ..models.change import AbandonInput, ChangeInfo, ChangesQuery
from ..models.transform import TransformResult


class PublishSummary(BaseModel):
    """Summary of one publish run."""

    label_name: str = Field(..., description='Label used for resumption')
    previous_ref: Optional[str] = Field(
        default=None, description='Origin reference published before this run'
    )
    published: List[str] = Field(
        default_factory=list, description='Origin references published in order'
    )
    skipped: List[str] = Field(
        default_factory=list, description='Origin references already published'
    )
    failed: Optional[str] = Field(
        default=None, description='Origin reference whose publish failed'
    )
    error_message: Optional[str] = Field(default=None, description='Failure reason')
    remaining: List[str] = Field(
        default_factory=list, description='Origin references left for the next run'
    )

    started_at: datetime = Field(..., description='Run start time')
    completed_at: Optional[datetime] = Field(default=None, description='Run end time')

    @property
    def success(self) -> bool:
        return self.failed is None


class PublishCoordinator:
    """Publishes an ordered series of transform results exactly once each.

    The destination's label records the last published origin reference, so
    a run started after a crash or a duplicate invocation skips everything up
    to that reference and continues with the next one.

    Publishes through one coordinator are serialized by a lock. Several
    coordinators writing to the same destination must be serialized by the
    caller.
    """

    def __init__(
        self,
        destination: Destination,
        label_name: str = 'GitOrigin-RevId',
        review_client: Optional[CodeReviewApi] = None,
    ):
        """Initialize publish coordinator.

        Args:
            destination: Publish target
            label_name: Label recording origin references in the destination
            review_client: Optional code review client
        """
        self.destination = destination
        self.label_name = label_name
        self.review_client = review_client
        self._lock = threading.Lock()
        self.logger = logger.bind(component='PublishCoordinator')

    def pending(self, results: Sequence[TransformResult]) -> List[TransformResult]:
        """Results not yet published, in order.

        Everything after the result whose origin reference matches the
        destination's previous reference; all results if there is no previous
        reference or it is not part of ``results``.
        """
        previous_ref = self.destination.get_previous_ref(self.label_name)
        return self._after(results, previous_ref)

    @staticmethod
    def _after(
        results: Sequence[TransformResult], previous_ref: Optional[str]
    ) -> List[TransformResult]:
        if previous_ref is None:
            return list(results)
        refs = [result.origin_ref for result in results]
        if previous_ref not in refs:
            return list(results)
        last = len(refs) - 1 - refs[::-1].index(previous_ref)
        return list(results[last + 1 :])

    def publish(self, results: Sequence[TransformResult]) -> PublishSummary:
        """Publish pending results in order, stopping at the first failure.

        Args:
            results: Transform results, oldest first

        Returns:
            Publish summary; a failure leaves later results for the next run
        """
        with self._lock:
            previous_ref = self.destination.get_previous_ref(self.label_name)
            pending = self._after(results, previous_ref)
            summary = PublishSummary(
                label_name=self.label_name,
                previous_ref=previous_ref,
                skipped=[r.origin_ref for r in results[: len(results) - len(pending)]],
                started_at=datetime.now(),
            )

            self.logger.info(
                f'Publishing {len(pending)} of {len(results)} changes '
                f'(previous {self.label_name}: {previous_ref})'
            )

            for index, result in enumerate(pending):
                try:
                    self.destination.process(result)
                except DestinationError as e:
                    self.logger.error(f'Publish of {result.origin_ref} failed: {e}')
                    summary.failed = result.origin_ref
                    summary.error_message = str(e)
                    summary.remaining = [r.origin_ref for r in pending[index:]]
                    break
                summary.published.append(result.origin_ref)

            summary.completed_at = datetime.now()

        self.logger.info(
            f'Publish finished: {len(summary.published)} published, '
            f'{len(summary.skipped)} skipped, failed: {summary.failed}'
        )
        return summary

    def abandon_superseded(
        self, query: ChangesQuery, message: Optional[str] = None
    ) -> List[ChangeInfo]:
        """Abandon every review change matched by ``query``.

        Args:
            query: Search selecting the changes to abandon
            message: Optional abandon comment

        Returns:
            Snapshots returned by the server for each abandoned change

        Raises:
            ValueError: If the coordinator has no review client
        """
        if self.review_client is None:
            raise ValueError('No review client configured')

        abandon_input = (
            AbandonInput.create(message) if message else AbandonInput.create_without_comment()
        )
        abandoned = []
        for change in self.review_client.get_changes(query):
            abandoned.append(self.review_client.abandon_change(change.id, abandon_input))
        self.logger.info(f'Abandoned {len(abandoned)} superseded changes')
        return abandoned

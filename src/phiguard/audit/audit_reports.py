"""
PHI access reports for compliance audits.

A report is a compliance artifact: when the audit store cannot be read the
generator raises instead of presenting partial numbers as complete.
"""

from collections import Counter
from typing import Iterable, Optional

from phiguard.audit.models import AuditQuery, AuditRecord, DateRange, PHIAccessReport
from phiguard.audit.stores import AuditStore
from phiguard.core.exceptions import AuditReportError, AuditStoreUnavailableError
from phiguard.utils.logging import get_logger

logger = get_logger(__name__)


class PHIAccessReportGenerator:
    """Aggregates PHI audit records into access reports."""

    def __init__(self, store: AuditStore):
        self.store = store

    async def report(
        self,
        date_range: DateRange,
        entity_type: Optional[str] = None,
        actor_id: Optional[str] = None,
    ) -> PHIAccessReport:
        """
        Generate a PHI access report.

        Args:
            date_range: Inclusive period to report on
            entity_type: Restrict to one entity type
            actor_id: Restrict to one actor

        Returns:
            Aggregated access counts

        Raises:
            AuditReportError: If the audit store cannot be queried
        """
        if date_range.start > date_range.end:
            raise AuditReportError("Report start date is after end date")

        try:
            records = await self.store.query(
                AuditQuery(
                    entity_type=entity_type,
                    actor_id=actor_id,
                    start_date=date_range.start,
                    end_date=date_range.end,
                )
            )
        except AuditStoreUnavailableError as e:
            logger.error("phi_access_report_failed", error_type=type(e).__name__)
            raise AuditReportError(
                "PHI access report unavailable: audit store cannot be queried"
            ) from e

        report = aggregate(records)
        logger.info(
            "phi_access_report_generated",
            total_accesses=report.total_accesses,
            entity_type=entity_type,
        )
        return report


def aggregate(records: Iterable[AuditRecord]) -> PHIAccessReport:
    """Count records by access type and reason."""
    by_access_type: Counter = Counter()
    by_reason: Counter = Counter()
    total = unauthorized = emergency = 0

    for record in records:
        total += 1
        metadata = record.metadata or {}
        access_type = metadata.get("access_type")
        reason = metadata.get("reason")
        if access_type:
            by_access_type[access_type] += 1
        if reason:
            by_reason[reason] += 1
        if metadata.get("success") is False:
            unauthorized += 1
        if metadata.get("emergency_access"):
            emergency += 1

    return PHIAccessReport(
        total_accesses=total,
        by_access_type=dict(by_access_type),
        by_reason=dict(by_reason),
        unauthorized_attempts=unauthorized,
        emergency_accesses=emergency,
    )

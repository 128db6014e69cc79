"""
PHI access audit logger.

Every touch of PHI (successful, denied or failed) is recorded here. Writes go
to the store selected at startup; a failed write is demoted to the structured
log fallback, and only when both paths fail is the failure itself reported,
at error severity and with field names only.
"""

from typing import Any, List, Optional, Sequence

from phiguard.audit.models import (
    DEFAULT_HISTORY_LIMIT,
    AccessMetadata,
    Actor,
    AuditQuery,
    AuditRecord,
    DateRange,
    EmergencyMetadata,
    ExportMetadata,
    HistoryOptions,
    NoMetadata,
    PHIAccessLogEntry,
    PHIAccessReason,
    PHIAccessReport,
    PHIAccessType,
    TransmitMetadata,
    action_for,
)
from phiguard.audit.audit_reports import PHIAccessReportGenerator
from phiguard.audit.stores import AuditStore, LogAuditStore
from phiguard.config.base import ComplianceConfig
from phiguard.core.exceptions import AuditStoreUnavailableError
from phiguard.utils.logging import get_logger

logger = get_logger(__name__)

UNKNOWN = "UNKNOWN"
UNAUTHORIZED_PREFIX = "UNAUTHORIZED ACCESS ATTEMPT"
EMERGENCY_PREFIX = "BREAK-THE-GLASS"


class PHIAccessLogger:
    """Records PHI access to the audit store with a guaranteed fallback."""

    def __init__(
        self,
        config: ComplianceConfig,
        store: AuditStore,
        fallback: Optional[AuditStore] = None,
    ):
        self.config = config
        self.store = store
        self.fallback = fallback or LogAuditStore()

    @property
    def audit_enabled(self) -> bool:
        """Whether PHI access is written to the selected store."""
        audit = self.config.audit_logging
        return audit.enabled and audit.log_phi_access

    async def record(self, entry: PHIAccessLogEntry) -> None:
        """Record a PHI access entry. Never raises."""
        record = entry.to_record()
        primary = self.store if self.audit_enabled else self.fallback

        try:
            await primary.insert(record)
            return
        except Exception as e:
            logger.warning(
                "phi_audit_store_write_failed",
                store=type(primary).__name__,
                error_type=type(e).__name__,
            )
            if primary is self.fallback:
                self._report_lost_entry(entry, e)
                return

        try:
            await self.fallback.insert(record)
        except Exception as e:
            self._report_lost_entry(entry, e)

    def _report_lost_entry(self, entry: PHIAccessLogEntry, error: Exception) -> None:
        logger.error(
            "phi_access_log_failed",
            hipaa_log=True,
            access_type=entry.access_type.value,
            entity_type=entry.entity_type,
            entity_id=entry.entity_id,
            actor_id=entry.actor.id,
            fields_accessed=list(entry.fields_accessed),
            error_type=type(error).__name__,
        )

    async def _record_access(
        self,
        access_type: PHIAccessType,
        actor: Actor,
        entity_type: str,
        entity_id: str,
        fields: Sequence[str],
        reason: PHIAccessReason,
        reason_detail: Optional[str] = None,
        metadata: Optional[AccessMetadata] = None,
        **context: Any,
    ) -> None:
        await self.record(
            PHIAccessLogEntry(
                actor=actor,
                access_type=access_type,
                entity_type=entity_type,
                entity_id=entity_id,
                reason=reason,
                fields_accessed=tuple(fields),
                reason_detail=reason_detail,
                metadata=metadata or NoMetadata(),
                **context,
            )
        )

    async def record_view(
        self,
        actor: Actor,
        entity_type: str,
        entity_id: str,
        fields: Sequence[str],
        reason: PHIAccessReason,
        **context: Any,
    ) -> None:
        """Record PHI being viewed."""
        await self._record_access(
            PHIAccessType.VIEW, actor, entity_type, entity_id, fields, reason, **context
        )

    async def record_create(
        self,
        actor: Actor,
        entity_type: str,
        entity_id: str,
        fields: Sequence[str],
        reason: PHIAccessReason = PHIAccessReason.TREATMENT,
        **context: Any,
    ) -> None:
        """Record PHI being created."""
        await self._record_access(
            PHIAccessType.CREATE, actor, entity_type, entity_id, fields, reason, **context
        )

    async def record_update(
        self,
        actor: Actor,
        entity_type: str,
        entity_id: str,
        fields: Sequence[str],
        reason: PHIAccessReason = PHIAccessReason.TREATMENT,
        **context: Any,
    ) -> None:
        """Record PHI being modified."""
        await self._record_access(
            PHIAccessType.UPDATE, actor, entity_type, entity_id, fields, reason, **context
        )

    async def record_delete(
        self,
        actor: Actor,
        entity_type: str,
        entity_id: str,
        fields: Sequence[str],
        reason: PHIAccessReason = PHIAccessReason.ADMIN,
        **context: Any,
    ) -> None:
        """Record PHI being deleted."""
        await self._record_access(
            PHIAccessType.DELETE, actor, entity_type, entity_id, fields, reason, **context
        )

    async def record_print(
        self,
        actor: Actor,
        entity_type: str,
        entity_id: str,
        fields: Sequence[str],
        reason: PHIAccessReason,
        **context: Any,
    ) -> None:
        """Record PHI being printed."""
        await self._record_access(
            PHIAccessType.PRINT, actor, entity_type, entity_id, fields, reason, **context
        )

    async def record_copy(
        self,
        actor: Actor,
        entity_type: str,
        entity_id: str,
        fields: Sequence[str],
        reason: PHIAccessReason,
        **context: Any,
    ) -> None:
        """Record PHI being copied."""
        await self._record_access(
            PHIAccessType.COPY, actor, entity_type, entity_id, fields, reason, **context
        )

    async def record_export(
        self,
        actor: Actor,
        entity_type: str,
        entity_id: str,
        fields: Sequence[str],
        reason: PHIAccessReason,
        export_format: Optional[str] = None,
        **context: Any,
    ) -> None:
        """Record PHI being exported (download, report, etc.)."""
        await self._record_access(
            PHIAccessType.EXPORT,
            actor,
            entity_type,
            entity_id,
            fields,
            reason,
            metadata=ExportMetadata(export_format=export_format),
            **context,
        )

    async def record_transmit(
        self,
        actor: Actor,
        entity_type: str,
        entity_id: str,
        fields: Sequence[str],
        reason: PHIAccessReason,
        recipient_type: str,
        recipient_name: Optional[str] = None,
        encryption_used: Optional[bool] = None,
        **context: Any,
    ) -> None:
        """Record PHI being transmitted to an external party."""
        await self._record_access(
            PHIAccessType.TRANSMIT,
            actor,
            entity_type,
            entity_id,
            fields,
            reason,
            metadata=TransmitMetadata(
                recipient_type=recipient_type,
                recipient_name=recipient_name,
                encryption_used=encryption_used,
            ),
            **context,
        )

    async def record_unauthorized_attempt(
        self,
        actor: Optional[Actor],
        entity_type: Optional[str],
        entity_id: Optional[str],
        attempted_action: str,
        attempted_access_type: PHIAccessType = PHIAccessType.VIEW,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> None:
        """Record a denied attempt to access PHI under the attempted access type."""
        await self.record(
            PHIAccessLogEntry(
                actor=actor or Actor(id=UNKNOWN),
                access_type=attempted_access_type,
                entity_type=entity_type or UNKNOWN,
                entity_id=entity_id or UNKNOWN,
                reason=PHIAccessReason.AUDIT,
                reason_detail=f"{UNAUTHORIZED_PREFIX}: {attempted_action}",
                ip_address=ip_address,
                user_agent=user_agent,
                success=False,
                error_message="Access denied - unauthorized",
            )
        )

    async def record_emergency_access(
        self,
        actor: Actor,
        entity_type: str,
        entity_id: str,
        fields: Sequence[str],
        justification: str,
        supervisor_notified: Optional[str] = None,
        **context: Any,
    ) -> None:
        """
        Record break-the-glass access to PHI.

        Emits a warning-level notification immediately, then writes the
        audit entry.

        Raises:
            ValueError: If no justification is given
        """
        if not justification or not justification.strip():
            raise ValueError("Emergency access requires a justification")

        logger.warning(
            "emergency_phi_access",
            hipaa_log=True,
            actor_id=actor.id,
            entity_type=entity_type,
            entity_id=entity_id,
            fields_accessed=list(fields),
            supervisor_notified=supervisor_notified,
        )
        await self._record_access(
            PHIAccessType.VIEW,
            actor,
            entity_type,
            entity_id,
            fields,
            PHIAccessReason.EMERGENCY,
            reason_detail=f"{EMERGENCY_PREFIX}: {justification}",
            metadata=EmergencyMetadata(supervisor_notified=supervisor_notified),
            **context,
        )

    async def history(
        self,
        entity_type: str,
        entity_id: str,
        options: Optional[HistoryOptions] = None,
    ) -> List[AuditRecord]:
        """Access history for an entity, most recent first.

        Returns an empty list when the audit store cannot be queried.
        """
        options = options or HistoryOptions()
        actions = None
        if options.access_types:
            actions = tuple(action_for(t) for t in options.access_types)

        try:
            return await self.store.query(
                AuditQuery(
                    actions=actions,
                    entity_type=entity_type,
                    entity_id=entity_id,
                    start_date=options.start_date,
                    end_date=options.end_date,
                    limit=options.limit if options.limit > 0 else DEFAULT_HISTORY_LIMIT,
                )
            )
        except AuditStoreUnavailableError as e:
            logger.warning(
                "phi_access_history_unavailable",
                entity_type=entity_type,
                error_type=type(e).__name__,
            )
            return []

    async def report(
        self,
        date_range: DateRange,
        entity_type: Optional[str] = None,
        actor_id: Optional[str] = None,
    ) -> PHIAccessReport:
        """Aggregate PHI access over a date range.

        Raises:
            AuditReportError: If the audit store cannot be queried
        """
        return await PHIAccessReportGenerator(self.store).report(
            date_range, entity_type=entity_type, actor_id=actor_id
        )

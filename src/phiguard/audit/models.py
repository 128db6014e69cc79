"""PHI access audit data model.

A log entry records who touched which PHI fields of which entity, when,
why and from where. Entries hold field names only, never field values,
and are never mutated after creation.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Literal, Optional, Tuple, Union


class PHIAccessType(Enum):
    """Kinds of PHI access."""

    VIEW = "VIEW"
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    EXPORT = "EXPORT"
    TRANSMIT = "TRANSMIT"  # Send PHI to an external party
    PRINT = "PRINT"
    COPY = "COPY"


class PHIAccessReason(Enum):
    """Purpose of a PHI access."""

    TREATMENT = "TREATMENT"
    PAYMENT = "PAYMENT"
    HEALTHCARE_OPS = "HEALTHCARE_OPS"
    PATIENT_REQUEST = "PATIENT_REQUEST"
    LEGAL_REQUIREMENT = "LEGAL_REQUIREMENT"
    EMERGENCY = "EMERGENCY"
    RESEARCH = "RESEARCH"  # Approved research with proper authorization
    AUDIT = "AUDIT"
    ADMIN = "ADMIN"


# Access-type specific metadata, one variant per access type that carries extras


@dataclass(frozen=True)
class NoMetadata:
    """Access types without extra fields."""

    kind: Literal["none"] = "none"

    def to_dict(self) -> Dict[str, Any]:
        return {}


@dataclass(frozen=True)
class ExportMetadata:
    """Extras for EXPORT entries."""

    export_format: Optional[str] = None
    kind: Literal["export"] = "export"

    def to_dict(self) -> Dict[str, Any]:
        return {"export_format": self.export_format}


@dataclass(frozen=True)
class TransmitMetadata:
    """Extras for TRANSMIT entries."""

    recipient_type: str
    recipient_name: Optional[str] = None
    encryption_used: Optional[bool] = None
    kind: Literal["transmit"] = "transmit"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "recipient_type": self.recipient_type,
            "recipient_name": self.recipient_name,
            "encryption_used": self.encryption_used,
        }


@dataclass(frozen=True)
class EmergencyMetadata:
    """Extras for break-the-glass entries."""

    supervisor_notified: Optional[str] = None
    kind: Literal["emergency"] = "emergency"

    def to_dict(self) -> Dict[str, Any]:
        return {"emergency_access": True, "supervisor_notified": self.supervisor_notified}


AccessMetadata = Union[NoMetadata, ExportMetadata, TransmitMetadata, EmergencyMetadata]


@dataclass(frozen=True)
class Actor:
    """Who performed the access."""

    id: str
    email: Optional[str] = None
    role: Optional[str] = None


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class PHIAccessLogEntry:
    """One PHI access attempt, successful or not."""

    actor: Actor
    access_type: PHIAccessType
    entity_type: str
    entity_id: str
    reason: PHIAccessReason
    fields_accessed: Tuple[str, ...] = ()
    timestamp: datetime = field(default_factory=utcnow)
    reason_detail: Optional[str] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    session_id: Optional[str] = None
    success: bool = True
    error_message: Optional[str] = None
    metadata: AccessMetadata = field(default_factory=NoMetadata)

    @property
    def action(self) -> str:
        """Persisted action string, e.g. ``phi.view``."""
        return action_for(self.access_type)

    @property
    def description(self) -> str:
        """Human-readable summary (no PHI values)."""
        text = f"PHI {self.access_type.value} - {self.reason.value}"
        if self.reason_detail:
            text += f": {self.reason_detail}"
        return text

    def to_record(self) -> "AuditRecord":
        """Shape the entry as the persisted audit record."""
        metadata: Dict[str, Any] = {
            "access_type": self.access_type.value,
            "reason": self.reason.value,
            "reason_detail": self.reason_detail,
            "fields_accessed": list(self.fields_accessed),
            "success": self.success,
            "error_message": self.error_message,
            "session_id": self.session_id,
        }
        metadata.update(self.metadata.to_dict())
        return AuditRecord(
            action=self.action,
            entity_type=self.entity_type,
            entity_id=self.entity_id,
            actor_id=self.actor.id,
            actor_email=self.actor.email,
            actor_role=self.actor.role,
            description=self.description,
            metadata=metadata,
            ip_address=self.ip_address,
            user_agent=self.user_agent,
            created_at=self.timestamp,
        )


def action_for(access_type: PHIAccessType) -> str:
    """Persisted action string for an access type."""
    return f"phi.{access_type.value.lower()}"


@dataclass
class AuditRecord:
    """Audit record shape accepted by the durable store.

    ``created_at`` is assigned by the durable store on insert; the value
    carried here is the entry timestamp, used by the fallback log sink.
    """

    action: str
    entity_type: str
    entity_id: str
    actor_id: str
    description: str
    metadata: Dict[str, Any]
    actor_email: Optional[str] = None
    actor_role: Optional[str] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    created_at: Optional[datetime] = None
    id: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for structured logs and JSON responses."""
        return {
            "id": self.id,
            "action": self.action,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "actor_id": self.actor_id,
            "actor_email": self.actor_email,
            "actor_role": self.actor_role,
            "description": self.description,
            "metadata": dict(self.metadata),
            "ip_address": self.ip_address,
            "user_agent": self.user_agent,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


@dataclass(frozen=True)
class AuditQuery:
    """Filter for reading audit records back from a store."""

    action_prefix: str = "phi."
    actions: Optional[Tuple[str, ...]] = None
    entity_type: Optional[str] = None
    entity_id: Optional[str] = None
    actor_id: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    limit: Optional[int] = None


DEFAULT_HISTORY_LIMIT = 100


@dataclass(frozen=True)
class HistoryOptions:
    """Options for an entity's access history. A limit below 1 means the default."""

    limit: int = DEFAULT_HISTORY_LIMIT
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    access_types: Optional[Tuple[PHIAccessType, ...]] = None


@dataclass(frozen=True)
class DateRange:
    """Inclusive date range."""

    start: datetime
    end: datetime


@dataclass
class PHIAccessReport:
    """Aggregated PHI access counts for a compliance audit."""

    total_accesses: int = 0
    by_access_type: Dict[str, int] = field(default_factory=dict)
    by_reason: Dict[str, int] = field(default_factory=dict)
    unauthorized_attempts: int = 0
    emergency_accesses: int = 0

"""
Audit record stores.

Two implementations of one capability: the durable append-only database
store and the structured-log fallback sink. The store is selected once at
startup by `create_audit_store`; a write that fails later is routed to the
fallback by the PHI access logger.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Callable, List, Optional

from sqlalchemy import JSON, Column, DateTime, Integer, String, Text, create_engine, select, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import ArgumentError, SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from phiguard.audit.models import AuditQuery, AuditRecord
from phiguard.core.exceptions import AuditStoreUnavailableError
from phiguard.utils.logging import get_logger

Base = declarative_base()  # type: Any
logger = get_logger(__name__)


def _naive_utc(value: datetime) -> datetime:
    """Normalize to naive UTC, the storage representation."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def _db_now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class PHIAuditLog(Base):
    """SQLAlchemy model for PHI audit records. Rows are only ever inserted."""

    __tablename__ = "phi_audit_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    action = Column(String(50), nullable=False, index=True)
    entity_type = Column(String(100), nullable=False, index=True)
    entity_id = Column(String(255), nullable=False, index=True)
    actor_id = Column(String(255), nullable=False, index=True)
    actor_email = Column(String(255))
    actor_role = Column(String(50))
    description = Column(Text, nullable=False)
    details = Column("metadata", JSON, nullable=False, default=dict)
    ip_address = Column(String(45))
    user_agent = Column(Text)
    created_at = Column(DateTime, nullable=False, default=_db_now, index=True)

    def to_record(self) -> AuditRecord:
        """Convert the row to an AuditRecord (created_at as aware UTC)."""
        created_at = self.created_at
        if created_at is not None and created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=timezone.utc)
        return AuditRecord(
            id=self.id,
            action=self.action,
            entity_type=self.entity_type,
            entity_id=self.entity_id,
            actor_id=self.actor_id,
            actor_email=self.actor_email,
            actor_role=self.actor_role,
            description=self.description,
            metadata=dict(self.details or {}),
            ip_address=self.ip_address,
            user_agent=self.user_agent,
            created_at=created_at,
        )


class AuditStore(ABC):
    """Append-only audit record store."""

    #: Whether records written here survive a restart and can be queried
    durable: bool = False

    @abstractmethod
    async def insert(self, record: AuditRecord) -> None:
        """Append a record."""

    @abstractmethod
    async def query(self, audit_query: AuditQuery) -> List[AuditRecord]:
        """Return matching records, most recent first."""


class DatabaseAuditStore(AuditStore):
    """Durable audit store backed by a SQLAlchemy database."""

    durable = True

    def __init__(self, session_factory: Callable[[], Session]):
        """Initialize with a session factory bound to the audit database."""
        self.session_factory = session_factory

    async def insert(self, record: AuditRecord) -> None:
        """Append a record; created_at is assigned by the store."""
        session = self.session_factory()
        try:
            session.add(
                PHIAuditLog(
                    action=record.action,
                    entity_type=record.entity_type,
                    entity_id=record.entity_id,
                    actor_id=record.actor_id,
                    actor_email=record.actor_email,
                    actor_role=record.actor_role,
                    description=record.description,
                    details=record.metadata,
                    ip_address=record.ip_address,
                    user_agent=record.user_agent,
                )
            )
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            raise AuditStoreUnavailableError(
                f"Failed to persist audit record: {type(e).__name__}"
            ) from e
        finally:
            session.close()

    async def query(self, audit_query: AuditQuery) -> List[AuditRecord]:
        """Return matching records, most recent first."""
        stmt = select(PHIAuditLog)
        if audit_query.action_prefix:
            stmt = stmt.where(PHIAuditLog.action.startswith(audit_query.action_prefix))
        if audit_query.actions:
            stmt = stmt.where(PHIAuditLog.action.in_(audit_query.actions))
        if audit_query.entity_type:
            stmt = stmt.where(PHIAuditLog.entity_type == audit_query.entity_type)
        if audit_query.entity_id:
            stmt = stmt.where(PHIAuditLog.entity_id == audit_query.entity_id)
        if audit_query.actor_id:
            stmt = stmt.where(PHIAuditLog.actor_id == audit_query.actor_id)
        if audit_query.start_date:
            stmt = stmt.where(PHIAuditLog.created_at >= _naive_utc(audit_query.start_date))
        if audit_query.end_date:
            stmt = stmt.where(PHIAuditLog.created_at <= _naive_utc(audit_query.end_date))
        stmt = stmt.order_by(PHIAuditLog.created_at.desc(), PHIAuditLog.id.desc())
        if audit_query.limit:
            stmt = stmt.limit(audit_query.limit)

        session = self.session_factory()
        try:
            rows = session.execute(stmt).scalars().all()
            return [row.to_record() for row in rows]
        except SQLAlchemyError as e:
            raise AuditStoreUnavailableError(
                f"Failed to query audit records: {type(e).__name__}"
            ) from e
        finally:
            session.close()


class LogAuditStore(AuditStore):
    """Write-only fallback that emits audit records as tagged structured logs."""

    durable = False

    def __init__(self, sink: Optional[Any] = None):
        """
        Initialize the fallback store.

        Args:
            sink: Structured logger with info/warning/error methods
        """
        self.sink = sink or get_logger("phiguard.audit.hipaa")

    async def insert(self, record: AuditRecord) -> None:
        """Emit the record as a structured HIPAA log event."""
        self.sink.info("phi_access_log", hipaa_log=True, compliance="HIPAA", **record.to_dict())

    async def query(self, audit_query: AuditQuery) -> List[AuditRecord]:
        """The log sink cannot be read back."""
        raise AuditStoreUnavailableError("Fallback log sink does not support queries")


def create_audit_engine(database_url: str) -> Engine:
    """Create an engine for the audit database."""
    if database_url == "sqlite://" or (
        database_url.startswith("sqlite") and ":memory:" in database_url
    ):
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_engine(database_url, pool_pre_ping=True)


def create_audit_store(
    database_url: Optional[str], fallback: Optional[AuditStore] = None
) -> AuditStore:
    """Select the audit store once at startup.

    Probes the database; when it is not configured or not reachable the
    structured-log fallback is returned instead.
    """
    fallback = fallback or LogAuditStore()
    if not database_url:
        logger.warning("audit_store_not_configured", store="log")
        return fallback

    try:
        engine = create_audit_engine(database_url)
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
        Base.metadata.create_all(engine)
    except (SQLAlchemyError, ArgumentError, ImportError) as e:
        logger.warning("audit_store_unavailable", store="log", error_type=type(e).__name__)
        return fallback

    logger.info("audit_store_selected", store="database")
    return DatabaseAuditStore(sessionmaker(bind=engine))

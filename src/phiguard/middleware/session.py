"""Session staleness check.

Sessions are created by the upstream authenticator; this module only reads
their timestamps. Expiry is evaluated lazily at access time, there is no
background sweeper.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Optional

from phiguard.config.base import ComplianceConfig, SessionConfig


class SessionState(Enum):
    """Session lifecycle states."""

    ACTIVE = "active"
    EXPIRED = "expired"


@dataclass(frozen=True)
class SessionRecord:
    """Session timestamps supplied by the authenticator."""

    session_id: str
    actor_id: str
    created_at: datetime
    last_activity_at: datetime


@dataclass(frozen=True)
class SessionValidation:
    """Result of a staleness check."""

    valid: bool
    reason: Optional[str] = None

    @property
    def state(self) -> SessionState:
        return SessionState.ACTIVE if self.valid else SessionState.EXPIRED


def _aware(value: datetime) -> datetime:
    return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)


class SessionTimeoutPolicy:
    """Inactivity timeout from the compliance configuration."""

    def __init__(self, config: SessionConfig):
        self.config = config

    @classmethod
    def from_compliance(cls, config: ComplianceConfig) -> "SessionTimeoutPolicy":
        return cls(config.session)

    @property
    def timeout(self) -> timedelta:
        return timedelta(minutes=self.config.timeout_minutes)

    def validate(
        self,
        created_at: datetime,
        last_activity_at: datetime,
        now: Optional[datetime] = None,
    ) -> SessionValidation:
        """
        Check a session for inactivity.

        Inactivity equal to the timeout is still valid; only exceeding it
        expires the session. Naive datetimes are taken as UTC.
        """
        now = _aware(now) if now else datetime.now(timezone.utc)
        idle = now - _aware(last_activity_at)
        if idle > self.timeout:
            return SessionValidation(
                valid=False,
                reason=(
                    f"Session timed out after {self.config.timeout_minutes} "
                    "minutes of inactivity"
                ),
            )
        return SessionValidation(valid=True)

    def validate_record(
        self, session: SessionRecord, now: Optional[datetime] = None
    ) -> SessionValidation:
        return self.validate(session.created_at, session.last_activity_at, now=now)


def validate_session(
    created_at: datetime,
    last_activity_at: datetime,
    config: ComplianceConfig,
    now: Optional[datetime] = None,
) -> SessionValidation:
    """Check a session against the configured inactivity timeout."""
    return SessionTimeoutPolicy.from_compliance(config).validate(
        created_at, last_activity_at, now=now
    )

"""Compliance configuration snapshot.

The configuration is built once per process from safe defaults plus
environment overrides and is immutable afterwards. Components take it as a
constructor argument instead of reading process-global state.
"""

from typing import FrozenSet, Literal

from pydantic import BaseModel, ConfigDict, Field

# HIPAA requires audit records to be kept for six years
MIN_RETENTION_DAYS = 2190


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class EncryptionConfig(_Frozen):
    """Field encryption settings."""

    enabled: bool = True
    algorithm: Literal["aes-256-gcm"] = "aes-256-gcm"
    key_rotation_days: int = Field(default=90, gt=0)


class AuditLoggingConfig(_Frozen):
    """PHI access audit settings."""

    enabled: bool = True
    log_phi_access: bool = True
    log_external_transmissions: bool = True
    retention_days: int = Field(default=MIN_RETENTION_DAYS, ge=MIN_RETENTION_DAYS)


class SessionConfig(_Frozen):
    """Session inactivity settings."""

    timeout_minutes: int = Field(default=15, gt=0)
    require_reauth_for_phi: bool = True


class DataHandlingConfig(_Frozen):
    """PHI data handling rules."""

    minimum_necessary: bool = True
    auto_scrub_logs: bool = True
    prevent_phi_in_urls: bool = True


class BusinessAssociateConfig(_Frozen):
    """Business associate agreement requirements."""

    baa_required: bool = True
    approved_vendors: FrozenSet[str] = frozenset({"neon", "vercel", "sendgrid"})


class ComplianceConfig(_Frozen):
    """Immutable HIPAA compliance configuration for the process lifetime."""

    encryption: EncryptionConfig = Field(default_factory=EncryptionConfig)
    audit_logging: AuditLoggingConfig = Field(default_factory=AuditLoggingConfig)
    session: SessionConfig = Field(default_factory=SessionConfig)
    data_handling: DataHandlingConfig = Field(default_factory=DataHandlingConfig)
    business_associate: BusinessAssociateConfig = Field(
        default_factory=BusinessAssociateConfig
    )

"""Configuration loader.

Builds the immutable `ComplianceConfig` from hard-coded safe defaults plus
environment overrides. The cached accessors exist for the composition root
(application startup, CLI); library components receive the config explicitly.
"""

from functools import lru_cache
from typing import Optional

from pydantic import ValidationError

from phiguard.config.base import (
    MIN_RETENTION_DAYS,
    AuditLoggingConfig,
    ComplianceConfig,
    EncryptionConfig,
    SessionConfig,
)
from phiguard.config.settings import HIPAASettings
from phiguard.core.exceptions import ConfigurationError


def _describe(error: ValidationError) -> str:
    # Field locations only; input values may be secrets
    fields = sorted({".".join(str(p) for p in e["loc"]) for e in error.errors()})
    return ", ".join(fields) or "unknown field"


def load_settings() -> HIPAASettings:
    """Read settings from the environment, raising ConfigurationError on bad input."""
    try:
        return HIPAASettings()
    except ValidationError as e:
        raise ConfigurationError(
            f"Invalid HIPAA environment configuration: {_describe(e)}"
        ) from e


def resolve(settings: Optional[HIPAASettings] = None) -> ComplianceConfig:
    """Merge safe defaults with environment overrides.

    Args:
        settings: Pre-loaded settings; read from the environment when omitted

    Returns:
        Immutable compliance configuration
    """
    if settings is None:
        settings = load_settings()

    defaults = ComplianceConfig()

    retention_days = defaults.audit_logging.retention_days
    if settings.audit_log_retention_days is not None:
        if settings.audit_log_retention_days < MIN_RETENTION_DAYS:
            raise ConfigurationError(
                f"Audit log retention must be at least {MIN_RETENTION_DAYS} days, "
                f"got {settings.audit_log_retention_days}"
            )
        retention_days = settings.audit_log_retention_days

    timeout_minutes = defaults.session.timeout_minutes
    if settings.session_timeout_minutes is not None:
        if settings.session_timeout_minutes <= 0:
            raise ConfigurationError("Session timeout must be a positive number of minutes")
        timeout_minutes = settings.session_timeout_minutes

    return defaults.model_copy(
        update={
            "encryption": EncryptionConfig(
                enabled=settings.encryption_enabled,
                algorithm=defaults.encryption.algorithm,
                key_rotation_days=defaults.encryption.key_rotation_days,
            ),
            "audit_logging": AuditLoggingConfig(
                enabled=settings.audit_logging_enabled,
                log_phi_access=defaults.audit_logging.log_phi_access,
                log_external_transmissions=defaults.audit_logging.log_external_transmissions,
                retention_days=retention_days,
            ),
            "session": SessionConfig(
                timeout_minutes=timeout_minutes,
                require_reauth_for_phi=defaults.session.require_reauth_for_phi,
            ),
        }
    )


@lru_cache()
def get_settings() -> HIPAASettings:
    """Get cached settings instance."""
    return load_settings()


@lru_cache()
def get_compliance_config() -> ComplianceConfig:
    """Get the process-wide compliance configuration snapshot."""
    return resolve(get_settings())

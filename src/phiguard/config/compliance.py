"""HIPAA compliance self-check.

Inspects the runtime environment and classifies findings into blocking
issues, warnings and recommendations. No side effects.
"""

from dataclasses import dataclass, field
from typing import List, Optional
from urllib.parse import parse_qs, urlsplit

from phiguard.config.base import MIN_RETENTION_DAYS, SessionConfig
from phiguard.config.loader import load_settings
from phiguard.config.settings import HIPAASettings
from phiguard.core.exceptions import ConfigurationError

MIN_ENCRYPTION_KEY_LENGTH = 32
MAX_RECOMMENDED_SESSION_TIMEOUT = 30

_SSL_MODES = {"require", "verify-ca", "verify-full"}


@dataclass(frozen=True)
class ComplianceStatus:
    """Result of a compliance self-check."""

    issues: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)

    @property
    def is_compliant(self) -> bool:
        """Compliant iff there are no blocking issues."""
        return not self.issues

    def to_dict(self) -> dict:
        """Serialize for JSON responses."""
        return {
            "is_compliant": self.is_compliant,
            "issues": list(self.issues),
            "warnings": list(self.warnings),
            "recommendations": list(self.recommendations),
        }


def database_uses_ssl(database_url: str) -> bool:
    """Check whether a connection string requests encryption in transit."""
    if not database_url:
        return False
    query = parse_qs(urlsplit(database_url).query)
    if any(mode.lower() in _SSL_MODES for mode in query.get("sslmode", [])):
        return True
    return any(value.lower() == "true" for value in query.get("ssl", []))


def encryption_key_problem(settings: HIPAASettings) -> Optional[str]:
    """Describe what is wrong with the master secret, or None if it is usable."""
    key = settings.encryption_key_value()
    if key is None:
        return "HIPAA_ENCRYPTION_KEY environment variable is not set"
    if len(key) < MIN_ENCRYPTION_KEY_LENGTH:
        return f"HIPAA_ENCRYPTION_KEY must be at least {MIN_ENCRYPTION_KEY_LENGTH} characters"
    return None


def check_compliance(settings: Optional[HIPAASettings] = None) -> ComplianceStatus:
    """Run the compliance self-check against the environment.

    Args:
        settings: Pre-loaded settings; read from the environment when omitted

    Returns:
        Classified findings
    """
    if settings is None:
        try:
            settings = load_settings()
        except ConfigurationError as e:
            return ComplianceStatus(issues=[str(e)])

    issues: List[str] = []
    warnings: List[str] = []
    recommendations: List[str] = []

    key_problem = encryption_key_problem(settings)
    if key_problem:
        issues.append(key_problem)

    if not settings.encryption_enabled:
        issues.append("PHI field encryption is disabled (HIPAA_ENCRYPTION_ENABLED=false)")

    if not settings.audit_logging_enabled:
        issues.append("PHI audit logging is disabled (HIPAA_AUDIT_LOGGING_ENABLED=false)")

    if not database_uses_ssl(settings.database_url):
        warnings.append("Database connection may not be using SSL encryption")

    if not settings.baa_signed:
        warnings.append(
            "HIPAA_BAA_SIGNED flag not set - ensure a BAA is signed with the datastore vendor"
        )

    timeout = settings.session_timeout_minutes
    if timeout is None:
        timeout = SessionConfig().timeout_minutes
    if timeout <= 0:
        issues.append("HIPAA_SESSION_TIMEOUT_MINUTES must be a positive number of minutes")
    elif timeout > MAX_RECOMMENDED_SESSION_TIMEOUT:
        warnings.append(
            f"Session timeout of {timeout} minutes exceeds recommended 15-30 minutes"
        )

    if settings.encryption_salt is None:
        warnings.append(
            "HIPAA_ENCRYPTION_SALT is not set - the shared default salt is in use"
        )
    if settings.search_salt is None:
        warnings.append("HIPAA_SEARCH_SALT is not set - the shared default salt is in use")

    retention = settings.audit_log_retention_days
    if retention is None:
        recommendations.append(
            f"Consider setting HIPAA_AUDIT_LOG_RETENTION_DAYS (minimum {MIN_RETENTION_DAYS} for 6 years)"
        )
    elif retention < MIN_RETENTION_DAYS:
        issues.append(
            f"HIPAA_AUDIT_LOG_RETENTION_DAYS of {retention} is below the required {MIN_RETENTION_DAYS}"
        )

    recommendations.append("Ensure all staff handling PHI have completed HIPAA training")
    recommendations.append("Schedule regular security audits and penetration testing")
    recommendations.append("Maintain documentation of all HIPAA policies and procedures")

    return ComplianceStatus(
        issues=issues, warnings=warnings, recommendations=recommendations
    )

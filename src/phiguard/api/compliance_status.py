"""HIPAA compliance status endpoint.

Reports the compliance self-check and configuration summary to
administrators. Only ADMIN actors may read it.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from phiguard.config.base import ComplianceConfig
from phiguard.config.compliance import check_compliance, database_uses_ssl, encryption_key_problem
from phiguard.config.loader import get_settings, resolve
from phiguard.config.settings import HIPAASettings
from phiguard.core.exceptions import ConfigurationError
from phiguard.middleware.context import get_client_ip, state_user_authenticator
from phiguard.middleware.security_headers import apply_security_headers
from phiguard.security.access_control import Role, resolve_role
from phiguard.utils.logging import get_logger

router = APIRouter(prefix="/admin", tags=["compliance"])
logger = get_logger(__name__)


def _hardened(content: Dict[str, Any], status_code: int = 200) -> JSONResponse:
    response = JSONResponse(status_code=status_code, content=content)
    apply_security_headers(response.headers)
    return response


def _check(status: bool, ok: str, failed: str) -> Dict[str, Any]:
    return {"status": status, "message": ok if status else failed}


def current_settings() -> Optional[HIPAASettings]:
    """Environment settings, or None when the environment cannot be parsed."""
    try:
        return get_settings()
    except ConfigurationError as e:
        logger.error("compliance_settings_invalid", code=e.code)
        return None


def _summary_config(settings: HIPAASettings) -> ComplianceConfig:
    try:
        return resolve(settings)
    except ConfigurationError:
        # Out-of-range overrides are reported as issues by check_compliance
        return resolve(
            settings.model_copy(
                update={"audit_log_retention_days": None, "session_timeout_minutes": None}
            )
        )


def _configured(value: Optional[int], default: int) -> int:
    return default if value is None else value


def build_status_report(settings: HIPAASettings) -> Dict[str, Any]:
    """Assemble the compliance status document."""
    config = _summary_config(settings)
    status = check_compliance(settings)
    has_ssl = database_uses_ssl(settings.database_url)
    key_problem = encryption_key_problem(settings)
    has_key = settings.encryption_key_value() is not None

    action_required = []
    if not settings.baa_signed:
        action_required.append("Sign BAA with the database provider")
    if not has_key:
        action_required.append("Set HIPAA_ENCRYPTION_KEY environment variable")
    if not has_ssl:
        action_required.append("Enable SSL in database connection")
    action_required.extend(status.issues)

    return {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "overall_status": "COMPLIANT" if status.is_compliant else "NON_COMPLIANT",
        "critical_checks": {
            "baa_signed": _check(
                settings.baa_signed,
                "BAA signed with datastore vendor",
                "BAA with datastore vendor required",
            ),
            "database_ssl": _check(
                has_ssl, "SSL enabled", "SSL not detected in connection string"
            ),
            "encryption_key": {
                "status": key_problem is None,
                "message": key_problem or "Encryption key configured",
            },
            "audit_logging": _check(
                config.audit_logging.enabled,
                "Audit logging enabled",
                "Audit logging disabled",
            ),
        },
        "configuration": {
            "encryption": {
                "enabled": config.encryption.enabled,
                "algorithm": config.encryption.algorithm,
                "key_rotation_days": config.encryption.key_rotation_days,
            },
            "session": {
                "timeout_minutes": _configured(
                    settings.session_timeout_minutes, config.session.timeout_minutes
                ),
                "require_reauth_for_phi": config.session.require_reauth_for_phi,
            },
            "audit_logging": {
                "enabled": config.audit_logging.enabled,
                "log_phi_access": config.audit_logging.log_phi_access,
                "retention_days": _configured(
                    settings.audit_log_retention_days, config.audit_logging.retention_days
                ),
            },
            "data_handling": {
                "auto_scrub_logs": config.data_handling.auto_scrub_logs,
                "prevent_phi_in_urls": config.data_handling.prevent_phi_in_urls,
            },
        },
        "issues": status.issues,
        "warnings": status.warnings,
        "recommendations": status.recommendations,
        "action_required": action_required,
    }


@router.get("/hipaa-status")
async def hipaa_status(
    request: Request, settings: Optional[HIPAASettings] = Depends(current_settings)
) -> JSONResponse:
    """Return the current HIPAA compliance status (ADMIN only)."""
    actor = state_user_authenticator(request)
    if actor is None:
        return _hardened({"error": "Unauthorized"}, status_code=401)
    if resolve_role(actor.role) is not Role.ADMIN:
        logger.warning(
            "compliance_status_forbidden",
            actor_id=actor.id,
            ip_address=get_client_ip(request),
        )
        return _hardened({"error": "Forbidden"}, status_code=403)

    if settings is None:
        return _hardened({"error": "Failed to check compliance status"}, status_code=500)
    return _hardened(build_status_report(settings))

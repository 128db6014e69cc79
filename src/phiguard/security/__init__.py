"""
Security module for PHI Guard.

Provides field encryption, display masking, access decisions and PHI
scrubbing for logs and URLs.
"""

from .access_control import PermissionDecision, PHIAction, Role, check_permission
from .encryption import FieldEncryptor, generate_encryption_key, is_encrypted
from .masking import PHIMasker
from .request_sanitizer import (
    PHIScanResult,
    URLValidationResult,
    sanitize_for_logging,
    scan,
    validate_url,
)

__all__ = [
    "FieldEncryptor",
    "PHIAction",
    "PHIMasker",
    "PHIScanResult",
    "PermissionDecision",
    "Role",
    "URLValidationResult",
    "check_permission",
    "generate_encryption_key",
    "is_encrypted",
    "sanitize_for_logging",
    "scan",
    "validate_url",
]

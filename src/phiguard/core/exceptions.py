"""Core Exceptions Module.

This module defines the exceptions raised by PHI Guard components. Access
denial is deliberately absent: a denied access is a normal decision value.
"""

from typing import Optional


class PHIGuardError(Exception):
    """Base exception for all PHI Guard errors."""

    def __init__(self, message: str, code: Optional[str] = None):
        """Initialize exception.

        Args:
            message: Error message (must never contain PHI values or key material)
            code: Optional error code
        """
        super().__init__(message)
        self.code = code


class ConfigurationError(PHIGuardError):
    """Raised when configuration is invalid or missing."""

    def __init__(self, message: str, code: str = "CONFIGURATION_ERROR"):
        """Initialize ConfigurationError."""
        super().__init__(message, code)


class EncryptionError(PHIGuardError):
    """Raised when a value cannot be encrypted."""

    def __init__(self, message: str = "Failed to encrypt PHI data"):
        """Initialize EncryptionError."""
        super().__init__(message, "ENCRYPTION_ERROR")


class DecryptionError(PHIGuardError):
    """Raised when an encrypted value fails format or tag verification."""

    def __init__(self, message: str = "Failed to decrypt PHI data"):
        """Initialize DecryptionError."""
        super().__init__(message, "DECRYPTION_ERROR")


class AuditStoreUnavailableError(PHIGuardError):
    """Raised when the durable audit store cannot serve a request."""

    def __init__(self, message: str = "Audit store is not available"):
        """Initialize AuditStoreUnavailableError."""
        super().__init__(message, "AUDIT_STORE_UNAVAILABLE")


class AuditReportError(PHIGuardError):
    """Raised when a compliance report cannot be produced completely."""

    def __init__(self, message: str = "Failed to generate PHI access report"):
        """Initialize AuditReportError."""
        super().__init__(message, "AUDIT_REPORT_ERROR")

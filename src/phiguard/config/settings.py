"""Environment settings for PHI Guard.

Raw values read from the process environment. Nothing here applies policy;
`phiguard.config.loader.resolve` turns these into the immutable
`ComplianceConfig` snapshot.
"""

from typing import Optional

from pydantic import AliasChoices, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_ENCRYPTION_SALT = "basehealth-hipaa-salt-v1"
DEFAULT_SEARCH_SALT = "basehealth-search-salt-v1"


class HIPAASettings(BaseSettings):
    """Environment-driven HIPAA settings.

    Note: secrets are held as SecretStr so they never render in reprs,
    tracebacks or structured log output.
    """

    model_config = SettingsConfigDict(
        env_prefix="HIPAA_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Encryption
    encryption_key: Optional[SecretStr] = Field(
        default=None, description="Master secret for PHI field encryption"
    )
    encryption_salt: Optional[SecretStr] = Field(
        default=None, description="Salt for deriving the field encryption key"
    )
    search_salt: Optional[SecretStr] = Field(
        default=None, description="Fixed salt for deterministic search hashes"
    )
    encryption_enabled: bool = True

    # Audit logging
    audit_logging_enabled: bool = True
    audit_log_retention_days: Optional[int] = None

    # Session
    session_timeout_minutes: Optional[int] = None

    # Business associate agreement on file with the datastore vendor
    baa_signed: bool = Field(
        default=False,
        validation_alias=AliasChoices(
            "baa_signed",
            "HIPAA_BAA_SIGNED",
            "DATASTORE_BAA_SIGNED",
            "NEON_BAA_SIGNED",
        ),
    )

    # Infrastructure
    database_url: str = Field(
        default="", validation_alias=AliasChoices("database_url", "DATABASE_URL")
    )
    environment: str = Field(
        default="development",
        validation_alias=AliasChoices("environment", "ENVIRONMENT"),
    )
    log_level: str = Field(
        default="INFO", validation_alias=AliasChoices("log_level", "LOG_LEVEL")
    )
    log_format: str = Field(
        default="console", validation_alias=AliasChoices("log_format", "LOG_FORMAT")
    )

    @field_validator("encryption_key", "encryption_salt", "search_salt", mode="before")
    @classmethod
    def blank_secret_is_unset(cls, v: Optional[str]) -> Optional[str]:
        """Treat an empty environment value the same as an absent one."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        """Only console and json renderers are supported."""
        v = v.lower()
        if v not in ("console", "json"):
            raise ValueError("log_format must be 'console' or 'json'")
        return v

    def encryption_key_value(self) -> Optional[str]:
        """Return the raw master secret, or None when unset."""
        if self.encryption_key is None:
            return None
        return self.encryption_key.get_secret_value()

    def encryption_salt_value(self) -> str:
        """Return the key-derivation salt, falling back to the shared default."""
        if self.encryption_salt is None:
            return DEFAULT_ENCRYPTION_SALT
        return self.encryption_salt.get_secret_value()

    def search_salt_value(self) -> str:
        """Return the search-hash salt, falling back to the shared default."""
        if self.search_salt is None:
            return DEFAULT_SEARCH_SALT
        return self.search_salt.get_secret_value()

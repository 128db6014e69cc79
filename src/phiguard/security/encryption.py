"""
HIPAA-Compliant Field-Level Encryption.

Provides AES-256-GCM encryption for sensitive PHI fields so data stays
encrypted at rest even if the database is compromised.

Wire format: ``enc:`` + base64(IV || ciphertext || auth tag).

IMPORTANT:
- The master secret is never used directly as a key; it is stretched with
  scrypt and a salt once per encryptor instance.
- Never log plaintext or key material.
"""

import base64
import binascii
import os
import secrets
import threading
from typing import Any, Dict, Iterable, Optional, TypeVar

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.scrypt import Scrypt

from phiguard.config.base import ComplianceConfig
from phiguard.config.compliance import MIN_ENCRYPTION_KEY_LENGTH
from phiguard.config.phi_fields import get_phi_fields
from phiguard.config.settings import DEFAULT_ENCRYPTION_SALT, DEFAULT_SEARCH_SALT
from phiguard.core.exceptions import ConfigurationError, DecryptionError, EncryptionError
from phiguard.utils.logging import get_logger

logger = get_logger(__name__)

ENCRYPTED_PREFIX = "enc:"
IV_LENGTH = 16
AUTH_TAG_LENGTH = 16
KEY_LENGTH = 32  # 256 bits

# scrypt cost parameters
SCRYPT_N = 2**14
SCRYPT_R = 8
SCRYPT_P = 1

R = TypeVar("R", bound=Dict[str, Any])


def derive_key(secret: str, salt: str, length: int = KEY_LENGTH) -> bytes:
    """Stretch a secret into key material with scrypt."""
    kdf = Scrypt(salt=salt.encode("utf-8"), length=length, n=SCRYPT_N, r=SCRYPT_R, p=SCRYPT_P)
    return kdf.derive(secret.encode("utf-8"))


def is_encrypted(value: Any) -> bool:
    """Check if a value carries the encryption sentinel."""
    return isinstance(value, str) and value.startswith(ENCRYPTED_PREFIX)


def generate_encryption_key() -> str:
    """Generate a master secret suitable for HIPAA_ENCRYPTION_KEY."""
    return base64.b64encode(secrets.token_bytes(32)).decode("ascii")


class FieldEncryptor:
    """Authenticated field-level encryption for PHI values.

    Safe to share between threads: the derived key is computed once and
    never mutated afterwards.
    """

    def __init__(
        self,
        master_key: Optional[str],
        salt: str = DEFAULT_ENCRYPTION_SALT,
        search_salt: str = DEFAULT_SEARCH_SALT,
        config: Optional[ComplianceConfig] = None,
    ):
        """
        Initialize the encryptor.

        Args:
            master_key: Master secret (HIPAA_ENCRYPTION_KEY); validated on first use
            salt: Key-derivation salt
            search_salt: Fixed salt for deterministic search hashes
            config: Compliance configuration
        """
        self._master_key = master_key
        self._salt = salt
        self._search_salt = search_salt
        self.config = config or ComplianceConfig()
        self._aead: Optional[AESGCM] = None
        self._lock = threading.Lock()

    @classmethod
    def from_settings(cls, settings: Any, config: Optional[ComplianceConfig] = None) -> "FieldEncryptor":
        """Build an encryptor from HIPAASettings."""
        return cls(
            master_key=settings.encryption_key_value(),
            salt=settings.encryption_salt_value(),
            search_salt=settings.search_salt_value(),
            config=config,
        )

    @property
    def enabled(self) -> bool:
        """Whether new values are encrypted."""
        return self.config.encryption.enabled

    def _cipher(self) -> AESGCM:
        if self._aead is None:
            with self._lock:
                if self._aead is None:
                    if not self._master_key:
                        raise ConfigurationError(
                            "HIPAA_ENCRYPTION_KEY environment variable is required for PHI encryption. "
                            "Generate a secure key with: phiguard generate-key",
                            code="ENCRYPTION_KEY_MISSING",
                        )
                    if len(self._master_key) < MIN_ENCRYPTION_KEY_LENGTH:
                        raise ConfigurationError(
                            f"HIPAA_ENCRYPTION_KEY must be at least {MIN_ENCRYPTION_KEY_LENGTH} characters",
                            code="ENCRYPTION_KEY_TOO_SHORT",
                        )
                    self._aead = AESGCM(derive_key(self._master_key, self._salt))
        return self._aead

    def encrypt_field(self, plaintext: Optional[str]) -> Optional[str]:
        """Encrypt to sentinel-prefixed base64 of IV + ciphertext + tag; empty values pass through."""
        if not plaintext or not self.enabled:
            return plaintext

        aead = self._cipher()
        try:
            iv = os.urandom(IV_LENGTH)
            # AESGCM appends the 16-byte tag to the ciphertext
            sealed = aead.encrypt(iv, plaintext.encode("utf-8"), None)
        except (ValueError, TypeError, OverflowError) as e:
            logger.error("phi_encryption_failed", error_type=type(e).__name__)
            raise EncryptionError() from e

        return ENCRYPTED_PREFIX + base64.b64encode(iv + sealed).decode("ascii")

    def decrypt_field(self, value: Optional[str]) -> Optional[str]:
        """
        Decrypt an encrypted value.

        Values without the sentinel are returned as-is so un-migrated
        plaintext keeps reading correctly.

        Args:
            value: The possibly encrypted value

        Returns:
            Decrypted plaintext

        Raises:
            DecryptionError: On malformed input or authentication failure
        """
        if not value or not is_encrypted(value):
            return value

        aead = self._cipher()
        try:
            combined = base64.b64decode(value[len(ENCRYPTED_PREFIX):], validate=True)
            if len(combined) < IV_LENGTH + AUTH_TAG_LENGTH:
                raise ValueError("encrypted value is truncated")
            iv = combined[:IV_LENGTH]
            sealed = combined[IV_LENGTH:]
            return aead.decrypt(iv, sealed, None).decode("utf-8")
        except (InvalidTag, binascii.Error, ValueError, UnicodeDecodeError) as e:
            logger.error("phi_decryption_failed", error_type=type(e).__name__)
            raise DecryptionError() from e

    def encrypt_fields(self, record: R, field_names: Iterable[str]) -> R:
        """Return a copy of ``record`` with the named string fields encrypted."""
        result = dict(record)
        for name in field_names:
            value = result.get(name)
            if isinstance(value, str) and value:
                result[name] = self.encrypt_field(value)
        return result  # type: ignore[return-value]

    def decrypt_fields(self, record: R, field_names: Iterable[str]) -> R:
        """Return a copy of ``record`` with the named encrypted fields decrypted."""
        result = dict(record)
        for name in field_names:
            value = result.get(name)
            if is_encrypted(value):
                result[name] = self.decrypt_field(value)
        return result  # type: ignore[return-value]

    def encrypt_entity(self, entity_type: str, record: R) -> R:
        """Encrypt every registered PHI field of an entity record."""
        return self.encrypt_fields(record, get_phi_fields(entity_type))

    def decrypt_entity(self, entity_type: str, record: R) -> R:
        """Decrypt every registered PHI field of an entity record."""
        return self.decrypt_fields(record, get_phi_fields(entity_type))

    def hash_for_search(self, value: Optional[str]) -> str:
        """
        Hash a value for exact-match lookups over encrypted fields.

        Note: the hash is deterministic (fixed salt), which trades resistance
        to offline guessing for searchability. Only use it for fields that
        need exact-match search.

        Args:
            value: The value to hash

        Returns:
            Hex digest, or an empty string for empty input
        """
        if not value:
            return ""
        normalized = value.strip().lower()
        return derive_key(normalized, self._search_salt).hex()

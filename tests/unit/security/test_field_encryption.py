"""Test PHI field encryption - real AES-256-GCM operations, no mocks."""

import base64

import pytest
from structlog.testing import capture_logs

from phiguard.config.base import ComplianceConfig, EncryptionConfig
from phiguard.core.exceptions import ConfigurationError, DecryptionError
from phiguard.security.encryption import (
    AUTH_TAG_LENGTH,
    ENCRYPTED_PREFIX,
    IV_LENGTH,
    FieldEncryptor,
    generate_encryption_key,
    is_encrypted,
)

from tests.conftest import TEST_ENCRYPTION_KEY


@pytest.mark.hipaa_required
@pytest.mark.phi_encryption
class TestEncryptField:
    """Test single value encryption."""

    @pytest.mark.parametrize(
        "plaintext",
        ["1990-05-15", "555-123-4567", "Penicillin allergy", "Ünïcødé ✓ 日本", "enc:looks-encrypted"],
    )
    def test_round_trip(self, encryptor, plaintext):
        """Decrypting an encrypted value returns the original."""
        ciphertext = encryptor.encrypt_field(plaintext)

        assert ciphertext != plaintext
        assert encryptor.decrypt_field(ciphertext) == plaintext

    def test_wire_format(self, encryptor):
        """Ciphertext is the sentinel plus base64 of IV, ciphertext and tag."""
        ciphertext = encryptor.encrypt_field("hello")

        assert ciphertext.startswith(ENCRYPTED_PREFIX)
        raw = base64.b64decode(ciphertext[len(ENCRYPTED_PREFIX):])
        assert len(raw) == IV_LENGTH + len("hello") + AUTH_TAG_LENGTH

    def test_fresh_iv_per_call(self, encryptor):
        """Encrypting the same value twice yields different ciphertexts."""
        assert encryptor.encrypt_field("same") != encryptor.encrypt_field("same")

    @pytest.mark.parametrize("empty", ["", None])
    def test_empty_passes_through(self, encryptor, empty):
        """Absence of data is not encrypted."""
        assert encryptor.encrypt_field(empty) == empty

    def test_plaintext_decrypt_is_noop(self, encryptor):
        """Un-migrated plaintext reads back unchanged."""
        assert encryptor.decrypt_field("legacy value") == "legacy value"
        assert encryptor.decrypt_field("") == ""

    def test_tampered_ciphertext_fails(self, encryptor):
        """A modified ciphertext fails authentication."""
        ciphertext = encryptor.encrypt_field("Patient has diabetes")
        raw = bytearray(base64.b64decode(ciphertext[len(ENCRYPTED_PREFIX):]))
        raw[-1] ^= 0x01
        tampered = ENCRYPTED_PREFIX + base64.b64encode(bytes(raw)).decode("ascii")

        with pytest.raises(DecryptionError):
            encryptor.decrypt_field(tampered)

    @pytest.mark.parametrize("value", ["enc:not base64!!", "enc:" + base64.b64encode(b"short").decode()])
    def test_malformed_value_fails(self, encryptor, value):
        """Malformed encrypted values are hard failures."""
        with pytest.raises(DecryptionError):
            encryptor.decrypt_field(value)

    def test_wrong_key_fails(self, encryptor):
        """A value encrypted under another key cannot be decrypted."""
        other = FieldEncryptor(master_key="x" * 40, salt="test-deployment-salt")
        ciphertext = other.encrypt_field("secret")

        with pytest.raises(DecryptionError):
            encryptor.decrypt_field(ciphertext)

    def test_decryption_failure_logs_no_plaintext(self, encryptor):
        """Failure logs carry the error type only."""
        with capture_logs() as logs:
            with pytest.raises(DecryptionError):
                encryptor.decrypt_field("enc:AAAA")

        assert logs[0]["event"] == "phi_decryption_failed"
        assert set(logs[0]) == {"event", "log_level", "error_type"}


@pytest.mark.phi_encryption
class TestKeyConfiguration:
    """Test master secret validation."""

    def test_missing_key_fails_on_first_use(self):
        """No key is a configuration error when encryption is attempted."""
        encryptor = FieldEncryptor(master_key=None)

        with pytest.raises(ConfigurationError) as exc_info:
            encryptor.encrypt_field("value")

        assert exc_info.value.code == "ENCRYPTION_KEY_MISSING"

    def test_short_key_rejected(self):
        """Keys under 32 characters are rejected, never used."""
        encryptor = FieldEncryptor(master_key="short-key")

        with pytest.raises(ConfigurationError) as exc_info:
            encryptor.encrypt_field("value")

        assert exc_info.value.code == "ENCRYPTION_KEY_TOO_SHORT"

    def test_from_settings(self, compliant_settings):
        """Encryptors built from settings interoperate with direct ones."""
        from_settings = FieldEncryptor.from_settings(compliant_settings)
        direct = FieldEncryptor(
            master_key=TEST_ENCRYPTION_KEY,
            salt="test-deployment-salt",
            search_salt="test-search-salt",
        )

        assert direct.decrypt_field(from_settings.encrypt_field("x")) == "x"

    def test_generate_encryption_key(self):
        """Generated keys are long enough and unique."""
        first = generate_encryption_key()
        second = generate_encryption_key()

        assert first != second
        assert len(first) >= 32
        assert len(base64.b64decode(first)) == 32

    def test_disabled_encryption_passes_through(self, encryptor):
        """With encryption disabled new values stay plaintext but old ones still decrypt."""
        ciphertext = encryptor.encrypt_field("existing")
        disabled = FieldEncryptor(
            master_key=TEST_ENCRYPTION_KEY,
            salt="test-deployment-salt",
            config=ComplianceConfig(encryption=EncryptionConfig(enabled=False)),
        )

        assert disabled.encrypt_field("new") == "new"
        assert disabled.decrypt_field(ciphertext) == "existing"


@pytest.mark.phi_encryption
class TestRecordEncryption:
    """Test encryption of record subsets."""

    def test_fields_round_trip(self, encryptor):
        """Only named string fields change and the input is not mutated."""
        record = {"id": "p1", "phone": "555-123-4567", "address": "1 Main St", "age": 42}
        original = dict(record)

        encrypted = encryptor.encrypt_fields(record, ["phone", "address", "age", "missing"])

        assert record == original
        assert is_encrypted(encrypted["phone"])
        assert is_encrypted(encrypted["address"])
        assert encrypted["id"] == "p1"
        assert encrypted["age"] == 42
        assert "missing" not in encrypted
        assert encryptor.decrypt_fields(encrypted, ["phone", "address", "age", "missing"]) == record

    def test_entity_uses_registry(self, encryptor):
        """Entity encryption touches registered PHI fields only."""
        record = {"id": "p1", "date_of_birth": "1990-05-15", "blood_type": "O+", "notes": "n/a"}

        encrypted = encryptor.encrypt_entity("Patient", record)

        assert is_encrypted(encrypted["date_of_birth"])
        assert is_encrypted(encrypted["blood_type"])
        assert encrypted["notes"] == "n/a"
        assert encryptor.decrypt_entity("Patient", encrypted) == record

    def test_is_encrypted(self):
        assert is_encrypted("enc:abc")
        assert not is_encrypted("abc")
        assert not is_encrypted(None)
        assert not is_encrypted(123)


@pytest.mark.phi_encryption
class TestHashForSearch:
    """Test deterministic search hashing."""

    def test_deterministic_and_normalized(self, encryptor):
        """Case and surrounding whitespace do not change the digest."""
        digest = encryptor.hash_for_search("Jane.Doe@Example.com")

        assert digest == encryptor.hash_for_search("  jane.doe@example.com ")
        assert int(digest, 16) >= 0

    def test_distinct_values_differ(self, encryptor):
        assert encryptor.hash_for_search("a@example.com") != encryptor.hash_for_search(
            "b@example.com"
        )

    def test_search_salt_changes_digest(self, encryptor):
        other = FieldEncryptor(master_key=TEST_ENCRYPTION_KEY, search_salt="another-salt")

        assert other.hash_for_search("value") != encryptor.hash_for_search("value")

    def test_empty_value(self, encryptor):
        assert encryptor.hash_for_search("") == ""

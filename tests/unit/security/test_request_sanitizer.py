"""Test log and URL sanitization."""

import pytest

from phiguard.security.phi_scrubber import PHIType, RiskLevel
from phiguard.security.request_sanitizer import REDACTED, sanitize_for_logging, scan, validate_url


@pytest.mark.hipaa_required
class TestScan:
    """Test free-text PHI scanning."""

    def test_scan_high_risk(self):
        result = scan("MRN A1234567")

        assert result.has_phi is True
        assert result.phi_types == (PHIType.MRN,)
        assert result.risk_level is RiskLevel.HIGH
        assert "A1234567" not in result.cleaned_text

    def test_scan_clean_text(self):
        result = scan("routine follow-up")

        assert result.has_phi is False
        assert result.risk_level is RiskLevel.NONE
        assert result.cleaned_text == "routine follow-up"


@pytest.mark.hipaa_required
class TestSanitizeForLogging:
    """Test recursive redaction of log payloads."""

    def test_sensitive_keys_replaced_wholesale(self):
        payload = {
            "password": "hunter2",
            "passwordHash": "$2b$12$abc",
            "ssn": "not-even-ssn-shaped",
            "social_security_number": "123456789",
            "Social-Security-Number": "123456789",
        }

        assert set(sanitize_for_logging(payload).values()) == {REDACTED}

    def test_nested_structure_preserved(self):
        payload = {
            "note": "call 555-123-4567",
            "count": 3,
            "tags": ["jane@example.com", "ok"],
            "nested": {"SSN": "123-45-6789", "status": "active"},
        }

        sanitized = sanitize_for_logging(payload)

        assert sanitized["note"] == "call [PHONE_1]"
        assert sanitized["count"] == 3
        assert sanitized["tags"] == ["[EMAIL_1]", "ok"]
        assert sanitized["nested"] == {"SSN": REDACTED, "status": "active"}

    def test_input_not_mutated(self):
        payload = {"password": "hunter2"}

        sanitize_for_logging(payload)

        assert payload == {"password": "hunter2"}

    @pytest.mark.parametrize("value", ["", None, 0, [], {}])
    def test_falsy_values_unchanged(self, value):
        assert sanitize_for_logging(value) == value

    def test_tuples_sanitized(self):
        assert sanitize_for_logging(("a@example.com",)) == ("[EMAIL_1]",)


@pytest.mark.hipaa_required
class TestValidateURL:
    """Test PHI detection in URLs."""

    def test_ssn_in_query_is_invalid(self):
        result = validate_url("https://app.example.com/records?ssn=123-45-6789")

        assert result.valid is False
        assert len(result.issues) == 1
        assert "'ssn'" in result.issues[0]
        assert "SSN" in result.issues[0]
        assert "123-45-6789" not in result.issues[0]

    def test_any_phi_in_query_is_invalid(self):
        result = validate_url("/search?q=jane%40example.com")

        assert result.valid is False
        assert "EMAIL" in result.issues[0]

    def test_clean_url_is_valid(self):
        result = validate_url("https://app.example.com/records?page=2&sort=desc")

        assert result.valid is True
        assert result.issues == []

    def test_high_risk_path_is_invalid(self):
        result = validate_url("/patients/123-45-6789/profile")

        assert result.valid is False
        assert "path" in result.issues[0]

    def test_low_risk_path_is_allowed(self):
        assert validate_url("/bookings/12345").valid is True

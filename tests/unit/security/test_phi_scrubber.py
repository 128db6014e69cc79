"""Test PHI detection and redaction."""

import pytest

from phiguard.security.phi_scrubber import (
    PHIType,
    RiskLevel,
    classify_risk,
    contains_phi,
    detect,
    is_scrubbed,
    rehydrate,
    scrub,
    summarize,
)


@pytest.mark.hipaa_required
class TestScrub:
    """Test replacing PHI with tokens."""

    def test_scrubs_ssn_and_email(self):
        result = scrub("SSN 123-45-6789, contact jane.doe@example.com")

        assert "123-45-6789" not in result.cleaned_text
        assert "jane.doe@example.com" not in result.cleaned_text
        assert "[EMAIL_1]" in result.cleaned_text
        assert PHIType.EMAIL in result.detected_types
        assert result.scrub_count == len(result.mapping)

    def test_repeated_value_gets_one_token(self):
        result = scrub("a@example.com wrote to a@example.com")

        assert result.cleaned_text == "[EMAIL_1] wrote to [EMAIL_1]"
        assert result.scrub_count == 1

    def test_numbering_restarts_per_call(self):
        """Token numbering does not leak between calls."""
        first = scrub("x@example.com")
        second = scrub("y@example.com")

        assert first.cleaned_text == "[EMAIL_1]"
        assert second.cleaned_text == "[EMAIL_1]"

    def test_clean_text_untouched(self):
        result = scrub("Appointment confirmed for the afternoon")

        assert result.cleaned_text == "Appointment confirmed for the afternoon"
        assert result.mapping == {}

    def test_rehydrate_restores_original(self):
        text = "Call 555-123-4567 about Dr. Jane Smith"
        result = scrub(text)

        assert rehydrate(result.cleaned_text, result.mapping) == text

    def test_is_scrubbed(self):
        assert is_scrubbed(scrub("ip 10.0.0.1").cleaned_text)
        assert not is_scrubbed("nothing here")


class TestDetection:
    """Test detection and risk classification."""

    @pytest.mark.parametrize(
        "text,phi_type",
        [
            ("SSN: 123-45-6789", PHIType.SSN),
            ("MRN A1234567", PHIType.MRN),
            ("Dr. Jane Smith", PHIType.NAME),
            ("born 05/15/1990", PHIType.DATE),
            ("email jane@example.com", PHIType.EMAIL),
            ("visit https://example.com/x", PHIType.URL),
            ("from 192.168.1.20", PHIType.IP_ADDRESS),
        ],
    )
    def test_detects_identifier_families(self, text, phi_type):
        assert phi_type in {d.type for d in detect(text)}
        assert contains_phi(text)

    def test_detection_offsets(self):
        text = "ssn 123-45-6789"
        detection = next(d for d in detect(text) if d.type is PHIType.SSN)

        assert text[detection.start_index:detection.end_index] == detection.value

    def test_no_phi(self):
        assert detect("hello world") == []
        assert not contains_phi("hello world")

    def test_summary_has_no_values(self):
        summary = summarize("SSN 123-45-6789")

        assert summary.has_phi is True
        assert PHIType.SSN in summary.phi_types
        assert summary.risk_level is RiskLevel.HIGH
        assert "123-45-6789" not in repr(summary)

    @pytest.mark.parametrize(
        "types,level",
        [
            ([], RiskLevel.NONE),
            ([PHIType.IP_ADDRESS], RiskLevel.LOW),
            ([PHIType.EMAIL, PHIType.URL], RiskLevel.MEDIUM),
            ([PHIType.NAME, PHIType.SSN], RiskLevel.HIGH),
            ([PHIType.HEALTH_PLAN_ID], RiskLevel.HIGH),
        ],
    )
    def test_classify_risk(self, types, level):
        assert classify_risk(types) is level

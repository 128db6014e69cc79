"""Request sanitization for logs and URLs.

PHI must never reach logs or URLs: URLs are logged and cached by
infrastructure outside this layer's control.
"""

from dataclasses import dataclass, field
from typing import Any, List, Tuple
from urllib.parse import parse_qsl, urlsplit

from phiguard.security.phi_scrubber import PHIType, RiskLevel, scrub, summarize

REDACTED = "[REDACTED]"

# Compared after lower-casing and dropping "_" and "-"
SENSITIVE_KEYS = frozenset({"password", "passwordhash", "ssn", "socialsecuritynumber"})


@dataclass(frozen=True)
class PHIScanResult:
    """Classification and redacted copy of a scanned text."""

    has_phi: bool
    phi_types: Tuple[PHIType, ...]
    risk_level: RiskLevel
    cleaned_text: str


@dataclass(frozen=True)
class URLValidationResult:
    """Outcome of checking a URL for PHI."""

    valid: bool
    issues: List[str] = field(default_factory=list)


def scan(text: str) -> PHIScanResult:
    """Inspect free text for PHI and return a redacted copy."""
    summary = summarize(text)
    cleaned = scrub(text).cleaned_text if summary.has_phi else text
    return PHIScanResult(
        has_phi=summary.has_phi,
        phi_types=summary.phi_types,
        risk_level=summary.risk_level,
        cleaned_text=cleaned,
    )


def _is_sensitive_key(key: Any) -> bool:
    if not isinstance(key, str):
        return False
    return key.lower().replace("_", "").replace("-", "") in SENSITIVE_KEYS


def sanitize_for_logging(value: Any) -> Any:
    """Recursively redact PHI from strings, lists and mappings.

    Highly sensitive keys are replaced wholesale regardless of content;
    all other structure is preserved.
    """
    if not value:
        return value
    if isinstance(value, str):
        return scrub(value).cleaned_text
    if isinstance(value, dict):
        return {
            k: REDACTED if _is_sensitive_key(k) else sanitize_for_logging(v)
            for k, v in value.items()
        }
    if isinstance(value, list):
        return [sanitize_for_logging(item) for item in value]
    if isinstance(value, tuple):
        return tuple(sanitize_for_logging(item) for item in value)
    return value


def _type_names(phi_types: Tuple[PHIType, ...]) -> str:
    return ", ".join(t.value for t in phi_types)


def validate_url(url: str) -> URLValidationResult:
    """Check query parameters and path of a URL for PHI.

    Any PHI in a query-parameter value is an issue; in the path only
    high-risk PHI is. Issues name the parameter and PHI types, never values.
    """
    parts = urlsplit(url)
    issues: List[str] = []

    for key, value in parse_qsl(parts.query, keep_blank_values=False):
        result = scan(value)
        if result.has_phi:
            issues.append(
                f"PHI detected in URL parameter '{key}': {_type_names(result.phi_types)}"
            )

    path_result = scan(parts.path)
    if path_result.has_phi and path_result.risk_level is RiskLevel.HIGH:
        issues.append(f"High-risk PHI detected in URL path: {_type_names(path_result.phi_types)}")

    return URLValidationResult(valid=not issues, issues=issues)

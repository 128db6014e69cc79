"""
PHI (Protected Health Information) Scrubber.

PHI detection and redaction based on the HIPAA Safe Harbor identifiers
(45 CFR 164.514(b)(2)). Matches are replaced with numbered tokens such as
``[SSN_1]``; token numbering restarts on every call.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Pattern, Sequence, Tuple


class PHIType(Enum):
    """Safe Harbor identifier families."""

    NAME = "NAME"
    GEOGRAPHIC = "GEOGRAPHIC"
    DATE = "DATE"
    PHONE = "PHONE"
    FAX = "FAX"
    EMAIL = "EMAIL"
    SSN = "SSN"
    MRN = "MRN"
    HEALTH_PLAN_ID = "HEALTH_PLAN_ID"
    ACCOUNT_NUMBER = "ACCOUNT_NUMBER"
    LICENSE_NUMBER = "LICENSE_NUMBER"
    VEHICLE_ID = "VEHICLE_ID"
    DEVICE_ID = "DEVICE_ID"
    URL = "URL"
    IP_ADDRESS = "IP_ADDRESS"
    BIOMETRIC = "BIOMETRIC"
    PHOTO = "PHOTO"
    UNIQUE_ID = "UNIQUE_ID"


class RiskLevel(Enum):
    """Risk classification of detected PHI."""

    NONE = "none"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


HIGH_RISK_TYPES = frozenset({PHIType.SSN, PHIType.MRN, PHIType.HEALTH_PLAN_ID})
MEDIUM_RISK_TYPES = frozenset({PHIType.NAME, PHIType.DATE, PHIType.EMAIL, PHIType.PHONE})

_I = re.IGNORECASE
_MONTHS = (
    "January|February|March|April|May|June|July|August|September|October|November|December"
)
_US_PHONE = r"(?:\+?1[-.\s]?)?\(?([0-9]{3})\)?[-.\s]?([0-9]{3})[-.\s]?([0-9]{4})"

# Order matters: earlier families claim text before later ones see it
PHI_PATTERNS: Tuple[Tuple[PHIType, Tuple[Pattern[str], ...]], ...] = (
    (
        PHIType.NAME,
        (
            re.compile(
                r"\b(?:Dr\.?|Doctor|Mr\.?|Mrs\.?|Ms\.?|Miss|Prof\.?|Professor)\s+"
                r"([A-Z][a-z]+(?:\s+[A-Z][a-z]+)+)\b"
            ),
            re.compile(r"\b(?:patient|client|member)\s+([A-Z][a-z]+(?:\s+[A-Z][a-z]+)*)\b", _I),
        ),
    ),
    (
        PHIType.GEOGRAPHIC,
        (
            re.compile(
                r"\b\d+\s+[A-Za-z\s]+(?:Street|St|Avenue|Ave|Road|Rd|Drive|Dr|Lane|Ln|"
                r"Boulevard|Blvd|Court|Ct|Place|Pl|Way|Circle|Cir|Terrace|Ter|Highway|Hwy|"
                r"Parkway|Pkwy|Suite|Ste|Apt|Apartment|Unit|#)\s*\d*\b",
                _I,
            ),
            re.compile(r"\b\d{5}(?:-\d{4})?\b"),
            re.compile(r"\bP\.?O\.?\s*Box\s*\d+\b", _I),
        ),
    ),
    (
        PHIType.DATE,
        (
            re.compile(r"\b(0?[1-9]|1[0-2])[-/](0?[1-9]|[12]\d|3[01])[-/](\d{2}|\d{4})\b"),
            re.compile(r"\b(\d{4})[-/](0?[1-9]|1[0-2])[-/](0?[1-9]|[12]\d|3[01])\b"),
            re.compile(rf"\b(?:{_MONTHS})\s+\d{{1,2}},?\s+\d{{4}}\b", _I),
            re.compile(rf"\b\d{{1,2}}\s+(?:{_MONTHS})\s+\d{{4}}\b", _I),
        ),
    ),
    (
        PHIType.PHONE,
        (
            re.compile(rf"\b{_US_PHONE}\b"),
            re.compile(rf"\b(?:phone|tel|telephone|cell|mobile)[\s:]*{_US_PHONE}\b", _I),
        ),
    ),
    (
        PHIType.FAX,
        (re.compile(rf"\b(?:fax|facsimile)[\s:]*{_US_PHONE}\b", _I),),
    ),
    (
        PHIType.EMAIL,
        (re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b"),),
    ),
    (
        PHIType.SSN,
        (
            re.compile(r"\b\d{3}-\d{2}-\d{4}\b"),
            re.compile(r"\b(?:SSN|SS#|Social\s*Security)[\s:]*\d{3}[-\s]?\d{2}[-\s]?\d{4}\b", _I),
        ),
    ),
    (
        PHIType.MRN,
        (
            re.compile(r"\b(?:MRN|Medical\s*Record|Patient\s*ID|Record\s*#?)[\s:\-]?([A-Z0-9]{4,})\b", _I),
            re.compile(r"\b(?:chart|case)\s*(?:number|#|no\.?)[\s:]*([A-Z0-9]{4,})\b", _I),
        ),
    ),
    (
        PHIType.HEALTH_PLAN_ID,
        (
            re.compile(
                r"\b(?:member\s*ID|subscriber\s*ID|policy\s*number|insurance\s*ID|group\s*number)"
                r"[\s:\-]?([A-Z0-9]{4,})\b",
                _I,
            ),
            re.compile(r"\b(?:medicare|medicaid)\s*(?:number|ID|#)[\s:\-]?([A-Z0-9]{4,})\b", _I),
        ),
    ),
    (
        PHIType.ACCOUNT_NUMBER,
        (
            re.compile(r"\b(?:account|acct)\s*(?:number|#|no\.?)[\s:\-]?([A-Z0-9]{6,})\b", _I),
            re.compile(r"\b(?:billing|payment)\s*(?:account|ID)[\s:\-]?([A-Z0-9]{6,})\b", _I),
        ),
    ),
    (
        PHIType.LICENSE_NUMBER,
        (
            re.compile(
                r"\b(?:license|licence|cert|certificate)\s*(?:number|#|no\.?)[\s:\-]?([A-Z0-9]{4,})\b",
                _I,
            ),
            re.compile(r"\b(?:NPI|DEA)\s*(?:number|#)?[\s:\-]?(\d{10}|\d{9}[A-Z]\d{7})\b", _I),
        ),
    ),
    (
        PHIType.VEHICLE_ID,
        (
            re.compile(r"\b(?:VIN|vehicle\s*identification)[\s:\-]?([A-HJ-NPR-Z0-9]{17})\b", _I),
            re.compile(r"\b(?:license\s*plate|plate\s*number)[\s:\-]?([A-Z0-9]{2,8})\b", _I),
        ),
    ),
    (
        PHIType.DEVICE_ID,
        (
            re.compile(r"\b(?:device|serial|IMEI|MAC)[\s:\-]?(?:number|ID|#)?[\s:\-]?([A-Z0-9]{8,})\b", _I),
            re.compile(r"\b(?:[0-9A-Fa-f]{2}[:-]){5}[0-9A-Fa-f]{2}\b"),
        ),
    ),
    (
        PHIType.URL,
        (
            re.compile(r"\bhttps?://[^\s<>\"{}|\\^`\[\]]+", _I),
            re.compile(r"\bwww\.[^\s<>\"{}|\\^`\[\]]+", _I),
        ),
    ),
    (
        PHIType.IP_ADDRESS,
        (
            re.compile(
                r"\b(?:(?:25[0-5]|2[0-4][0-9]|[01]?[0-9][0-9]?)\.){3}"
                r"(?:25[0-5]|2[0-4][0-9]|[01]?[0-9][0-9]?)\b"
            ),
            re.compile(r"\b(?:[0-9a-fA-F]{1,4}:){7}[0-9a-fA-F]{1,4}\b"),
        ),
    ),
    (
        PHIType.UNIQUE_ID,
        (re.compile(r"\b(?:ID|identifier|ref|reference)[\s:\-#]?([A-Z0-9]{8,})\b", _I),),
    ),
)

_TOKEN_PATTERN = re.compile(
    r"\[(?:" + "|".join(t.value for t in PHIType) + r")_\d+\]"
)


@dataclass
class PHIDetection:
    """A single PHI match in the original text."""

    type: PHIType
    value: str
    start_index: int
    end_index: int
    token: str


@dataclass
class ScrubResult:
    """Output of `scrub`. The mapping holds original values; never log it."""

    cleaned_text: str
    mapping: Dict[str, str] = field(default_factory=dict)
    detected_types: List[PHIType] = field(default_factory=list)
    scrub_count: int = 0


@dataclass(frozen=True)
class PHISummary:
    """Log-safe summary of PHI in a text (no values)."""

    has_phi: bool
    phi_types: Tuple[PHIType, ...]
    phi_count: int
    risk_level: RiskLevel


def scrub(text: str) -> ScrubResult:
    """Replace PHI in ``text`` with tokens.

    Args:
        text: Text that may contain PHI

    Returns:
        Cleaned text plus the token mapping, detected types and count
    """
    counters: Dict[PHIType, int] = {}
    mapping: Dict[str, str] = {}
    detected: List[PHIType] = []

    def _replacer(phi_type: PHIType):
        def replace(match: "re.Match[str]") -> str:
            value = match.group(0)
            # Already a token from an earlier pattern
            if value.startswith("[") and value.endswith("]"):
                return value
            if value not in mapping:
                counters[phi_type] = counters.get(phi_type, 0) + 1
                mapping[value] = f"[{phi_type.value}_{counters[phi_type]}]"
                if phi_type not in detected:
                    detected.append(phi_type)
            return mapping[value]

        return replace

    cleaned = text
    for phi_type, patterns in PHI_PATTERNS:
        for pattern in patterns:
            cleaned = pattern.sub(_replacer(phi_type), cleaned)

    return ScrubResult(
        cleaned_text=cleaned,
        mapping=mapping,
        detected_types=detected,
        scrub_count=len(mapping),
    )


def detect(text: str) -> List[PHIDetection]:
    """List every PHI match in ``text`` without modifying it."""
    detections: List[PHIDetection] = []
    for phi_type, patterns in PHI_PATTERNS:
        for pattern in patterns:
            for match in pattern.finditer(text):
                detections.append(
                    PHIDetection(
                        type=phi_type,
                        value=match.group(0),
                        start_index=match.start(),
                        end_index=match.end(),
                        token=f"[{phi_type.value}_{len(detections) + 1}]",
                    )
                )
    return detections


def contains_phi(text: str) -> bool:
    """Check if text contains any PHI."""
    return any(
        pattern.search(text) for _, patterns in PHI_PATTERNS for pattern in patterns
    )


def is_scrubbed(text: str) -> bool:
    """Check if text carries scrubber tokens."""
    return bool(_TOKEN_PATTERN.search(text))


def rehydrate(scrubbed_text: str, mapping: Dict[str, str]) -> str:
    """Restore original values into scrubbed text.

    WARNING: only use in secure contexts with proper authorization.
    """
    result = scrubbed_text
    for original, token in mapping.items():
        result = result.replace(token, original)
    return result


def classify_risk(phi_types: Sequence[PHIType]) -> RiskLevel:
    """Classify detected PHI types into a risk level."""
    if not phi_types:
        return RiskLevel.NONE
    if any(t in HIGH_RISK_TYPES for t in phi_types):
        return RiskLevel.HIGH
    if any(t in MEDIUM_RISK_TYPES for t in phi_types):
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def summarize(text: str) -> PHISummary:
    """Summarize PHI in text for audit logging (no values included)."""
    detections = detect(text)
    phi_types: List[PHIType] = []
    for d in detections:
        if d.type not in phi_types:
            phi_types.append(d.type)
    return PHISummary(
        has_phi=bool(detections),
        phi_types=tuple(phi_types),
        phi_count=len(detections),
        risk_level=classify_risk(phi_types),
    )

"""PHI field registry.

Fields considered Protected Health Information, per entity type. The
registry is versioned with the schema it describes and is used by the
encryption engine and audit logging to decide which fields to touch.
"""

from types import MappingProxyType
from typing import Mapping, Tuple

PHI_FIELDS_VERSION = "1"

PHI_FIELDS: Mapping[str, Tuple[str, ...]] = MappingProxyType(
    {
        "Patient": (
            "date_of_birth",
            "phone",
            "address",
            "emergency_contact",
            "blood_type",
            "allergies",
            "conditions",
            "medications",
        ),
        # Email and name identify a person in a healthcare context
        "User": (
            "email",
            "name",
        ),
        "Application": (
            "email",
            "phone",
            "first_name",
            "last_name",
            "full_name",
            "date_of_birth",
            "npi_number",
            "license_number",
            "dea_number",
            "ssn",
        ),
        "Caregiver": (
            "first_name",
            "last_name",
            "email",
            "phone",
            "license_number",
            "bio",
        ),
        "Provider": (
            "full_name",
            "email",
            "phone",
            "npi_number",
            "license_number",
            "bio",
        ),
        "Booking": (
            "special_needs",
            "notes",
            "requirements",
        ),
    }
)

ENTITY_TYPES: Tuple[str, ...] = tuple(PHI_FIELDS)


def is_phi_field(entity_type: str, field_name: str) -> bool:
    """Check if a field is considered PHI for the entity type."""
    return field_name in PHI_FIELDS.get(entity_type, ())


def get_phi_fields(entity_type: str) -> Tuple[str, ...]:
    """Get all PHI fields for an entity type (empty for unknown types)."""
    return PHI_FIELDS.get(entity_type, ())

"""Configuration module for PHI Guard."""

from phiguard.config.base import ComplianceConfig
from phiguard.config.compliance import ComplianceStatus, check_compliance
from phiguard.config.loader import get_compliance_config, get_settings, resolve
from phiguard.config.phi_fields import PHI_FIELDS, get_phi_fields, is_phi_field
from phiguard.config.settings import HIPAASettings

__all__ = [
    "ComplianceConfig",
    "ComplianceStatus",
    "HIPAASettings",
    "PHI_FIELDS",
    "check_compliance",
    "get_compliance_config",
    "get_phi_fields",
    "get_settings",
    "is_phi_field",
    "resolve",
]

"""Middleware module for PHI Guard."""

from phiguard.middleware.context import HIPAAContext, build_context, get_client_ip, record_api_access
from phiguard.middleware.hipaa_pipeline import (
    HIPAAComplianceMiddleware,
    HIPAAPipeline,
    RequestInterceptor,
)
from phiguard.middleware.security_headers import apply_security_headers, get_hipaa_security_headers
from phiguard.middleware.session import (
    SessionRecord,
    SessionState,
    SessionTimeoutPolicy,
    SessionValidation,
    validate_session,
)

__all__ = [
    "HIPAAComplianceMiddleware",
    "HIPAAContext",
    "HIPAAPipeline",
    "RequestInterceptor",
    "SessionRecord",
    "SessionState",
    "SessionTimeoutPolicy",
    "SessionValidation",
    "apply_security_headers",
    "build_context",
    "get_client_ip",
    "get_hipaa_security_headers",
    "record_api_access",
    "validate_session",
]

"""API routers for PHI Guard."""

from phiguard.api.compliance_status import router as compliance_status_router

__all__ = ["compliance_status_router"]

"""
Audit module for PHI Guard.

Append-only recording of every PHI access, with a structured-log fallback
and read-only history and reporting over the durable store.
"""

from phiguard.audit.audit_reports import PHIAccessReportGenerator
from phiguard.audit.models import (
    Actor,
    AuditRecord,
    DateRange,
    HistoryOptions,
    PHIAccessLogEntry,
    PHIAccessReason,
    PHIAccessReport,
    PHIAccessType,
)
from phiguard.audit.phi_access_log import PHIAccessLogger
from phiguard.audit.stores import AuditStore, DatabaseAuditStore, LogAuditStore, create_audit_store

__all__ = [
    "Actor",
    "AuditRecord",
    "AuditStore",
    "DatabaseAuditStore",
    "DateRange",
    "HistoryOptions",
    "LogAuditStore",
    "PHIAccessLogEntry",
    "PHIAccessLogger",
    "PHIAccessReason",
    "PHIAccessReport",
    "PHIAccessReportGenerator",
    "PHIAccessType",
    "create_audit_store",
]

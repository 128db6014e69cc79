"""Logging configuration for PHI Guard."""

import logging
import sys
from typing import Any, MutableMapping, Optional

import structlog
from structlog.stdlib import BoundLogger, LoggerFactory

from phiguard.config.base import ComplianceConfig
from phiguard.config.settings import HIPAASettings

# Keys that carry log plumbing, never request or patient data
_PLUMBING_KEYS = frozenset({"event", "level", "logger", "timestamp", "exc_info"})


def scrub_phi_processor(
    _logger: Any, _method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """Redact PHI-shaped values from a structlog event before rendering.

    Fallback audit records (tagged ``hipaa_log``) hold identifiers and field
    names only and are passed through untouched.
    """
    if event_dict.get("hipaa_log"):
        return event_dict

    from phiguard.security.request_sanitizer import (  # pylint: disable=import-outside-toplevel
        sanitize_for_logging,
    )

    for key, value in list(event_dict.items()):
        if key in _PLUMBING_KEYS:
            continue
        event_dict[key] = sanitize_for_logging(value)
    return event_dict


def setup_logging(
    settings: Optional[HIPAASettings] = None,
    config: Optional[ComplianceConfig] = None,
) -> None:
    """Configure structured logging for the application."""
    settings = settings or HIPAASettings()
    config = config or ComplianceConfig()

    # Configure standard library logging
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
    )

    processors: list = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]
    if config.data_handling.auto_scrub_logs:
        processors.append(scrub_phi_processor)
    processors.append(render_processor(settings))

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=LoggerFactory(),
        wrapper_class=BoundLogger,
        cache_logger_on_first_use=True,
    )


def render_processor(settings: HIPAASettings) -> Any:
    """Choose renderer based on environment."""
    if settings.log_format == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer()


def get_logger(name: str) -> BoundLogger:
    """Get a configured logger instance."""
    bound_logger: BoundLogger = structlog.get_logger(name)
    return bound_logger

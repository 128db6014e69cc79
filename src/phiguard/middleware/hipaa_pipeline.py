"""HIPAA request pipeline.

An ordered chain of request interceptors wraps each PHI-handling endpoint:

    security headers -> URL validation -> context -> failure containment -> handler

The security headers interceptor is outermost so that every response,
including rejections and contained failures, leaves hardened.
"""

from abc import ABC, abstractmethod
from typing import Awaitable, Callable, List, Optional, Sequence

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from phiguard.config.base import ComplianceConfig
from phiguard.middleware.context import (
    Authenticator,
    HIPAAContext,
    build_context,
    state_user_authenticator,
)
from phiguard.middleware.security_headers import apply_security_headers
from phiguard.security.request_sanitizer import validate_url
from phiguard.utils.logging import get_logger

logger = get_logger(__name__)

CallNext = Callable[[Request], Awaitable[Response]]
Handler = Callable[[Request, HIPAAContext], Awaitable[Response]]

PHI_IN_URL_MESSAGE = "Request rejected: PHI should not be included in URL parameters"
INTERNAL_ERROR_MESSAGE = "Internal server error"


class RequestInterceptor(ABC):
    """One step of the request pipeline."""

    @abstractmethod
    async def intercept(self, request: Request, call_next: CallNext) -> Response:
        """Handle the request, delegating to ``call_next`` to continue the chain."""


class SecurityHeadersInterceptor(RequestInterceptor):
    """Adds hardening headers to every response."""

    async def intercept(self, request: Request, call_next: CallNext) -> Response:
        response = await call_next(request)
        apply_security_headers(response.headers)
        return response


class URLValidationInterceptor(RequestInterceptor):
    """Rejects requests carrying PHI in the URL."""

    def __init__(self, config: ComplianceConfig):
        self.config = config

    async def intercept(self, request: Request, call_next: CallNext) -> Response:
        result = validate_url(str(request.url))
        if not result.valid:
            if self.config.data_handling.prevent_phi_in_urls:
                logger.warning(
                    "phi_in_url_rejected",
                    path=request.url.path,
                    method=request.method,
                    issues=result.issues,
                )
                return JSONResponse(status_code=400, content={"error": PHI_IN_URL_MESSAGE})
            logger.warning(
                "phi_in_url_detected",
                path=request.url.path,
                method=request.method,
                issues=result.issues,
            )
        return await call_next(request)


class ContextInterceptor(RequestInterceptor):
    """Builds the HIPAA context and stores it on ``request.state``."""

    def __init__(self, authenticator: Authenticator = state_user_authenticator):
        self.authenticator = authenticator

    async def intercept(self, request: Request, call_next: CallNext) -> Response:
        request.state.hipaa_context = build_context(request, self.authenticator)
        return await call_next(request)


class FailureContainmentInterceptor(RequestInterceptor):
    """Converts handler exceptions into a generic 500 response."""

    async def intercept(self, request: Request, call_next: CallNext) -> Response:
        try:
            return await call_next(request)
        except Exception as e:
            context = getattr(request.state, "hipaa_context", None)
            logger.exception(
                "hipaa_request_failed",
                path=request.url.path,
                method=request.method,
                actor_id=context.actor_id if context else None,
                error_type=type(e).__name__,
            )
            return JSONResponse(status_code=500, content={"error": INTERNAL_ERROR_MESSAGE})


def default_interceptors(
    config: ComplianceConfig,
    authenticator: Authenticator = state_user_authenticator,
) -> List[RequestInterceptor]:
    """The standard chain, outermost first."""
    return [
        SecurityHeadersInterceptor(),
        URLValidationInterceptor(config),
        ContextInterceptor(authenticator),
        FailureContainmentInterceptor(),
    ]


class HIPAAPipeline:
    """Runs a handler through an ordered interceptor chain."""

    def __init__(
        self,
        config: ComplianceConfig,
        interceptors: Optional[Sequence[RequestInterceptor]] = None,
        authenticator: Authenticator = state_user_authenticator,
    ):
        self.config = config
        self.interceptors = list(
            interceptors if interceptors is not None else default_interceptors(config, authenticator)
        )

    async def run(self, request: Request, handler: Handler) -> Response:
        """Run ``handler`` for ``request`` through the chain."""

        async def innermost(req: Request) -> Response:
            context = getattr(req.state, "hipaa_context", None) or HIPAAContext()
            return await handler(req, context)

        call_next: CallNext = innermost
        for interceptor in reversed(self.interceptors):
            call_next = _bind(interceptor, call_next)
        return await call_next(request)

    def endpoint(self, handler: Handler) -> Callable[[Request], Awaitable[Response]]:
        """Wrap a handler as a Starlette endpoint."""

        async def wrapped(request: Request) -> Response:
            return await self.run(request, handler)

        wrapped.__name__ = getattr(handler, "__name__", "hipaa_endpoint")
        return wrapped


def _bind(interceptor: RequestInterceptor, call_next: CallNext) -> CallNext:
    async def step(request: Request) -> Response:
        return await interceptor.intercept(request, call_next)

    return step


class HIPAAComplianceMiddleware(BaseHTTPMiddleware):
    """Applies the HIPAA pipeline to every request of an application."""

    def __init__(
        self,
        app: ASGIApp,
        config: ComplianceConfig,
        authenticator: Authenticator = state_user_authenticator,
    ) -> None:
        super().__init__(app)
        self.pipeline = HIPAAPipeline(config, authenticator=authenticator)

    async def dispatch(self, request: Request, call_next: CallNext) -> Response:
        async def handler(req: Request, _context: HIPAAContext) -> Response:
            return await call_next(req)

        return await self.pipeline.run(request, handler)

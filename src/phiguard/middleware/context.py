"""Per-request HIPAA context.

Actor identity comes from an upstream authenticator this package does not
own; the default one reads ``request.state.user`` when an auth middleware
has set it.
"""

from dataclasses import dataclass
from typing import Any, Callable, Optional, Sequence

from starlette.requests import Request

from phiguard.audit.models import Actor, PHIAccessReason
from phiguard.audit.phi_access_log import PHIAccessLogger

ANONYMOUS = "anonymous"
UNKNOWN = "unknown"
SESSION_COOKIE = "session_id"

Authenticator = Callable[[Request], Optional[Actor]]


@dataclass(frozen=True)
class HIPAAContext:
    """Who is making the request and from where."""

    actor_id: str = ANONYMOUS
    actor_email: Optional[str] = None
    actor_role: Optional[str] = None
    session_id: Optional[str] = None
    ip_address: str = UNKNOWN
    user_agent: str = UNKNOWN

    @property
    def actor(self) -> Actor:
        return Actor(id=self.actor_id, email=self.actor_email, role=self.actor_role)


def get_client_ip(request: Request) -> str:
    """Client IP: first forwarded-for entry, else real-IP header, else unknown."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()
    return UNKNOWN


def _user_attr(user: Any, name: str) -> Any:
    if isinstance(user, dict):
        return user.get(name)
    return getattr(user, name, None)


def state_user_authenticator(request: Request) -> Optional[Actor]:
    """Read the actor from ``request.state.user`` (dict or object)."""
    user = getattr(request.state, "user", None)
    if user is None:
        return None
    user_id = _user_attr(user, "id")
    if user_id is None:
        return None
    role = _user_attr(user, "role")
    return Actor(
        id=str(user_id),
        email=_user_attr(user, "email"),
        role=getattr(role, "value", role),
    )


def build_context(
    request: Request, authenticator: Authenticator = state_user_authenticator
) -> HIPAAContext:
    """Construct the HIPAA context for a request."""
    actor = authenticator(request)
    return HIPAAContext(
        actor_id=actor.id if actor else ANONYMOUS,
        actor_email=actor.email if actor else None,
        actor_role=actor.role if actor else None,
        session_id=request.cookies.get(SESSION_COOKIE),
        ip_address=get_client_ip(request),
        user_agent=request.headers.get("user-agent") or UNKNOWN,
    )


async def record_api_access(
    phi_logger: PHIAccessLogger,
    context: HIPAAContext,
    entity_type: str,
    entity_id: str,
    fields: Sequence[str],
) -> None:
    """Record PHI read through an API endpoint."""
    await phi_logger.record_view(
        context.actor,
        entity_type,
        entity_id,
        fields,
        PHIAccessReason.HEALTHCARE_OPS,
        ip_address=context.ip_address,
        user_agent=context.user_agent,
        session_id=context.session_id,
    )

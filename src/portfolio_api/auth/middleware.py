"""
portfolio_api.auth.middleware

Request gatekeeping stages.

Responsibilities:
- `AuthenticationMiddleware`: decode the gateway identity header and attach a
  `Principal` or `ANONYMOUS` to the request. Never rejects.
- `AuthorizationMiddleware`: resolve the route policy, then either pass the
  request through or deny it (audit first, then respond).
"""

from __future__ import annotations

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from portfolio_api.auth.policy import PolicyTable
from portfolio_api.auth.principal import ANONYMOUS, Anonymous, Identity, Principal, parse_principal
from portfolio_api.errors import ErrorCode, write_error
from portfolio_api.observability.audit import (
    AuditSink,
    AuthorizationFailureEvent,
    DenialReason,
)
from portfolio_api.observability.logging import get_logger

log = get_logger(__name__)

IDENTITY_STATE_KEY = "identity"


def request_identity(request: Request) -> Identity:
    # Requests that bypassed the authentication stage are anonymous.
    return getattr(request.state, IDENTITY_STATE_KEY, ANONYMOUS)


class AuthenticationMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: ASGIApp, *, header_name: str) -> None:
        super().__init__(app)
        self._header_name = header_name.lower()

    async def dispatch(self, request: Request, call_next) -> Response:
        identity = parse_principal(request.headers.get(self._header_name))
        setattr(request.state, IDENTITY_STATE_KEY, identity)
        return await call_next(request)


class AuthorizationMiddleware(BaseHTTPMiddleware):
    """
    Allow path: one policy lookup and one role comparison, no I/O.
    Deny path: exactly one audit event per denied request, recorded before the
    error response is produced.
    """

    def __init__(self, app: ASGIApp, *, policies: PolicyTable, audit_sink: AuditSink) -> None:
        super().__init__(app)
        self._policies = policies
        self._audit_sink = audit_sink

    async def dispatch(self, request: Request, call_next) -> Response:
        policy = self._policies.resolve(request.url.path)
        if policy.required_role is None:
            return await call_next(request)

        identity = request_identity(request)
        if isinstance(identity, Anonymous):
            return self._deny(request, identity, DenialReason.not_authenticated)
        if not identity.has_role(policy.required_role):
            return self._deny(request, identity, DenialReason.insufficient_role)
        return await call_next(request)

    def _deny(self, request: Request, identity: Identity, reason: DenialReason) -> Response:
        route = request.url.path
        event = AuthorizationFailureEvent(
            actor_id=identity.user_id,
            route=route,
            method=request.method,
            reason=reason,
        )
        log.warning(
            "authorization_denied",
            actor_id=event.actor_id,
            route=route,
            method=request.method,
            reason=reason.value,
            roles=sorted(identity.roles) if isinstance(identity, Principal) else [],
        )
        try:
            self._audit_sink.record(event)
        except Exception:
            # The denial stands even if auditing is broken.
            log.warning("audit_record_failed", reason=reason.value, exc_info=True)

        if reason is DenialReason.not_authenticated:
            return write_error(ErrorCode.auth_required)
        return write_error(ErrorCode.auth_forbidden)


# --- Module Notes -----------------------------------------------------------
# Registration order matters: the app factory adds authorization first and
# authentication second so that authentication runs first on the way in.

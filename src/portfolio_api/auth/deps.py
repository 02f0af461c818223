"""
portfolio_api.auth.deps

FastAPI dependency for handlers that need the caller's identity.

Route-level role enforcement happens in `AuthorizationMiddleware`; this
dependency only exposes what the authentication stage attached.
"""

from __future__ import annotations

from fastapi import Request

from portfolio_api.auth.middleware import request_identity
from portfolio_api.auth.principal import Anonymous, Principal
from portfolio_api.errors import ApiException, ErrorCode


def get_principal(request: Request) -> Principal:
    # Authenticated, role-agnostic endpoints.
    identity = request_identity(request)
    if isinstance(identity, Anonymous):
        raise ApiException(ErrorCode.auth_required)
    return identity

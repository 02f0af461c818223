"""
portfolio_api.api.routers.me

Returns the caller's own identity. Open to any authenticated caller regardless of role.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from portfolio_api.api.deps import settings_dep
from portfolio_api.auth.deps import get_principal
from portfolio_api.auth.principal import Principal
from portfolio_api.settings import Settings

router = APIRouter(prefix="/api/me", tags=["auth"])


@router.get("")
async def whoami(
    principal: Principal = Depends(get_principal),
    settings: Settings = Depends(settings_dep),
) -> dict[str, Any]:
    return {
        "identityProvider": principal.identity_provider,
        "userId": principal.user_id,
        "userDetails": principal.display_name,
        "userRoles": sorted(principal.roles),
        "isAdmin": principal.has_role(settings.admin_role),
    }

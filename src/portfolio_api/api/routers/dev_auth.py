"""
portfolio_api.api.routers.dev_auth

Local development helper: builds an identity header value the way the platform
gateway would, so the API can be exercised without the gateway in front of it.
Disabled in `prod`.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import Field

from portfolio_api.api.deps import settings_dep
from portfolio_api.auth.principal import Principal, encode_principal
from portfolio_api.errors import ApiException, ErrorCode
from portfolio_api.schemas import CamelModel
from portfolio_api.settings import Settings

router = APIRouter(prefix="/api/dev", tags=["dev"])


class DevPrincipalRequest(CamelModel):
    user_id: str = Field(min_length=1, max_length=256)
    user_details: str = ""
    roles: list[str] = Field(default_factory=lambda: ["authenticated"])
    identity_provider: str = "dev"


class DevPrincipalResponse(CamelModel):
    header: str
    value: str


@router.post("/principal", response_model=DevPrincipalResponse)
async def mint_dev_principal(
    body: DevPrincipalRequest,
    settings: Settings = Depends(settings_dep),
) -> DevPrincipalResponse:
    if settings.env == "prod":
        raise ApiException(ErrorCode.resource_not_found)

    principal = Principal(
        identity_provider=body.identity_provider,
        user_id=body.user_id,
        display_name=body.user_details,
        roles=frozenset(r.lower() for r in body.roles),
    )
    return DevPrincipalResponse(header=settings.principal_header, value=encode_principal(principal))

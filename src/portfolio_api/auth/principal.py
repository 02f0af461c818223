"""
portfolio_api.auth.principal

Caller identity as asserted by the platform gateway.

Responsibilities:
- Define the authenticated identity type (`Principal`) and the `Anonymous` marker.
- Decode the gateway's base64 JSON identity header into one of the two.
- Encode a principal back into a header value (dev helper and tests).

The header crosses a trust boundary, so decoding never raises: anything that is
not a well-formed assertion is treated exactly like a missing header.
"""

from __future__ import annotations

import base64
import binascii
import json
from dataclasses import dataclass
from typing import Any, Final

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator


@dataclass(frozen=True, slots=True)
class Claim:
    type: str
    value: str


@dataclass(frozen=True, slots=True)
class Principal:
    """
    Authenticated caller identity for a single request.
    """

    identity_provider: str
    user_id: str
    display_name: str
    # Stored lower-cased; membership checks are case-insensitive.
    roles: frozenset[str]
    claims: tuple[Claim, ...] = ()

    def has_role(self, role: str) -> bool:
        return role.lower() in self.roles

    @property
    def is_admin(self) -> bool:
        return self.has_role("admin")


@dataclass(frozen=True, slots=True)
class Anonymous:
    """No usable identity was presented."""

    user_id: str = "anonymous"


ANONYMOUS: Final = Anonymous()

Identity = Principal | Anonymous


class _ClaimPayload(BaseModel):
    typ: str
    val: str


class _PrincipalPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    identity_provider: str = Field(alias="identityProvider")
    user_id: str = Field(alias="userId")
    user_details: str = Field(default="", alias="userDetails")
    user_roles: list[Any] = Field(alias="userRoles")
    claims: list[Any] = Field(default_factory=list)

    @field_validator("user_details", mode="before")
    @classmethod
    def _null_details(cls, v: Any) -> Any:
        return "" if v is None else v


def parse_principal(raw: str | None) -> Identity:
    if not raw or not raw.strip():
        return ANONYMOUS

    try:
        decoded = base64.b64decode(raw.strip(), validate=True)
        data = json.loads(decoded.decode("utf-8"))
    except (binascii.Error, ValueError, RecursionError):
        # ValueError covers UnicodeDecodeError and json.JSONDecodeError; deeply
        # nested arrays or objects exhaust the decoder's recursion limit.
        return ANONYMOUS

    if not isinstance(data, dict):
        return ANONYMOUS

    try:
        payload = _PrincipalPayload.model_validate(data)
    except ValidationError:
        return ANONYMOUS

    if not payload.user_id.strip():
        return ANONYMOUS

    # Unknown or non-string roles are dropped rather than rejected.
    roles = frozenset(r.lower() for r in payload.user_roles if isinstance(r, str) and r)
    claims = tuple(_claims(payload.claims))
    return Principal(
        identity_provider=payload.identity_provider,
        user_id=payload.user_id,
        display_name=payload.user_details,
        roles=roles,
        claims=claims,
    )


def _claims(items: list[Any]):
    for item in items:
        try:
            c = _ClaimPayload.model_validate(item)
        except ValidationError:
            continue
        yield Claim(type=c.typ, value=c.val)


def encode_principal(principal: Principal) -> str:
    payload = {
        "identityProvider": principal.identity_provider,
        "userId": principal.user_id,
        "userDetails": principal.display_name,
        "userRoles": sorted(principal.roles),
        "claims": [{"typ": c.type, "val": c.value} for c in principal.claims],
    }
    return base64.b64encode(json.dumps(payload).encode("utf-8")).decode("ascii")


# --- Module Notes -----------------------------------------------------------
# Principals are never persisted; the audit trail only stores `user_id`.

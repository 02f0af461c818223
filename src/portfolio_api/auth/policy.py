"""
portfolio_api.auth.policy

Route policy table.

Responsibilities:
- Map route prefixes to a required role (or none).
- Resolve exactly one policy per request path (longest matching prefix wins).
- Deny by default under administrative prefixes when no explicit rule matches.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass


def _normalize(path: str) -> str:
    # Case-insensitive, trailing-slash-insensitive comparison.
    path = "/" + path.strip().strip("/").lower()
    return path


def _under(path: str, prefix: str) -> bool:
    # Segment-aware: "/api/manage" covers "/api/manage/x" but not "/api/managers".
    return prefix == "/" or path == prefix or path.startswith(prefix + "/")


@dataclass(frozen=True, slots=True)
class RoutePolicy:
    """One row of the policy table."""

    prefix: str
    required_role: str | None = None

    @property
    def is_public(self) -> bool:
        return self.required_role is None


@dataclass(frozen=True, slots=True)
class PolicyTable:
    """
    Immutable route policy table, built once at startup.

    Rules are matched by longest prefix. A path under one of `admin_prefixes`
    that no rule covers resolves to a policy requiring `admin_role`; any other
    unmatched path is public.
    """

    rules: tuple[RoutePolicy, ...]
    admin_prefixes: tuple[str, ...]
    admin_role: str = "admin"

    @classmethod
    def build(
        cls,
        rules: Iterable[RoutePolicy],
        *,
        admin_prefixes: Iterable[str],
        admin_role: str = "admin",
    ) -> PolicyTable:
        normalized = tuple(
            RoutePolicy(prefix=_normalize(r.prefix), required_role=r.required_role) for r in rules
        )
        prefixes = [r.prefix for r in normalized]
        if len(set(prefixes)) != len(prefixes):
            raise ValueError("duplicate route policy prefix")
        return cls(
            # Longest first so the first hit is the most specific rule.
            rules=tuple(sorted(normalized, key=lambda r: len(r.prefix), reverse=True)),
            admin_prefixes=tuple(_normalize(p) for p in admin_prefixes),
            admin_role=admin_role,
        )

    def resolve(self, path: str) -> RoutePolicy:
        p = _normalize(path)
        rule = next((r for r in self.rules if _under(p, r.prefix)), None)
        admin = max(
            (prefix for prefix in self.admin_prefixes if _under(p, prefix)),
            key=len,
            default=None,
        )
        # A broader rule (e.g. "/api") never opens up an administrative subtree.
        if admin is not None and (rule is None or len(rule.prefix) < len(admin)):
            return RoutePolicy(prefix=admin, required_role=self.admin_role)
        if rule is not None:
            return rule
        return RoutePolicy(prefix="/", required_role=None)


def default_policy_table(
    *,
    admin_prefixes: Iterable[str],
    public_prefixes: Iterable[str],
    admin_role: str,
) -> PolicyTable:
    admin_prefixes = tuple(admin_prefixes)
    rules = [RoutePolicy(prefix=p, required_role=admin_role) for p in admin_prefixes]
    rules += [RoutePolicy(prefix=p, required_role=None) for p in public_prefixes]
    return PolicyTable.build(rules, admin_prefixes=admin_prefixes, admin_role=admin_role)


# --- Module Notes -----------------------------------------------------------
# The table is passed into the authorization middleware explicitly; tests build
# their own tables instead of patching module state.

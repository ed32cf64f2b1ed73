"""Route gating policy.

`decide` is a pure function of (policy, session). The CLI calls `resolve`
before every command, so a session cleared mid-run by a 401 is honored on
the next navigation.
"""

from __future__ import annotations

from enum import Enum

from core.domain.models import RoutePolicy, Session


class RouteDecision(str, Enum):
    RENDER = "render"
    REDIRECT_TO_LOGIN = "redirect_to_login"
    REDIRECT_TO_RESTRICTED_HOME = "redirect_to_restricted_home"


LOGIN_PATH = "/admin/login"
RESTRICTED_HOME_PATH = "/add-property"
FALLBACK_PATH = "/dashboard"

_PUBLIC = RoutePolicy(requires_session=False)
_AGENTS_ALLOWED = RoutePolicy(requires_session=True, allow_restricted_agent=True)
_ADMINS_ONLY = RoutePolicy(requires_session=True, allow_restricted_agent=False)

ROUTE_POLICIES: dict[str, RoutePolicy] = {
    LOGIN_PATH: _PUBLIC,
    "/dashboard": _ADMINS_ONLY,
    "/add-property": _AGENTS_ALLOWED,
    "/lead-monitoring": _AGENTS_ALLOWED,
    "/add-category": _ADMINS_ONLY,
    "/add-subcategory": _ADMINS_ONLY,
    "/all-owners": _ADMINS_ONLY,
    "/owners-projects": _ADMINS_ONLY,
    "/all-clients": _ADMINS_ONLY,
    "/all-properties": _ADMINS_ONLY,
    "/all-category": _ADMINS_ONLY,
    "/contact-inquiries": _ADMINS_ONLY,
}


def decide(policy: RoutePolicy, session: Session) -> RouteDecision:
    if not policy.requires_session:
        return RouteDecision.RENDER
    if not session.is_authenticated:
        return RouteDecision.REDIRECT_TO_LOGIN
    if session.is_restricted_agent and not policy.allow_restricted_agent:
        return RouteDecision.REDIRECT_TO_RESTRICTED_HOME
    return RouteDecision.RENDER


def resolve(path: str, session: Session) -> tuple[RouteDecision, str]:
    """Decide for a concrete path and return where the operator ends up.

    Unknown paths are treated as a navigation to the dashboard.
    """

    target = path if path in ROUTE_POLICIES else FALLBACK_PATH
    decision = decide(ROUTE_POLICIES[target], session)
    if decision is RouteDecision.REDIRECT_TO_LOGIN:
        return decision, LOGIN_PATH
    if decision is RouteDecision.REDIRECT_TO_RESTRICTED_HOME:
        return decision, RESTRICTED_HOME_PATH
    return decision, target

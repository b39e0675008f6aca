"""Decides what a console view may show for the current auth phase and role."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

import structlog

from brewconsole.core.exceptions import AccessDeniedError
from brewconsole.services.access import has_capability, required_roles_for
from brewconsole.services.auth_lifecycle import AuthLifecycle, AuthPhase
from brewconsole.services.session_store import SessionStore

logger = structlog.get_logger(__name__)

LOGIN_PATH = "/auth"
HOME_PATH = "/"


class GuardAction(str, Enum):
    RENDER = "render"
    BLOCK = "block"
    REDIRECT = "redirect"
    DENY = "deny"


@dataclass(frozen=True)
class RouteDecision:
    action: GuardAction
    path: str
    redirect_to: Optional[str] = None
    reason: Optional[str] = None

    @property
    def allowed(self) -> bool:
        return self.action == GuardAction.RENDER


def _normalize(path: str) -> str:
    path = path.split("?", 1)[0] or HOME_PATH
    if len(path) > 1:
        path = path.rstrip("/")
    return path


class RouteGuard:
    """
    Gate in front of every view.

    Nothing is rendered until the auth lifecycle has settled, so neither
    protected content nor the login form flashes up while the persisted
    session is being validated.
    """

    def __init__(self, lifecycle: AuthLifecycle, session: SessionStore, login_path: str = LOGIN_PATH):
        self.lifecycle = lifecycle
        self.session = session
        self.login_path = login_path

    def decide(self, path: str) -> RouteDecision:
        path = _normalize(path)
        phase = self.lifecycle.phase

        if not phase.is_settled:
            return RouteDecision(GuardAction.BLOCK, path, reason="Validating session")

        on_login = path == self.login_path
        if phase == AuthPhase.UNAUTHENTICATED:
            if on_login:
                return RouteDecision(GuardAction.RENDER, path)
            return RouteDecision(GuardAction.REDIRECT, path, redirect_to=self.login_path)

        if on_login:
            return RouteDecision(GuardAction.REDIRECT, path, redirect_to=HOME_PATH)

        user = self.session.current_user
        role = user.role if user else None
        if not has_capability(role, required_roles_for(path)):
            logger.info("Access denied", path=path, role=role.value if role else None)
            return RouteDecision(GuardAction.DENY, path, reason="You don't have permission to access this page")

        return RouteDecision(GuardAction.RENDER, path)

    def require(self, path: str) -> RouteDecision:
        """Like ``decide`` but raises unless the view may render."""
        decision = self.decide(path)
        if not decision.allowed:
            raise AccessDeniedError(
                decision.reason or f"Redirected to {decision.redirect_to}",
                details={"path": decision.path, "action": decision.action.value, "redirect_to": decision.redirect_to},
            )
        return decision

"""
Role-based access to console views.

Every role check in the console goes through ``has_capability``; the route
table below is the single place that says which roles may open which view.
"""

import re
from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, List, Optional, Union

from brewconsole.core.models import UserRole

ADMIN_ROLES = frozenset({UserRole.SUPER_ADMIN, UserRole.COFFEE_SHOP_OWNER})
MENU_ROLES = ADMIN_ROLES | {UserRole.COFFEE_SHOP_MANAGER}

# Path pattern -> roles allowed to open it. Paths not listed only require a session.
ROUTE_ROLES: Dict[str, FrozenSet[UserRole]] = {
    "/brand": ADMIN_ROLES,
    "/locations": ADMIN_ROLES,
    "/users": ADMIN_ROLES,
    "/menu": MENU_ROLES,
    "/menu/templates": ADMIN_ROLES,
    "/menu/templates/{id}/items": ADMIN_ROLES,
    "/my-location": frozenset({UserRole.COFFEE_SHOP_MANAGER}),
}


def _compile(pattern: str) -> "re.Pattern[str]":
    return re.compile("^" + re.sub(r"\\\{\w+\\\}", r"[^/]+", re.escape(pattern)) + "/?$")


_ROUTE_PATTERNS = [(_compile(pattern), roles) for pattern, roles in ROUTE_ROLES.items()]


def has_capability(
    role: Optional[Union[UserRole, str]],
    required_roles: Optional[Iterable[Union[UserRole, str]]] = None,
) -> bool:
    """True when ``role`` satisfies ``required_roles``; empty means any signed-in role."""
    if role is None:
        return False
    if not required_roles:
        return True
    try:
        role = UserRole(role)
        return role in {UserRole(r) for r in required_roles}
    except ValueError:
        return False


def required_roles_for(path: str) -> Optional[FrozenSet[UserRole]]:
    """Roles a path is restricted to, or None when any signed-in user may open it."""
    path = path.split("?", 1)[0]
    for pattern, roles in _ROUTE_PATTERNS:
        if pattern.match(path):
            return roles
    return None


@dataclass(frozen=True)
class NavigationItem:
    title: str
    url: str


_DASHBOARD = NavigationItem("Dashboard", "/dashboard")
_BRANDS = NavigationItem("Brands", "/brand")
_LOCATIONS = NavigationItem("Locations", "/locations")
_USERS = NavigationItem("Users", "/users")
_MENU = NavigationItem("Menu", "/menu")
_ORDERS = NavigationItem("Orders", "/orders")
_PROFILE = NavigationItem("Profile", "/profile")
_MY_LOCATION = NavigationItem("My location", "/my-location")

NAVIGATION: Dict[UserRole, List[NavigationItem]] = {
    UserRole.SUPER_ADMIN: [_DASHBOARD, _BRANDS, _LOCATIONS, _USERS, _MENU],
    UserRole.COFFEE_SHOP_OWNER: [_DASHBOARD, _BRANDS, _LOCATIONS, _USERS, _MENU, _ORDERS, _PROFILE],
    UserRole.COFFEE_SHOP_MANAGER: [_DASHBOARD, _MY_LOCATION, _MENU, _ORDERS, _PROFILE],
    UserRole.COFFEE_SHOP_STAFF: [_ORDERS, _PROFILE],
}


def navigation_for(role: Optional[Union[UserRole, str]]) -> List[NavigationItem]:
    """Sidebar entries for a role; nothing for an unknown or missing role."""
    if role is None:
        return []
    try:
        return list(NAVIGATION[UserRole(role)])
    except (KeyError, ValueError):
        return []

"""
Domain slices: reactive list/selection/loading/error state per resource,
driven by query cache lifecycle events.
"""

from .base import Operation, ResourceSlice
from .brand import BrandSlice
from .location import LocationSlice, LocationStaffSlice
from .menu import MenuItemOverrideSlice, MenuSlice
from .menu_template import MenuTemplateSlice, TemplateItemSlice
from .store import ConsoleStore
from .user import UserSlice

__all__ = [
    "BrandSlice",
    "ConsoleStore",
    "LocationSlice",
    "LocationStaffSlice",
    "MenuItemOverrideSlice",
    "MenuSlice",
    "MenuTemplateSlice",
    "Operation",
    "ResourceSlice",
    "TemplateItemSlice",
    "UserSlice",
]

"""The set of domain slices a console session works with."""

from typing import Callable, Dict, Iterator, List

import structlog

from brewconsole.cache.query_cache import QueryCache
from brewconsole.slices.base import ResourceSlice
from brewconsole.slices.brand import BrandSlice
from brewconsole.slices.location import LocationSlice, LocationStaffSlice
from brewconsole.slices.menu import MenuItemOverrideSlice, MenuSlice
from brewconsole.slices.menu_template import MenuTemplateSlice, TemplateItemSlice
from brewconsole.slices.user import UserSlice

logger = structlog.get_logger(__name__)


class ConsoleStore:
    """Holds one instance of every slice and wires them to a query cache."""

    def __init__(self):
        self.brand = BrandSlice()
        self.location = LocationSlice()
        self.location_staff = LocationStaffSlice()
        self.menu = MenuSlice()
        self.menu_item_override = MenuItemOverrideSlice()
        self.menu_template = MenuTemplateSlice()
        self.template_item = TemplateItemSlice()
        self.user = UserSlice()
        self._unsubscribe: List[Callable[[], None]] = []

    @property
    def slices(self) -> Dict[str, ResourceSlice]:
        return {
            s.name: s
            for s in (
                self.brand,
                self.location,
                self.location_staff,
                self.menu,
                self.menu_item_override,
                self.menu_template,
                self.template_item,
                self.user,
            )
        }

    def __iter__(self) -> Iterator[ResourceSlice]:
        return iter(self.slices.values())

    def attach(self, cache: QueryCache) -> None:
        for resource_slice in self:
            self._unsubscribe.append(cache.add_listener(resource_slice.handle))
        logger.debug("Slices attached to query cache", count=len(self._unsubscribe))

    def detach(self) -> None:
        for remove in self._unsubscribe:
            remove()
        self._unsubscribe.clear()

    def reset(self) -> None:
        for resource_slice in self:
            resource_slice.reset()

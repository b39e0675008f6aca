"""
Menu endpoints.

A brand owns menu templates, a template owns its items, and each location
runs one menu built from a template. Per-location changes to a template item
are stored as item overrides on that menu.
"""

from typing import List

from brewconsole.cache.tags import LIST, Tag, invalidates_item, invalidates_list, provides_item, provides_list
from brewconsole.core.models import (
    Menu,
    MenuCreate,
    MenuItemOverride,
    MenuItemOverrideCreate,
    MenuItemOverrideUpdate,
    MenuTemplate,
    MenuTemplateCreate,
    MenuTemplateUpdate,
    MenuUpdate,
    TemplateItem,
    TemplateItemCreate,
    TemplateItemUpdate,
)
from brewconsole.data.base_api import ResourceApi

MENU = "Menu"
MENUS = "Menus"
MENU_TEMPLATE = "MenuTemplate"
MENU_TEMPLATES = "MenuTemplates"
TEMPLATE_ITEM = "TemplateItem"
TEMPLATE_ITEMS = "TemplateItems"
MENU_ITEM_OVERRIDE = "MenuItemOverride"
MENU_ITEM_OVERRIDES = "MenuItemOverrides"


def _menu_for_location_tags(result, error, location_id):
    tags = [Tag(MENUS, LIST)]
    if result is not None:
        tags.append(Tag(MENU, result.id))
    return tags


class MenuApi(ResourceApi):
    """Templates, template items, location menus and their item overrides."""

    # Menu templates

    async def get_menu_templates(self, *, force: bool = False) -> List[MenuTemplate]:
        return await self._query(
            "getMenuTemplates", None, "/menu/templates", MenuTemplate, many=True,
            provides=provides_list(MENU_TEMPLATE, MENU_TEMPLATES), force=force,
        )

    async def get_menu_templates_by_brand(self, brand_id: int, *, force: bool = False) -> List[MenuTemplate]:
        return await self._query(
            "getMenuTemplatesByBrand", brand_id, f"/menu/templates/brand/{brand_id}", MenuTemplate, many=True,
            provides=provides_list(MENU_TEMPLATE, MENU_TEMPLATES), force=force,
        )

    async def get_menu_template_by_id(self, template_id: int, *, force: bool = False) -> MenuTemplate:
        return await self._query(
            "getMenuTemplateById", template_id, f"/menu/templates/{template_id}", MenuTemplate,
            provides=provides_item(MENU_TEMPLATE), force=force,
        )

    async def create_menu_template(self, data: MenuTemplateCreate) -> MenuTemplate:
        return await self._mutate(
            "createMenuTemplate", data, "POST", "/menu/templates", MenuTemplate,
            json_data=data.to_payload(), invalidates=invalidates_list(MENU_TEMPLATES),
        )

    async def update_menu_template(self, template_id: int, data: MenuTemplateUpdate) -> MenuTemplate:
        return await self._mutate(
            "updateMenuTemplate", template_id, "PATCH", f"/menu/templates/{template_id}", MenuTemplate,
            json_data=data.to_payload(), invalidates=invalidates_item(MENU_TEMPLATE, MENU_TEMPLATES),
        )

    async def delete_menu_template(self, template_id: int) -> None:
        await self._mutate(
            "deleteMenuTemplate", template_id, "DELETE", f"/menu/templates/{template_id}",
            invalidates=invalidates_list(MENU_TEMPLATES),
        )

    # Template items

    async def get_template_items(self, *, force: bool = False) -> List[TemplateItem]:
        return await self._query(
            "getTemplateItems", None, "/menu/template-items", TemplateItem, many=True,
            provides=provides_list(TEMPLATE_ITEM, TEMPLATE_ITEMS), force=force,
        )

    async def get_template_items_by_template(self, template_id: int, *, force: bool = False) -> List[TemplateItem]:
        return await self._query(
            "getTemplateItemsByTemplate", template_id, f"/menu/template-items/template/{template_id}",
            TemplateItem, many=True, provides=provides_list(TEMPLATE_ITEM, TEMPLATE_ITEMS), force=force,
        )

    async def get_template_item_by_id(self, item_id: int, *, force: bool = False) -> TemplateItem:
        return await self._query(
            "getTemplateItemById", item_id, f"/menu/template-items/{item_id}", TemplateItem,
            provides=provides_item(TEMPLATE_ITEM), force=force,
        )

    async def create_template_item(self, data: TemplateItemCreate) -> TemplateItem:
        return await self._mutate(
            "createTemplateItem", data, "POST", "/menu/template-items", TemplateItem,
            json_data=data.to_payload(), invalidates=invalidates_list(TEMPLATE_ITEMS),
        )

    async def update_template_item(self, item_id: int, data: TemplateItemUpdate) -> TemplateItem:
        return await self._mutate(
            "updateTemplateItem", item_id, "PATCH", f"/menu/template-items/{item_id}", TemplateItem,
            json_data=data.to_payload(), invalidates=invalidates_item(TEMPLATE_ITEM, TEMPLATE_ITEMS),
        )

    async def delete_template_item(self, item_id: int) -> None:
        await self._mutate(
            "deleteTemplateItem", item_id, "DELETE", f"/menu/template-items/{item_id}",
            invalidates=invalidates_list(TEMPLATE_ITEMS),
        )

    # Menus

    async def get_menus(self, *, force: bool = False) -> List[Menu]:
        return await self._query(
            "getMenus", None, "/menu", Menu, many=True,
            provides=provides_list(MENU, MENUS), force=force,
        )

    async def get_menu_by_location(self, location_id: int, *, force: bool = False) -> Menu:
        return await self._query(
            "getMenuByLocation", location_id, f"/menu/location/{location_id}", Menu,
            provides=_menu_for_location_tags, force=force,
        )

    async def get_menu_by_id(self, menu_id: int, *, force: bool = False) -> Menu:
        return await self._query(
            "getMenuById", menu_id, f"/menu/{menu_id}", Menu,
            provides=provides_item(MENU), force=force,
        )

    async def create_menu(self, data: MenuCreate) -> Menu:
        return await self._mutate(
            "createMenu", data, "POST", "/menu", Menu,
            json_data=data.to_payload(), invalidates=invalidates_list(MENUS),
        )

    async def update_menu(self, menu_id: int, data: MenuUpdate) -> Menu:
        return await self._mutate(
            "updateMenu", menu_id, "PATCH", f"/menu/{menu_id}", Menu,
            json_data=data.to_payload(), invalidates=invalidates_item(MENU, MENUS),
        )

    async def delete_menu(self, menu_id: int) -> None:
        await self._mutate(
            "deleteMenu", menu_id, "DELETE", f"/menu/{menu_id}",
            invalidates=invalidates_list(MENUS),
        )

    # Item overrides

    async def get_menu_item_overrides_by_menu(self, menu_id: int, *, force: bool = False) -> List[MenuItemOverride]:
        return await self._query(
            "getMenuItemOverridesByMenu", menu_id, f"/menu/item-overrides/menu/{menu_id}",
            MenuItemOverride, many=True, provides=provides_list(MENU_ITEM_OVERRIDE, MENU_ITEM_OVERRIDES),
            force=force,
        )

    async def create_menu_item_override(self, data: MenuItemOverrideCreate) -> MenuItemOverride:
        return await self._mutate(
            "createMenuItemOverride", data, "POST", "/menu/item-overrides", MenuItemOverride,
            json_data=data.to_payload(), invalidates=invalidates_list(MENU_ITEM_OVERRIDES),
        )

    async def update_menu_item_override(self, override_id: int, data: MenuItemOverrideUpdate) -> MenuItemOverride:
        return await self._mutate(
            "updateMenuItemOverride", override_id, "PATCH", f"/menu/item-overrides/{override_id}",
            MenuItemOverride, json_data=data.to_payload(),
            invalidates=invalidates_item(MENU_ITEM_OVERRIDE, MENU_ITEM_OVERRIDES),
        )

    async def delete_menu_item_override(self, override_id: int) -> None:
        await self._mutate(
            "deleteMenuItemOverride", override_id, "DELETE", f"/menu/item-overrides/{override_id}",
            invalidates=invalidates_list(MENU_ITEM_OVERRIDES),
        )

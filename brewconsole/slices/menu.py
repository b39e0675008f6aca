"""Location menus and their item overrides."""

from brewconsole.slices.base import Operation, ResourceSlice


class MenuSlice(ResourceSlice):
    name = "menu"
    endpoints = {
        "getMenus": (Operation.LIST, "Failed to fetch menus"),
        "getMenuById": (Operation.ITEM, "Failed to fetch menu"),
        "getMenuByLocation": (Operation.ITEM, "Failed to fetch menu for location"),
        "createMenu": (Operation.CREATE, "Failed to create menu"),
        "updateMenu": (Operation.UPDATE, "Failed to update menu"),
        "deleteMenu": (Operation.DELETE, "Failed to delete menu"),
    }


class MenuItemOverrideSlice(ResourceSlice):
    name = "menuItemOverride"
    endpoints = {
        "getMenuItemOverridesByMenu": (Operation.LIST, "Failed to fetch menu item overrides"),
        "createMenuItemOverride": (Operation.CREATE, "Failed to create menu item override"),
        "updateMenuItemOverride": (Operation.UPDATE, "Failed to update menu item override"),
        "deleteMenuItemOverride": (Operation.DELETE, "Failed to delete menu item override"),
    }

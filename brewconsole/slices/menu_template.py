"""Menu templates and template items."""

from brewconsole.slices.base import Operation, ResourceSlice


class MenuTemplateSlice(ResourceSlice):
    name = "menuTemplate"
    endpoints = {
        "getMenuTemplates": (Operation.LIST, "Failed to fetch menu templates"),
        "getMenuTemplatesByBrand": (Operation.LIST, "Failed to fetch brand menu templates"),
        "getMenuTemplateById": (Operation.ITEM, "Failed to fetch menu template"),
        "createMenuTemplate": (Operation.CREATE, "Failed to create menu template"),
        "updateMenuTemplate": (Operation.UPDATE, "Failed to update menu template"),
        "deleteMenuTemplate": (Operation.DELETE, "Failed to delete menu template"),
    }


class TemplateItemSlice(ResourceSlice):
    name = "templateItem"
    endpoints = {
        "getTemplateItems": (Operation.LIST, "Failed to fetch template items"),
        "getTemplateItemsByTemplate": (Operation.LIST, "Failed to fetch template items"),
        "getTemplateItemById": (Operation.ITEM, "Failed to fetch template item"),
        "createTemplateItem": (Operation.CREATE, "Failed to create template item"),
        "updateTemplateItem": (Operation.UPDATE, "Failed to update template item"),
        "deleteTemplateItem": (Operation.DELETE, "Failed to delete template item"),
    }

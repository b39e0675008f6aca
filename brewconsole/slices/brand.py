"""Brands slice."""

from brewconsole.slices.base import Operation, ResourceSlice


class BrandSlice(ResourceSlice):
    name = "brand"
    endpoints = {
        "getBrands": (Operation.LIST, "Failed to fetch brands"),
        "getBrandById": (Operation.ITEM, "Failed to fetch brand"),
        "createBrand": (Operation.CREATE, "Failed to create brand"),
        "updateBrand": (Operation.UPDATE, "Failed to update brand"),
        "deleteBrand": (Operation.DELETE, "Failed to delete brand"),
    }

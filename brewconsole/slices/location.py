"""Locations and location staff slices."""

from typing import Any

from brewconsole.slices.base import Operation, ResourceSlice


class LocationSlice(ResourceSlice):
    name = "location"
    endpoints = {
        "getLocations": (Operation.LIST, "Failed to fetch locations"),
        "getLocationsByBrand": (Operation.LIST, "Failed to fetch brand locations"),
        "getLocationById": (Operation.ITEM, "Failed to fetch location"),
        "createLocation": (Operation.CREATE, "Failed to create location"),
        "updateLocation": (Operation.UPDATE, "Failed to update location"),
        "deleteLocation": (Operation.DELETE, "Failed to delete location"),
    }


class LocationStaffSlice(ResourceSlice):
    """Staff of the location currently being viewed."""

    name = "locationStaff"
    endpoints = {
        "getLocationStaff": (Operation.LIST, "Failed to fetch location staff"),
        "assignStaffToLocation": (Operation.CREATE, "Failed to assign staff to location"),
        "removeStaffFromLocation": (Operation.DELETE, "Failed to remove staff from location"),
    }

    def deleted_id(self, arg: Any) -> Any:
        # (location_id, staff_id)
        return arg[1]

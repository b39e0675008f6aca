"""Location endpoints, including the staff sub-resource."""

from typing import List

from brewconsole.cache.tags import LIST, Tag, invalidates_item, invalidates_list, provides_list
from brewconsole.core.models import Location, LocationCreate, LocationStaff, LocationUpdate
from brewconsole.data.base_api import ResourceApi

LOCATION = "Location"
LOCATIONS = "Locations"
LOCATION_STAFF = "LocationStaff"


def _location_detail_tags(result, error, location_id):
    tags = [Tag(LOCATION, location_id)]
    if result is not None:
        tags.extend(Tag(LOCATION_STAFF, member.id) for member in result.staff)
    return tags


def _staff_change_tags(result, error, arg):
    location_id, _ = arg
    return [Tag(LOCATION_STAFF, LIST), Tag(LOCATION, location_id)]


class LocationsApi(ResourceApi):
    """Shop locations of a brand and the staff assigned to them."""

    async def get_locations(self, *, force: bool = False) -> List[Location]:
        return await self._query(
            "getLocations", None, "/locations", Location, many=True,
            provides=provides_list(LOCATION, LOCATIONS), force=force,
        )

    async def get_locations_by_brand(self, brand_id: int, *, force: bool = False) -> List[Location]:
        return await self._query(
            "getLocationsByBrand", brand_id, f"/brands/{brand_id}/locations", Location, many=True,
            provides=provides_list(LOCATION, LOCATIONS), force=force,
        )

    async def get_location_by_id(self, location_id: int, *, force: bool = False) -> Location:
        return await self._query(
            "getLocationById", location_id, f"/locations/{location_id}", Location,
            provides=_location_detail_tags, force=force,
        )

    async def create_location(self, data: LocationCreate) -> Location:
        return await self._mutate(
            "createLocation", data, "POST", "/locations", Location,
            json_data=data.to_payload(), invalidates=invalidates_list(LOCATIONS),
        )

    async def update_location(self, location_id: int, data: LocationUpdate) -> Location:
        return await self._mutate(
            "updateLocation", location_id, "PATCH", f"/locations/{location_id}", Location,
            json_data=data.to_payload(), invalidates=invalidates_item(LOCATION, LOCATIONS),
        )

    async def delete_location(self, location_id: int) -> None:
        await self._mutate(
            "deleteLocation", location_id, "DELETE", f"/locations/{location_id}",
            invalidates=invalidates_list(LOCATIONS),
        )

    async def get_location_staff(self, location_id: int, *, force: bool = False) -> List[LocationStaff]:
        return await self._query(
            "getLocationStaff", location_id, f"/locations/{location_id}/staff", LocationStaff, many=True,
            provides=provides_list(LOCATION_STAFF, LOCATION_STAFF), force=force,
        )

    async def assign_staff_to_location(self, location_id: int, staff_id: int) -> LocationStaff:
        return await self._mutate(
            "assignStaffToLocation", (location_id, staff_id), "POST", f"/locations/{location_id}/staff",
            LocationStaff, json_data={"staffId": staff_id}, invalidates=_staff_change_tags,
        )

    async def remove_staff_from_location(self, location_id: int, staff_id: int) -> None:
        await self._mutate(
            "removeStaffFromLocation", (location_id, staff_id), "DELETE",
            f"/locations/{location_id}/staff/{staff_id}", invalidates=_staff_change_tags,
        )

"""Brand endpoints."""

from typing import List

from brewconsole.cache.tags import invalidates_item, invalidates_list, provides_item, provides_list
from brewconsole.core.models import Brand, BrandCreate, BrandUpdate
from brewconsole.data.base_api import ResourceApi

BRAND = "Brand"
BRANDS = "Brands"


class BrandsApi(ResourceApi):
    """Brands of the chain. Creating one is reserved to super-admins."""

    async def get_brands(self, *, force: bool = False) -> List[Brand]:
        return await self._query(
            "getBrands", None, "/brands", Brand, many=True,
            provides=provides_list(BRAND, BRANDS), force=force,
        )

    async def get_brand_by_id(self, brand_id: int, *, force: bool = False) -> Brand:
        return await self._query(
            "getBrandById", brand_id, f"/brands/{brand_id}", Brand,
            provides=provides_item(BRAND), force=force,
        )

    async def create_brand(self, data: BrandCreate) -> Brand:
        return await self._mutate(
            "createBrand", data, "POST", "/brands", Brand,
            json_data=data.to_payload(), invalidates=invalidates_list(BRANDS),
        )

    async def update_brand(self, brand_id: int, data: BrandUpdate) -> Brand:
        return await self._mutate(
            "updateBrand", brand_id, "PATCH", f"/brands/{brand_id}", Brand,
            json_data=data.to_payload(), invalidates=invalidates_item(BRAND, BRANDS),
        )

    async def delete_brand(self, brand_id: int) -> None:
        await self._mutate(
            "deleteBrand", brand_id, "DELETE", f"/brands/{brand_id}",
            invalidates=invalidates_list(BRANDS),
        )

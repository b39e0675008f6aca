"""
Test suite for the domain slices.

Most tests feed lifecycle events straight into a slice; the last ones drive
the slices through a real console context.
"""

import asyncio

import pytest

from brewconsole.cache.query_cache import CacheEvent, LifecyclePhase
from brewconsole.core.exceptions import RequestRejectedError, TransportError
from brewconsole.core.models import BrandUpdate
from brewconsole.slices import BrandSlice, ConsoleStore, LocationStaffSlice


def _event(request_id, endpoint, phase, data=None, error=None, arg=None, kind="query"):
    return CacheEvent(request_id, kind, endpoint, phase, arg=arg, data=data, error=error)


class TestListAndItem:
    """Test list and item reads."""

    def test_loading_follows_pending_requests(self):
        """Test the loading flag is set while any request is pending."""
        brands = BrandSlice()

        brands.handle(_event(1, "getBrands", LifecyclePhase.PENDING))
        assert brands.is_loading is True

        brands.handle(_event(1, "getBrands", LifecyclePhase.FULFILLED, data=[{"id": 1}]))
        assert brands.is_loading is False
        assert brands.items == [{"id": 1}]

    def test_outdated_list_response_ignored(self):
        """Test a response to an older list request cannot overwrite a newer one."""
        brands = BrandSlice()

        brands.handle(_event(1, "getBrands", LifecyclePhase.PENDING))
        brands.handle(_event(2, "getBrands", LifecyclePhase.PENDING))
        brands.handle(_event(2, "getBrands", LifecyclePhase.FULFILLED, data=[{"id": 2}]))
        brands.handle(_event(1, "getBrands", LifecyclePhase.FULFILLED, data=[{"id": 1}]))

        assert brands.items == [{"id": 2}]
        assert brands.is_loading is False

    def test_outdated_failure_does_not_set_error(self):
        """Test an older request failing after a newer one succeeded is ignored."""
        brands = BrandSlice()

        brands.handle(_event(1, "getBrandById", LifecyclePhase.PENDING, arg=1))
        brands.handle(_event(2, "getBrandById", LifecyclePhase.PENDING, arg=2))
        brands.handle(_event(2, "getBrandById", LifecyclePhase.FULFILLED, data={"id": 2}, arg=2))
        brands.handle(_event(1, "getBrandById", LifecyclePhase.REJECTED, error=TransportError(), arg=1))

        assert brands.selected == {"id": 2}
        assert brands.error is None

    def test_local_selection_beats_inflight_fetch(self):
        """Test a selection made while a fetch is pending survives its arrival."""
        brands = BrandSlice()

        brands.handle(_event(1, "getBrandById", LifecyclePhase.PENDING, arg=1))
        brands.set_selected({"id": 5})
        brands.handle(_event(1, "getBrandById", LifecyclePhase.FULFILLED, data={"id": 1}, arg=1))

        assert brands.selected == {"id": 5}

    def test_aborted_only_clears_pending(self):
        """Test an aborted request changes nothing but the loading flag."""
        brands = BrandSlice()
        brands.items = [{"id": 1}]

        brands.handle(_event(1, "getBrands", LifecyclePhase.PENDING))
        brands.handle(_event(1, "getBrands", LifecyclePhase.ABORTED))

        assert brands.items == [{"id": 1}]
        assert brands.is_loading is False

    def test_unrelated_endpoint_ignored(self):
        """Test events for other resources are not folded in."""
        brands = BrandSlice()

        brands.handle(_event(1, "getLocations", LifecyclePhase.PENDING))

        assert brands.is_loading is False


class TestErrors:
    """Test error messages recorded by slices."""

    def test_server_message_preferred(self):
        """Test the server's message is shown when one was received."""
        brands = BrandSlice()
        error = RequestRejectedError("Brand name already taken", status=409)

        brands.handle(_event(1, "createBrand", LifecyclePhase.PENDING, kind="mutation"))
        brands.handle(_event(1, "createBrand", LifecyclePhase.REJECTED, error=error, kind="mutation"))

        assert brands.error == "Brand name already taken"

    def test_fallback_without_server_message(self):
        """Test the per-operation fallback is used when the server said nothing."""
        brands = BrandSlice()

        brands.handle(_event(1, "getBrands", LifecyclePhase.PENDING))
        brands.handle(_event(1, "getBrands", LifecyclePhase.REJECTED, error=TransportError()))

        assert brands.error == "Failed to fetch brands"

    def test_new_request_clears_error(self):
        """Test starting a request clears the previous error."""
        brands = BrandSlice()
        brands.error = "Failed to fetch brands"

        brands.handle(_event(2, "getBrands", LifecyclePhase.PENDING))

        assert brands.error is None


class TestWrites:
    """Test create, update and delete reducers."""

    def test_create_appends_or_replaces(self):
        """Test a created record is added once."""
        brands = BrandSlice()
        brands.items = [{"id": 1, "name": "A"}]

        brands.handle(_event(1, "createBrand", LifecyclePhase.FULFILLED, data={"id": 2, "name": "B"}))
        brands.handle(_event(2, "createBrand", LifecyclePhase.FULFILLED, data={"id": 2, "name": "B2"}))

        assert brands.items == [{"id": 1, "name": "A"}, {"id": 2, "name": "B2"}]

    def test_update_replaces_item_and_selection(self):
        """Test an updated record replaces its list entry and the selection."""
        brands = BrandSlice()
        brands.items = [{"id": 1, "name": "A"}, {"id": 2, "name": "B"}]
        brands.set_selected({"id": 2, "name": "B"})

        brands.handle(_event(1, "updateBrand", LifecyclePhase.FULFILLED, data={"id": 2, "name": "New"}, arg=2))

        assert brands.items[1] == {"id": 2, "name": "New"}
        assert brands.selected == {"id": 2, "name": "New"}

    def test_delete_clears_matching_selection(self):
        """Test deleting the selected record clears the selection."""
        brands = BrandSlice()
        brands.set_selected({"id": 3})

        brands.handle(_event(1, "deleteBrand", LifecyclePhase.FULFILLED, arg=3))

        assert brands.selected is None

    def test_delete_keeps_other_selection(self):
        """Test deleting another record leaves the selection alone."""
        brands = BrandSlice()
        brands.set_selected({"id": 4})

        brands.handle(_event(1, "deleteBrand", LifecyclePhase.FULFILLED, arg=3))

        assert brands.selected == {"id": 4}

    def test_staff_delete_uses_staff_id(self):
        """Test staff removal matches on the staff member, not the location."""
        staff = LocationStaffSlice()
        staff.set_selected({"id": 9})

        staff.handle(_event(1, "removeStaffFromLocation", LifecyclePhase.FULFILLED, arg=(3, 9)))

        assert staff.selected is None

    def test_reset(self):
        """Test reset returns the slice to its initial state."""
        brands = BrandSlice()
        brands.handle(_event(1, "getBrands", LifecyclePhase.PENDING))
        brands.items = [{"id": 1}]
        brands.error = "x"

        brands.reset()

        assert (brands.items, brands.selected, brands.error, brands.is_loading) == ([], None, None, False)


class TestConsoleStore:
    """Test slices wired to a live query cache."""

    def test_store_has_every_slice(self):
        """Test the store exposes one slice per resource."""
        names = set(ConsoleStore().slices)

        assert names == {
            "brand",
            "location",
            "locationStaff",
            "menu",
            "menuItemOverride",
            "menuTemplate",
            "templateItem",
            "user",
        }

    def test_reads_and_failures_reach_slices(self, make_context, backend, signed_in_storage, owner):
        """Test cache traffic drives slice state."""
        brand = backend.add_brand("Beans & Co", owner["id"])
        backend.fail("PATCH", f"/brands/{brand['id']}", 400, ["name should not be empty"])

        async def main():
            async with make_context() as ctx:
                await ctx.start()
                await ctx.brands.get_brands()
                await ctx.brands.get_brand_by_id(brand["id"])
                with pytest.raises(RequestRejectedError):
                    await ctx.brands.update_brand(brand["id"], BrandUpdate(name=""))
                return ctx.store

        store = asyncio.run(main())

        assert [b.name for b in store.brand.items] == ["Beans & Co"]
        assert store.brand.selected.id == brand["id"]
        assert store.brand.error == "name should not be empty"
        assert store.brand.is_loading is False

    def test_late_response_for_old_selection_ignored(self, make_context, backend, signed_in_storage, owner):
        """Test a slow fetch for a previous selection does not replace the current one."""
        first = backend.add_brand("First", owner["id"])
        second = backend.add_brand("Second", owner["id"])

        async def main():
            async with make_context() as ctx:
                await ctx.start()
                gate = backend.hold("GET", f"/brands/{first['id']}")
                slow = asyncio.ensure_future(ctx.brands.get_brand_by_id(first["id"]))
                for _ in range(20):
                    await asyncio.sleep(0)
                await ctx.brands.get_brand_by_id(second["id"])
                gate.set()
                await slow
                return ctx.store

        store = asyncio.run(main())

        assert store.brand.selected.name == "Second"
        assert store.brand.is_loading is False

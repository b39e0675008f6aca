"""Tests for cache tag helpers."""

from brewconsole.cache.tags import (
    LIST,
    Tag,
    invalidates_item,
    invalidates_list,
    provides_item,
    provides_list,
    resolve_tags,
)


class TestResolveTags:
    """Test evaluating tag specs."""

    def test_none_spec_is_empty(self):
        """Test a missing tag declaration provides nothing."""
        assert resolve_tags(None, [1], None, None) == frozenset()

    def test_static_sequence(self):
        """Test a static tag list is used as is."""
        tags = resolve_tags([Tag("Auth"), Tag("User")], None, None, None)

        assert tags == frozenset({Tag("Auth"), Tag("User")})

    def test_factory_drops_none(self):
        """Test factories may yield None for tags that do not apply."""
        tags = resolve_tags(lambda result, error, arg: [Tag("Menu", 3), None], None, None, None)

        assert tags == frozenset({Tag("Menu", 3)})


class TestFactories:
    """Test the standard provide and invalidate shapes."""

    def test_provides_list_tags_each_record(self):
        """Test a list query provides the LIST tag plus one tag per record."""
        factory = provides_list("Brand", "Brands")

        tags = resolve_tags(factory, [{"id": 1}, {"id": 2}], None, None)

        assert tags == frozenset({Tag("Brands", LIST), Tag("Brand", 1), Tag("Brand", 2)})

    def test_provides_list_on_error_keeps_list_tag(self):
        """Test a failed list query still provides the LIST tag."""
        tags = resolve_tags(provides_list("Brand", "Brands"), None, RuntimeError("x"), None)

        assert tags == frozenset({Tag("Brands", LIST)})

    def test_provides_item_uses_argument(self):
        """Test a by-id query is tagged with the requested id."""
        assert resolve_tags(provides_item("Location"), None, None, 4) == frozenset({Tag("Location", 4)})

    def test_invalidates_item_and_list(self):
        """Test an update invalidates the record and its collection."""
        factory = invalidates_item("Brand", "Brands", id_of=lambda arg: arg["id"])

        tags = resolve_tags(factory, None, None, {"id": 7, "name": "x"})

        assert tags == frozenset({Tag("Brand", 7), Tag("Brands", LIST)})

    def test_invalidates_list_only(self):
        """Test a create invalidates only the collection."""
        assert resolve_tags(invalidates_list("Users"), None, None, None) == frozenset({Tag("Users", LIST)})

    def test_tag_str(self):
        """Test tags render as type or type:id."""
        assert str(Tag("Auth")) == "Auth"
        assert str(Tag("Brand", 3)) == "Brand:3"

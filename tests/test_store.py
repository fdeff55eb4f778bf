"""Tests for PathStore tree operations."""

import pytest

from pathstore import (
    AdapterConversionError,
    Format,
    NotFoundError,
    PathStore,
)


class Point:
    def __init__(self, x: int, y: int):
        self.x = x
        self.y = y

    def __eq__(self, other):
        return isinstance(other, Point) and (self.x, self.y) == (other.x, other.y)


class Point3D(Point):
    pass


class PointStore(PathStore):
    """Store that keeps Point values as "x,y" strings."""

    def register_adapters(self):
        self.add_adapter(Point, self._set_point, self._get_point)

    def _set_point(self, path, point):
        self.set(path, f"{point.x},{point.y}")

    def _get_point(self, path):
        x, y = self.get(path, str).split(",")
        return Point(int(x), int(y))


@pytest.fixture
def store():
    """Store holding the example user tree."""
    store = PathStore()
    store.set("user.name.hans", "Hans")
    store.set("user.name.paul", "Paul")
    store.set("noch.ein.test", "Update")
    return store


class TestGetSet:
    """Tests for get() and set()."""

    def test_example_scenario(self, store):
        """Keys and values of the example tree."""
        assert store.keys("", False) == {"user", "noch"}
        assert store.keys("user", False) == {"name"}
        assert store.get("user.name.hans", str) == "Hans"

    @pytest.mark.parametrize("value", ["text", 42, 3.5, True, False, {"a": 1}])
    def test_set_then_get_returns_value(self, value):
        """set(p, v) then get(p, type(v)) returns v."""
        store = PathStore()
        store.set("a.b.c", value)
        assert store.get("a.b.c", type(value)) == value

    def test_get_without_type_returns_raw_value(self, store):
        """get() with no type returns whatever is stored."""
        assert store.get("user.name") == {"hans": "Hans", "paul": "Paul"}

    def test_set_creates_intermediate_mappings(self):
        """Missing intermediate segments are created on write."""
        store = PathStore()
        store.set("a.b.c", 1)
        assert store.get("a") == {"b": {"c": 1}}

    def test_get_does_not_create_intermediates(self):
        """Reads never create missing segments."""
        store = PathStore()
        assert store.get("a.b.c") is None
        assert store.keys() == set()

    def test_get_missing_returns_default(self, store):
        """Absent paths return the default."""
        assert store.get("user.name.fritz", str, "nobody") == "nobody"
        assert store.get("nothing.here", default=7) == 7

    def test_get_through_scalar_returns_default(self, store):
        """A scalar in an intermediate segment is a navigation miss."""
        assert store.get("user.name.hans.first", str, "miss") == "miss"

    def test_type_mismatch_without_adapter_returns_default(self, store):
        """Wrong type with no getter yields the default."""
        assert store.get("user.name.hans", int) is None
        assert store.get("user.name.hans", int, 0) == 0

    def test_set_over_scalar_intermediate(self):
        """Writing below a scalar replaces it with a mapping."""
        store = PathStore()
        store.set("a", 1)
        store.set("a.b", 2)
        assert store.get("a") == {"b": 2}

    def test_set_none_removes_only_the_leaf(self, store):
        """set(p, None) removes the leaf and keeps siblings and ancestors."""
        store.set("user.name.hans", None)

        assert not store.contains("user.name.hans")
        assert store.get("user.name.paul", str) == "Paul"
        assert store.get("user.name") == {"paul": "Paul"}


class TestRemoveAndContains:
    """Tests for remove(), contains() and contains_not_none()."""

    def test_remove_existing(self, store):
        """remove() deletes the terminal key and reports it."""
        assert store.remove("noch.ein.test") is True
        assert store.get("noch.ein") == {}

    def test_remove_missing_intermediate(self, store):
        """remove() does nothing when a segment is missing."""
        before = store.deep_copy()
        assert store.remove("missing.path.key") is False
        assert store.deep_copy() == before

    def test_contains(self, store):
        """contains() checks for a key at the path."""
        assert store.contains("user.name")
        assert "user.name.hans" in store
        assert not store.contains("user.name.fritz")
        assert not store.contains("user.name.hans.deeper")

    def test_contains_none_value(self):
        """A key holding None exists but is not 'not none'."""
        store = PathStore()
        store.from_specific_string('{"a": null, "b": 1}', Format.JSON)

        assert store.contains("a")
        assert not store.contains_not_none("a")
        assert store.contains_not_none("b")


class TestSizeAndClear:
    """Tests for size() and clear()."""

    def test_size(self, store):
        """size() counts immediate children."""
        assert store.size() == 2
        assert len(store) == 2
        assert store.size("user.name") == 2
        assert store.size("user.name.hans") == 0
        assert store.size("missing") == 0

    def test_clear_path(self, store):
        """clear(path) empties only that mapping."""
        store.clear("user.name")
        assert store.get("user.name") == {}
        assert store.get("noch.ein.test") == "Update"

    def test_clear_scalar_is_noop(self, store):
        """Clearing a scalar path leaves it untouched."""
        store.clear("user.name.hans")
        assert store.get("user.name.hans") == "Hans"

    def test_clear_all(self, store):
        """clear() empties the whole tree."""
        store.clear()
        assert len(store) == 0


class TestKeys:
    """Tests for keys()."""

    def test_deep_root_keys_are_full_paths(self, store):
        """Deep keys from the root are full dotted paths."""
        assert store.keys(deep=True) == {
            "user",
            "user.name",
            "user.name.hans",
            "user.name.paul",
            "noch",
            "noch.ein",
            "noch.ein.test",
        }

    def test_deep_keys_are_relative_to_base(self, store):
        """Deep keys under a base are dotted paths relative to that base."""
        assert store.keys("user", deep=True) == {"name", "name.hans", "name.paul"}
        assert store.keys("user.name", deep=True) == {"hans", "paul"}

    def test_keys_of_non_mapping(self, store):
        """A scalar or missing base has no keys."""
        assert store.keys("user.name.hans") == set()
        assert store.keys("missing", deep=True) == set()

    def test_iter_yields_root_keys(self, store):
        """Iterating a store yields its top-level keys."""
        assert set(store) == {"user", "noch"}


class TestTraversal:
    """Tests for for_each() and friends."""

    def test_for_each_immediate(self, store):
        """for_each() visits immediate children with full paths."""
        seen = []
        store.for_each(lambda path, value: seen.append(path), "user.name")
        assert sorted(seen) == ["user.name.hans", "user.name.paul"]

    def test_for_each_recursive(self, store):
        """Recursive for_each() visits every descendant."""
        seen = {}
        store.for_each(seen.__setitem__, "user", recursive=True)
        assert seen == {
            "user.name": {"hans": "Hans", "paul": "Paul"},
            "user.name.hans": "Hans",
            "user.name.paul": "Paul",
        }

    def test_for_each_on_scalar_does_nothing(self, store):
        """for_each() on a non-mapping base makes no calls."""
        seen = []
        store.for_each(lambda path, value: seen.append(path), "user.name.hans")
        assert seen == []

    def test_for_each_action_may_write(self, store):
        """The action can modify the store while iterating."""
        store.for_each(lambda path, value: store.set(path + "_copy", value), "user.name")
        assert store.get("user.name.hans_copy") == "Hans"

    def test_for_each_key_and_value(self, store):
        """for_each_key() sees deep paths, for_each_value() root values."""
        keys = []
        values = []
        store.for_each_key(keys.append)
        store.for_each_value(values.append)

        assert "noch.ein.test" in keys
        assert len(values) == 2


class TestBulkOperations:
    """Tests for put_all(), merge() and deep_copy()."""

    def test_put_all(self):
        """put_all() sets every entry under the base."""
        store = PathStore()
        store.put_all({"host": "localhost", "port": 5432}, "db")
        assert store.get("db.host") == "localhost"
        assert store.get("db.port", int) == 5432

    def test_put_all_copies_nested_mappings(self):
        """Mappings given to put_all() are not shared."""
        source = {"nested": {"a": 1}}
        store = PathStore()
        store.put_all(source)
        source["nested"]["a"] = 2
        assert store.get("nested.a") == 1

    def test_merge_overwrite(self):
        """overwrite=True replaces conflicting leaves."""
        store = PathStore()
        store.set("a.b", 1)
        other = PathStore()
        other.set("a.b", 2)

        store.merge(other, overwrite=True)
        assert store.get("a.b") == 2

    def test_merge_without_overwrite_keeps_existing(self):
        """overwrite=False keeps this store's leaves."""
        store = PathStore()
        store.set("a.b", 1)
        other = PathStore()
        other.set("a.b", 2)
        other.set("a.c", 3)

        store.merge(other, overwrite=False)
        assert store.get("a.b") == 1
        assert store.get("a.c") == 3

    def test_merge_never_drops_keys(self, store):
        """Keys missing from the source survive a merge."""
        other = PathStore()
        other.set("user.name.fritz", "Fritz")

        store.merge(other, overwrite=True)
        assert store.keys("user.name") == {"hans", "paul", "fritz"}
        assert store.get("noch.ein.test") == "Update"

    def test_merge_mapping_over_scalar(self):
        """A source mapping replaces a target scalar only with overwrite."""
        store = PathStore()
        store.set("a", "scalar")
        other = PathStore()
        other.set("a.b", 1)

        store.merge(other, overwrite=False)
        assert store.get("a") == "scalar"

        store.merge(other, overwrite=True)
        assert store.get("a") == {"b": 1}

    def test_merge_plain_dict(self):
        """merge() also accepts a plain mapping."""
        store = PathStore()
        store.merge({"x": {"y": 1}})
        assert store.get("x.y") == 1

    def test_merge_does_not_share_structure(self):
        """Merged mappings are copies of the source."""
        store = PathStore()
        other = PathStore()
        other.set("a.b", 1)

        store.merge(other)
        other.set("a.b", 2)
        assert store.get("a.b") == 1

    def test_deep_copy_is_independent(self, store):
        """Changes to a deep copy never reach the store."""
        copy = store.deep_copy()
        copy["user"]["name"]["hans"] = "Changed"
        assert store.get("user.name.hans") == "Hans"

    def test_deep_copy_copies_lists(self):
        """Lists and mappings inside lists are copied too."""
        store = PathStore()
        store.set("a.items", [1, {"k": 1}])

        copy = store.deep_copy()
        copy["a"]["items"].append(3)
        copy["a"]["items"][1]["k"] = 2
        assert store.get("a.items") == [1, {"k": 1}]

    def test_merge_does_not_share_lists(self):
        """After a merge, lists belong to one store only."""
        source = PathStore()
        source.set("a.items", [{"k": 1}])
        target = PathStore()

        target.merge(source)
        target.get("a.items").append("x")
        target.get("a.items")[0]["k"] = 2
        assert source.get("a.items") == [{"k": 1}]

    def test_put_all_copies_lists(self):
        """Lists given to put_all() are not shared."""
        items = [1, 2]
        store = PathStore()
        store.put_all({"items": items})
        items.append(3)
        assert store.get("items") == [1, 2]

    def test_to_map_and_map_view(self, store):
        """to_map() copies a level; map_view() is read-only."""
        assert store.to_map("user.name") == {"hans": "Hans", "paul": "Paul"}
        assert store.to_map("user.name.hans") == {}

        view = store.map_view("user.name")
        with pytest.raises(TypeError):
            view["fritz"] = "Fritz"
        store.set("user.name.fritz", "Fritz")
        assert "fritz" in view


class TestDictInterface:
    """Tests for the dict-like protocol."""

    def test_item_access(self):
        """Items can be set, read and deleted by path."""
        store = PathStore()
        store["a.b"] = 1
        assert store["a.b"] == 1
        del store["a.b"]
        assert "a.b" not in store

    def test_missing_item_raises(self):
        """Missing paths raise NotFoundError, which is a KeyError."""
        store = PathStore()
        with pytest.raises(NotFoundError):
            _ = store["missing"]
        with pytest.raises(KeyError):
            del store["missing"]


class TestAdapters:
    """Tests for adapter dispatch inside the store."""

    def test_adapter_round_trip(self):
        """A registered adapter encodes and decodes its type."""
        store = PointStore()
        store.set("origin", Point(1, 2))

        assert store.get("origin") == "1,2"
        assert store.get("origin", Point) == Point(1, 2)

    def test_dispatch_is_exact_type(self):
        """A subclass instance bypasses its parent's setter."""
        store = PointStore()
        point = Point3D(1, 2)
        store.set("p", point)

        assert store.get("p") is point
        assert store.get("p", Point) is point

    def test_add_adapter_at_runtime(self):
        """add_adapter() registers a function pair on any store."""
        store = PathStore()
        store.add_adapter(
            complex,
            lambda path, value: store.set(path, [value.real, value.imag]),
            lambda path: complex(*store.get(path, list)),
        )
        store.set("z", 1 + 2j)
        assert store.get("z") == [1.0, 2.0]
        assert store.get("z", complex) == 1 + 2j

    def test_getter_failure_is_wrapped(self):
        """A failing getter raises AdapterConversionError."""
        store = PointStore()
        store.set("p", "not-a-point")

        with pytest.raises(AdapterConversionError) as info:
            store.get("p", Point)
        assert info.value.path == "p"
        assert info.value.target is Point
        assert isinstance(info.value.cause, ValueError)

    def test_getter_missing_value_returns_default(self):
        """An absent path never reaches the getter."""
        store = PointStore()
        assert store.get("missing", Point, "none") == "none"


class TestTextConversion:
    """Tests for to_string_as() and from_specific_string()."""

    @pytest.mark.parametrize("fmt", list(Format))
    def test_round_trip_through_text(self, store, fmt):
        """Encoding and decoding restores the tree."""
        text = store.to_string_as(fmt)
        loaded = PathStore()
        loaded.from_specific_string(text, fmt)
        assert loaded.deep_copy() == store.deep_copy()

    def test_from_string_keeps_other_top_level_keys(self, store):
        """Loading text replaces only the top-level keys it contains."""
        store.from_string('{"user": {"id": 1}}')
        assert store.get("user") == {"id": 1}
        assert store.get("noch.ein.test") == "Update"

    def test_str_uses_store_format(self, store):
        """str(store) is the JSON document for a plain PathStore."""
        assert '"hans": "Hans"' in str(store)

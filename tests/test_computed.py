"""Tests for ComputedField."""

import pytest

from computedproxy import ComputedField, ReadOnlyFieldError, SlotKind, computed, slot_kind, wrap


def _counting(fn):
    """Wrap a getter so tests can see how often it ran."""
    calls = []

    def getter(obj, name, previous):
        calls.append(name)
        return fn(obj)

    return getter, calls


class TestDescriptor:
    def test_defaults(self):
        f = computed("a", "b", get=lambda obj, name, previous: 1)
        assert f.paths == ("a", "b")
        assert f.is_dirty is True
        assert f.is_volatile is False
        assert f.is_read_only is True
        assert f.cache is None

    def test_paths_as_list(self):
        f = computed(["firstName", "lastName"], get=lambda *_: None)
        assert f.paths == ("firstName", "lastName")

    def test_setter_makes_writable(self):
        f = computed("a", get=lambda *_: 1, set=lambda obj, name, value, previous: value)
        assert f.is_read_only is False

    def test_volatile_is_fluent(self):
        f = computed("a", get=lambda *_: 1)
        assert f.volatile() is f
        assert f.is_volatile is True

    def test_missing_getter_yields_none(self):
        obj = wrap({"x": computed("a")})
        assert obj.x is None

    def test_repr(self):
        f = computed("a", get=lambda *_: 5)
        assert "dirty" in repr(f)
        obj = wrap({"x": f})
        obj.x
        assert "cached=5" in repr(f)

    def test_is_a_computed_field(self):
        assert isinstance(computed("a"), ComputedField)


class TestCaching:
    def test_lazy_eval(self):
        getter, calls = _counting(lambda o: o.a * 2)
        obj = wrap({"a": 5, "doubled": computed("a", get=getter)})
        assert calls == []  # not yet evaluated
        assert obj.doubled == 10
        assert calls == ["doubled"]

    def test_caches_until_dirty(self):
        getter, calls = _counting(lambda o: o.a * 2)
        obj = wrap({"a": 5, "doubled": computed("a", get=getter)})
        assert obj.doubled == 10
        assert obj.doubled == 10
        assert len(calls) == 1  # cached, no re-eval

    def test_invalidation(self):
        getter, calls = _counting(lambda o: o.a * 2)
        obj = wrap({"a": 5, "doubled": computed("a", get=getter)})
        obj.doubled
        obj.a = 10
        assert obj.doubled == 20
        assert len(calls) == 2

    def test_unrelated_write_keeps_cache(self):
        getter, calls = _counting(lambda o: o.a * 2)
        obj = wrap({"a": 5, "b": 1, "doubled": computed("a", get=getter)})
        obj.doubled
        obj.b = 2
        obj.doubled
        assert len(calls) == 1

    def test_getter_receives_previous(self):
        seen = []

        def getter(obj, name, previous):
            seen.append(previous)
            return obj.a

        obj = wrap({"a": 1, "x": computed("a", get=getter)})
        obj.x
        obj.a = 2
        obj.x
        assert seen == [None, 1]

    def test_volatile_recomputes_every_read(self):
        getter, calls = _counting(lambda o: o.a)
        obj = wrap({"a": 1, "x": computed("a", get=getter).volatile()})
        obj.x
        obj.x
        obj.x
        assert len(calls) == 3

    def test_getter_error_leaves_field_dirty(self):
        state = {"fail": True}

        def getter(obj, name, previous):
            if state["fail"]:
                raise ValueError("boom")
            return "ok"

        obj = wrap({"x": computed("a", get=getter)})
        with pytest.raises(ValueError, match="boom"):
            obj.x
        state["fail"] = False
        assert obj.x == "ok"

    def test_chained_computed(self):
        obj = wrap({
            "o": 3,
            "doubled": computed("o", get=lambda self, *_: self.o * 2),
            "quadrupled": computed("doubled", get=lambda self, *_: self.doubled * 2),
        })
        assert obj.quadrupled == 12
        obj.o = 5
        assert obj.quadrupled == 20

    def test_cycle_does_not_recurse(self):
        obj = wrap({
            "a": computed("b", get=lambda self, *_: 1),
            "b": computed("a", get=lambda self, *_: 2),
        })
        obj.a
        obj.b
        obj.notify_property_change("a")
        assert obj.a == 1
        assert obj.b == 2


class TestSetters:
    def test_read_only_raises(self):
        obj = wrap({"full": computed("first", get=lambda *_: "x")})
        with pytest.raises(ReadOnlyFieldError, match="full is read only"):
            obj.full = "y"

    def test_read_only_error_names_field(self):
        obj = wrap({"full": computed("first", get=lambda *_: "x")})
        with pytest.raises(ReadOnlyFieldError) as info:
            obj["full"] = "y"
        assert info.value.field == "full"
        assert "Supply a set function" in str(info.value)

    def test_read_only_is_attribute_error(self):
        obj = wrap({"full": computed("first", get=lambda *_: "x")})
        with pytest.raises(AttributeError):
            obj.set("full", "y")

    def test_setter_updates_cache(self):
        calls = []

        def setter(obj, name, value, previous):
            calls.append((name, value, previous))
            return value.upper()

        getter, gets = _counting(lambda o: "from getter")
        obj = wrap({"x": computed("a", get=getter, set=setter)})
        obj.x = "hello"
        assert obj.x == "HELLO"
        assert gets == []  # setter result is cached, getter never ran
        assert calls == [("x", "hello", None)]

    def test_setter_result_replaces_field(self):
        field = computed("a", get=lambda self, *_: self.a * 10, set=lambda o, n, v, p: v)
        obj = wrap({"a": 1, "x": field})
        assert obj.x == 10
        obj.x = 99
        assert obj.x == 99
        assert slot_kind(obj._data["x"]) is SlotKind.PLAIN
        assert field.cache == 99
        obj.a = 2
        assert obj.x == 99  # written value survives a dependency change
        assert "a" not in obj._bindings

    def test_setter_result_is_plain_afterwards(self):
        obj = wrap({"x": computed("a", get=lambda *_: 0, set=lambda o, n, v, p: v + 1)})
        obj.x = 1
        obj.x = 10  # plain write now, setter is gone
        assert obj.x == 10

    def test_setter_write_notifies_dependents(self):
        obj = wrap({
            "x": computed("a", get=lambda *_: 0, set=lambda o, n, v, p: v),
            "y": computed("x", get=lambda self, *_: self.x + 1),
        })
        assert obj.y == 1
        obj.x = 41
        assert obj.y == 42

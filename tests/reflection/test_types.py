"""
Tests for phpcompletor/reflection/types.py
"""

import pytest

from phpcompletor.reflection.types import (
    ReflectionClass,
    ReflectionMethod,
    ReflectionProperty,
    Symbol,
    SymbolContext,
    Type,
    Types,
    Visibility,
)


class TestType:
    """Tests for Type."""

    @pytest.mark.parametrize(
        "declared, expected",
        [
            ("\\App\\Foo", "App\\Foo"),
            ("?App\\Foo", "App\\Foo"),
            ("INT", "int"),
            ("string", "string"),
        ],
    )
    def test_from_string(self, declared, expected):
        assert Type.from_string(declared).name == expected

    @pytest.mark.parametrize("declared", [None, "", "mixed", "<missing>"])
    def test_from_string_unknown(self, declared):
        assert Type.from_string(declared).is_defined() is False

    def test_primitive(self):
        assert Type("int").is_primitive() is True
        assert Type("App\\Foo").is_primitive() is False
        assert Type.unknown().is_primitive() is False

    def test_short_and_str(self):
        assert Type("App\\Entity\\User").short() == "User"
        assert str(Type("App\\Entity\\User")) == "App\\Entity\\User"
        assert str(Type.unknown()) == "<unknown>"


class TestTypes:
    """Tests for Types."""

    def test_best_skips_undefined(self):
        types = Types.from_types(Type.unknown(), Type("Foo"), Type("Bar"))

        assert types.best() == Type("Foo")

    def test_best_of_nothing(self):
        assert Types().best().is_defined() is False

    def test_iteration_keeps_order(self):
        types = Types.from_types(Type("B"), Type("A"))

        assert [str(t) for t in types] == ["B", "A"]
        assert len(types) == 2


class TestReflectionClass:
    """Tests for member lookup."""

    CLASS = ReflectionClass(
        name="Foo",
        methods=(ReflectionMethod("getName"),),
        properties=(ReflectionProperty("name", visibility=Visibility.PRIVATE),),
    )

    def test_method_lookup_ignores_case(self):
        assert self.CLASS.find_method("GETNAME").name == "getName"

    def test_property_lookup_is_case_sensitive(self):
        assert self.CLASS.find_property("name") is not None
        assert self.CLASS.find_property("Name") is None

    def test_missing_member(self):
        assert self.CLASS.find_method("nope") is None


class TestSymbolContext:
    """Tests for SymbolContext."""

    def test_with_issue_returns_copy(self):
        context = SymbolContext(Symbol("foo"))

        updated = context.with_issue("problem")

        assert updated.issues == ("problem",)
        assert context.issues == ()

    def test_with_types(self):
        context = SymbolContext(Symbol("foo")).with_types(Types.from_types(Type("Foo")))

        assert context.types.best() == Type("Foo")

    def test_visibility_str(self):
        assert str(Visibility.PROTECTED)[:3] == "pro"
        assert Visibility.PUBLIC.is_public() is True
        assert Visibility.PRIVATE.is_public() is False

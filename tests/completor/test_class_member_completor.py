"""
Tests for phpcompletor/completor/class_member_completor.py
"""

import pytest

from phpcompletor.completor.class_member_completor import (
    ClassMemberCompletor,
    method_info,
    property_info,
)
from phpcompletor.core.suggestion import Range, SuggestionType
from phpcompletor.exceptions import NoAccessorFound, NotFound
from phpcompletor.reflection.source_reflector import SourceReflector
from phpcompletor.reflection.types import (
    DefaultValue,
    ReflectionClass,
    ReflectionConstant,
    ReflectionInterface,
    ReflectionMethod,
    ReflectionParameter,
    ReflectionProperty,
    Symbol,
    SymbolContext,
    Type,
    Types,
    Visibility,
)


class FakeReflector:
    """Reflector returning canned answers."""

    def __init__(self, symbol_context, classes=None):
        self.symbol_context = symbol_context
        self.classes = classes or {}
        self.offsets = []

    def reflect_offset(self, source, offset):
        self.offsets.append(offset)
        return self.symbol_context

    def reflect_class_like(self, name):
        if name not in self.classes:
            raise NotFound(name)
        return self.classes[name]


FOOBAR = ReflectionClass(
    name="App\\Foobar",
    methods=(
        ReflectionMethod("__construct"),
        ReflectionMethod("bar", inferred_return_types=Types.from_types(Type("int"))),
        ReflectionMethod("baz"),
        ReflectionMethod("hidden", visibility=Visibility.PRIVATE),
        ReflectionMethod("guarded", visibility=Visibility.PROTECTED),
    ),
    properties=(
        ReflectionProperty("foo"),
        ReflectionProperty("secret", visibility=Visibility.PRIVATE),
    ),
    constants=(ReflectionConstant("LIMIT"),),
)


def context_for(symbol_name, *types):
    return SymbolContext(Symbol(symbol_name, "variable"), Types.from_types(*types))


def names(response):
    return [suggestion.name for suggestion in response.suggestions]


class TestCouldComplete:
    """Tests for detecting member access at the cursor."""

    @pytest.mark.parametrize(
        "source",
        [
            "<?php $foo->",
            "<?php $foo->ba",
            "<?php $foo -> ",
            "<?php Foo::",
            "<?php Foo::BA",
            "<?php $this->foo()->",
            "<?php $foo?->",
            "<?php Foo::$",
            "<?php Foo::$ba",
        ],
    )
    def test_member_access(self, source):
        completor = ClassMemberCompletor(FakeReflector(context_for("foo")))

        assert completor.could_complete(source, len(source)) is True

    @pytest.mark.parametrize(
        "source",
        [
            "<?php $foo",
            "<?php new Foo",
            "<?php echo ",
            "<?php ",
            "->",
            "::",
        ],
    )
    def test_not_member_access(self, source):
        completor = ClassMemberCompletor(FakeReflector(context_for("foo")))

        assert completor.could_complete(source, len(source)) is False


class TestComplete:
    """Tests for ClassMemberCompletor.complete with a fake reflector."""

    def test_public_members_in_declaration_order(self):
        reflector = FakeReflector(context_for("foo", Type("App\\Foobar")), {"App\\Foobar": FOOBAR})
        completor = ClassMemberCompletor(reflector)

        response = completor.complete("<?php $foo->", 12)

        assert names(response) == ["bar", "baz", "foo", "LIMIT"]
        assert len(response.issues) == 0

    def test_reflects_corrected_offset(self):
        reflector = FakeReflector(context_for("foo", Type("App\\Foobar")), {"App\\Foobar": FOOBAR})
        completor = ClassMemberCompletor(reflector)

        completor.complete("<?php $foo -> ", 14)

        assert reflector.offsets == [10]

    def test_suggestion_types_and_descriptions(self):
        reflector = FakeReflector(context_for("foo", Type("App\\Foobar")), {"App\\Foobar": FOOBAR})
        completor = ClassMemberCompletor(reflector)

        suggestions = list(completor.complete("<?php $foo->", 12).suggestions)

        assert suggestions[0].type is SuggestionType.METHOD
        assert suggestions[0].info == "pub bar(): int"
        assert suggestions[2].type is SuggestionType.PROPERTY
        assert suggestions[2].info == "pub $foo"
        assert suggestions[3].type is SuggestionType.CONSTANT
        assert suggestions[3].info == "const LIMIT"

    def test_privileged_symbol_sees_non_public_members(self):
        reflector = FakeReflector(context_for("this", Type("App\\Foobar")), {"App\\Foobar": FOOBAR})
        completor = ClassMemberCompletor(reflector)

        response = completor.complete("<?php $this->", 13)

        assert names(response) == ["bar", "baz", "hidden", "guarded", "foo", "secret", "LIMIT"]

    def test_constructor_is_never_suggested(self):
        reflector = FakeReflector(context_for("this", Type("App\\Foobar")), {"App\\Foobar": FOOBAR})
        completor = ClassMemberCompletor(reflector)

        assert "__construct" not in names(completor.complete("<?php $this->", 13))

    def test_partial_text_filters_by_prefix(self):
        reflector = FakeReflector(context_for("foo", Type("App\\Foobar")), {"App\\Foobar": FOOBAR})
        completor = ClassMemberCompletor(reflector)

        response = completor.complete("<?php $foo->ba", 14)

        assert names(response) == ["bar", "baz"]

    def test_partial_text_matches_any_case(self):
        reflector = FakeReflector(context_for("foo", Type("App\\Foobar")), {"App\\Foobar": FOOBAR})
        completor = ClassMemberCompletor(reflector)

        assert names(completor.complete("<?php $foo->BA", 14)) == ["bar", "baz"]

    def test_static_property_partial_ignores_dollar(self):
        reflector = FakeReflector(context_for("Foobar", Type("App\\Foobar")), {"App\\Foobar": FOOBAR})
        completor = ClassMemberCompletor(reflector)

        assert names(completor.complete("<?php Foobar::$fo", 17)) == ["foo"]

    def test_member_suggestions_insert_at_cursor(self):
        reflector = FakeReflector(context_for("foo", Type("App\\Foobar")), {"App\\Foobar": FOOBAR})
        completor = ClassMemberCompletor(reflector)

        suggestions = list(completor.complete("<?php $foo->ba", 14).suggestions)

        assert [s.range for s in suggestions] == [Range.point(14), Range.point(14)]

    def test_scalar_type_reports_issue(self):
        completor = ClassMemberCompletor(FakeReflector(context_for("s", Type("string"))))

        response = completor.complete("<?php $s->", 10)

        assert names(response) == []
        assert list(response.issues) == ["Cannot complete members on scalar value (string)"]

    def test_missing_class_reports_issue(self):
        completor = ClassMemberCompletor(FakeReflector(context_for("m", Type("App\\Missing"))))

        response = completor.complete("<?php $m->", 10)

        assert names(response) == []
        assert list(response.issues) == ['Could not find class "App\\Missing"']

    def test_undefined_type_is_skipped_silently(self):
        completor = ClassMemberCompletor(FakeReflector(context_for("u", Type.unknown())))

        response = completor.complete("<?php $u->", 10)

        assert names(response) == []
        assert len(response.issues) == 0

    def test_union_types_contribute_in_order(self):
        other = ReflectionClass(name="App\\Other", methods=(ReflectionMethod("zap"),))
        reflector = FakeReflector(
            context_for("x", Type("App\\Other"), Type("int"), Type("App\\Foobar"), Type("App\\Gone")),
            {"App\\Foobar": FOOBAR, "App\\Other": other},
        )
        completor = ClassMemberCompletor(reflector)

        response = completor.complete("<?php $x->", 10)

        assert names(response) == ["zap", "bar", "baz", "foo", "LIMIT"]
        assert list(response.issues) == [
            "Cannot complete members on scalar value (int)",
            'Could not find class "App\\Gone"',
        ]

    def test_interface_has_no_properties(self):
        interface = ReflectionInterface(
            name="App\\Countable",
            methods=(ReflectionMethod("count"),),
            constants=(ReflectionConstant("MODE"),),
        )
        reflector = FakeReflector(context_for("c", Type("App\\Countable")), {"App\\Countable": interface})
        completor = ClassMemberCompletor(reflector)

        assert names(completor.complete("<?php $c->", 10)) == ["count", "MODE"]

    def test_reflector_issues_are_kept(self):
        symbol_context = context_for("foo", Type("int")).with_issue("Earlier problem")
        completor = ClassMemberCompletor(FakeReflector(symbol_context))

        response = completor.complete("<?php $foo->", 12)

        assert list(response.issues) == [
            "Earlier problem",
            "Cannot complete members on scalar value (int)",
        ]

    def test_no_accessor_raises(self):
        completor = ClassMemberCompletor(FakeReflector(context_for("foo")))

        with pytest.raises(NoAccessorFound):
            completor.complete("<?php $foo", 10)


class TestBuild:
    """Tests for ClassMemberCompletor.build."""

    def test_returns_updated_symbol_context(self):
        completor = ClassMemberCompletor(FakeReflector(context_for("foo")))
        symbol_context = context_for("foo")

        suggestions, updated = completor.build(
            symbol_context, Types.from_types(Type("float"), Type("App\\Nope"))
        )

        assert len(suggestions) == 0
        assert updated.issues == (
            "Cannot complete members on scalar value (float)",
            'Could not find class "App\\Nope"',
        )
        assert symbol_context.issues == ()


class TestWithSourceReflector:
    """End to end member completion over real PHP source."""

    def complete(self, source, offset=None):
        completor = ClassMemberCompletor(SourceReflector())
        return completor.complete(source, len(source) if offset is None else offset)

    def test_variable_assigned_from_new(self):
        source = """<?php

class Foobar
{
    public $foo;
    private $secret;

    public function bar(): int
    {
    }

    private function hidden()
    {
    }
}

$f = new Foobar();
$f->"""

        response = self.complete(source)
        suggestions = list(response.suggestions)

        assert [s.name for s in suggestions] == ["bar", "foo"]
        assert suggestions[0].info == "pub bar(): int"
        assert suggestions[1].info == "pub $foo"

    def test_scalar_variable(self):
        response = self.complete("<?php\n$a = 'hello';\n$a->")

        assert names(response) == []
        assert list(response.issues) == ["Cannot complete members on scalar value (string)"]

    def test_unknown_class(self):
        response = self.complete("<?php\n$a = new Missing();\n$a->")

        assert list(response.issues) == ['Could not find class "Missing"']

    def test_this_inside_method(self):
        source = """<?php
class Foobar
{
    private $secret;
    private function hidden() {}
    public function run()
    {
        $this->
    }
}
"""
        offset = source.index("$this->") + len("$this->")

        assert names(self.complete(source, offset)) == ["hidden", "run", "secret"]

    def test_static_access(self):
        source = """<?php
class Foo
{
    const BAR = 1;
    public static $count = 0;
    public static function make(): static {}
}
Foo::"""

        suggestions = list(self.complete(source).suggestions)

        assert [s.name for s in suggestions] == ["make", "count", "BAR"]
        assert suggestions[0].info == "pub make(): Foo"
        assert suggestions[1].info == "pub static $count"

    def test_static_property_access(self):
        source = "<?php class Foo { public static $bar; public static function baz() {} } Foo::$ba"
        completor = ClassMemberCompletor(SourceReflector())

        assert completor.could_complete(source, len(source)) is True
        assert names(completor.complete(source, len(source))) == ["baz", "bar"]

    def test_mixed_case_partial(self):
        source = "<?php class Foo { public function getBar() {} } $f = new Foo(); $f->getb"

        assert names(self.complete(source)) == ["getBar"]


class TestMethodInfo:
    """Tests for method_info formatting."""

    def test_no_parameters(self):
        assert method_info(ReflectionMethod("run")) == "pub run()"

    def test_full_signature(self):
        method = ReflectionMethod(
            name="find",
            visibility=Visibility.PROTECTED,
            is_abstract=True,
            parameters=(
                ReflectionParameter("id", Type("int")),
                ReflectionParameter("options", default=DefaultValue.from_value([])),
                ReflectionParameter("label", Type("string"), DefaultValue.from_value("x")),
                ReflectionParameter("repo", Type("App\\Repo"), DefaultValue.from_value(None)),
            ),
            inferred_return_types=Types.from_types(Type("App\\User"), Type("null")),
        )

        assert method_info(method) == (
            "abstract pro find(int $id, $options = array (), "
            "string $label = 'x', Repo $repo = NULL): User|null"
        )

    def test_list_default_is_exported_inline(self):
        method = ReflectionMethod(
            name="pick",
            visibility=Visibility.PRIVATE,
            parameters=(ReflectionParameter("ids", default=DefaultValue.from_value([1, 2])),),
        )

        assert method_info(method) == "pri pick($ids = array (  0 => 1,  1 => 2,))"


class TestPropertyInfo:
    """Tests for property_info formatting."""

    def test_untyped(self):
        assert property_info(ReflectionProperty("foo")) == "pub $foo"

    def test_static_with_best_type(self):
        prop = ReflectionProperty(
            name="instance",
            visibility=Visibility.PROTECTED,
            is_static=True,
            inferred_types=Types.from_types(Type.unknown(), Type("App\\Foo")),
        )

        assert property_info(prop) == "pro static $instance: Foo"

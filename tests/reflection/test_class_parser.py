"""
Tests for phpcompletor/reflection/class_parser.py
"""

import pytest

from phpcompletor.parser.nodes import ResolvedName
from phpcompletor.reflection.class_parser import (
    PhpClassParser,
    blank_comments,
    blank_nested,
    blank_strings,
    docblock_before,
    find_closing_brace,
    resolve_class_name,
)
from phpcompletor.reflection.literals import RawLiteral
from phpcompletor.reflection.types import ReflectionClass, ReflectionInterface, Type, Visibility


@pytest.fixture
def parser():
    return PhpClassParser()


REPOSITORY = """<?php

namespace App\\Repository;

use App\\Entity\\User;
use Doctrine\\Persistence\\ObjectManager as Manager;

/**
 * Loads users.
 */
abstract class UserRepository extends BaseRepository implements \\Countable, Finder
{
    public const DEFAULT_LIMIT = 10;
    private const SECRET = 'x';

    /** @var Manager */
    protected $manager;

    private ?User $current = null;

    public static $instances = [];

    public function __construct(private readonly Connection $connection)
    {
    }

    /**
     * @return User[]
     */
    public function findAll(int $limit = self::DEFAULT_LIMIT, array $order = [])
    {
        $closure = function () {
            return 1;
        };
        return [];
    }

    public function find(int $id): ?User
    {
    }

    abstract protected function load(string $name = 'users', $flags = 0x10): User|false;

    private static function &cache(...$keys): static
    {
    }
}
"""


class TestParseClass:
    """Tests for class declarations."""

    def test_class_name_and_namespace(self, parser):
        parsed = parser.parse(REPOSITORY)

        assert parsed.namespace == "App\\Repository"
        assert len(parsed.classes) == 1
        assert parsed.classes[0].name == "App\\Repository\\UserRepository"
        assert parsed.classes[0].short_name == "UserRepository"

    def test_header(self, parser):
        declaration = parser.parse(REPOSITORY).classes[0].declaration

        assert isinstance(declaration, ReflectionClass)
        assert declaration.is_abstract is True
        assert declaration.parent == "App\\Repository\\BaseRepository"
        assert declaration.interfaces == ("Countable", "App\\Repository\\Finder")

    def test_methods_in_order(self, parser):
        declaration = parser.parse(REPOSITORY).classes[0].declaration

        assert [m.name for m in declaration.methods] == [
            "__construct",
            "findAll",
            "find",
            "load",
            "cache",
        ]

    def test_method_modifiers(self, parser):
        declaration = parser.parse(REPOSITORY).classes[0].declaration

        load = declaration.find_method("load")
        cache = declaration.find_method("CACHE")

        assert load.is_abstract is True
        assert load.visibility is Visibility.PROTECTED
        assert cache.is_static is True
        assert cache.visibility is Visibility.PRIVATE

    def test_declared_return_types(self, parser):
        declaration = parser.parse(REPOSITORY).classes[0].declaration

        assert list(declaration.find_method("find").inferred_return_types) == [Type("App\\Entity\\User")]
        assert list(declaration.find_method("load").inferred_return_types) == [
            Type("App\\Entity\\User"),
            Type("false"),
        ]
        assert list(declaration.find_method("cache").inferred_return_types) == [
            Type("App\\Repository\\UserRepository")
        ]

    def test_docblock_return_type(self, parser):
        declaration = parser.parse(REPOSITORY).classes[0].declaration

        assert list(declaration.find_method("findAll").inferred_return_types) == [Type("array")]

    def test_parameters(self, parser):
        declaration = parser.parse(REPOSITORY).classes[0].declaration

        find_all = declaration.find_method("findAll")
        load = declaration.find_method("load")

        assert [p.name for p in find_all.parameters] == ["limit", "order"]
        assert find_all.parameters[0].type == Type("int")
        assert find_all.parameters[0].default.value == RawLiteral("self::DEFAULT_LIMIT")
        assert find_all.parameters[1].default.value == []
        assert load.parameters[0].default.value == "users"
        assert load.parameters[1].type == Type.unknown()
        assert load.parameters[1].default.value == 16

    def test_variadic_parameter(self, parser):
        cache = parser.parse(REPOSITORY).classes[0].declaration.find_method("cache")

        assert [p.name for p in cache.parameters] == ["keys"]
        assert cache.parameters[0].default.is_defined is False

    def test_properties(self, parser):
        declaration = parser.parse(REPOSITORY).classes[0].declaration

        assert [p.name for p in declaration.properties] == [
            "manager",
            "current",
            "instances",
            "connection",
        ]

    def test_property_types(self, parser):
        declaration = parser.parse(REPOSITORY).classes[0].declaration

        assert declaration.find_property("manager").inferred_types.best() == Type(
            "Doctrine\\Persistence\\ObjectManager"
        )
        assert declaration.find_property("current").inferred_types.best() == Type("App\\Entity\\User")
        assert declaration.find_property("current").visibility is Visibility.PRIVATE
        assert declaration.find_property("instances").is_static is True
        assert declaration.find_property("connection").inferred_types.best() == Type(
            "App\\Repository\\Connection"
        )

    def test_method_bodies_are_not_members(self, parser):
        declaration = parser.parse(REPOSITORY).classes[0].declaration

        assert declaration.find_property("closure") is None

    def test_constants(self, parser):
        declaration = parser.parse(REPOSITORY).classes[0].declaration

        assert [(c.name, c.visibility) for c in declaration.constants] == [
            ("DEFAULT_LIMIT", Visibility.PUBLIC),
            ("SECRET", Visibility.PRIVATE),
        ]

    def test_body_offsets(self, parser):
        parsed = parser.parse(REPOSITORY).classes[0]

        assert REPOSITORY[parsed.body_start] == "{"
        assert REPOSITORY[parsed.body_end] == "}"
        assert parsed.contains(REPOSITORY.index("$closure"))
        assert not parsed.contains(parsed.body_start)


class TestParseOtherDeclarations:
    """Tests for interfaces, enums and multiple declarations."""

    def test_interface(self, parser):
        source = """<?php
namespace App;

interface Finder extends \\Countable, Base
{
    const MODE = 1;

    public function find(int $id): ?Entity;
}
"""
        declaration = parser.parse(source).classes[0].declaration

        assert isinstance(declaration, ReflectionInterface)
        assert declaration.name == "App\\Finder"
        assert declaration.parents == ("Countable", "App\\Base")
        assert [m.name for m in declaration.methods] == ["find"]
        assert declaration.methods[0].is_abstract is False
        assert [c.name for c in declaration.constants] == ["MODE"]

    def test_enum_cases_are_constants(self, parser):
        source = """<?php
enum Suit: string
{
    case Hearts = 'H';
    case Spades = 'S';

    public function label(): string {}
}
"""
        declaration = parser.parse(source).classes[0].declaration

        assert [c.name for c in declaration.constants] == ["Hearts", "Spades"]
        assert [m.name for m in declaration.methods] == ["label"]

    def test_multiple_classes(self, parser):
        source = "<?php\nclass A {}\nfinal class B extends A {}\n"

        classes = parser.parse(source).classes

        assert [c.name for c in classes] == ["A", "B"]
        assert classes[1].declaration.parent == "A"

    def test_class_constant_fetch_is_not_a_declaration(self, parser):
        source = "<?php\n$name = Foo::class;\n$x = $y->class;\n"

        assert parser.parse(source).classes == []

    def test_commented_out_class(self, parser):
        source = "<?php\n// class Hidden {}\n/* class Gone {} */\nclass Real {}\n"

        assert [c.name for c in parser.parse(source).classes] == ["Real"]

    def test_unterminated_class(self, parser):
        source = "<?php\nclass Open\n{\n    public function run()\n    {\n        $this->"

        parsed = parser.parse(source).classes[0]

        assert parsed.body_end == len(source)
        assert [m.name for m in parsed.declaration.methods] == ["run"]


class TestResolveClassName:
    """Tests for resolve_class_name."""

    IMPORTS = (ResolvedName("User", "App\\Entity\\User"), ResolvedName("Orm", "Doctrine\\ORM"))

    @pytest.mark.parametrize(
        "name, expected",
        [
            ("int", "int"),
            ("?String", "string"),
            ("mixed", "mixed"),
            ("self", "App\\Foo"),
            ("static", "App\\Foo"),
            ("parent", "App\\Base"),
            ("\\DateTime", "DateTime"),
            ("User", "App\\Entity\\User"),
            ("user", "App\\Entity\\User"),
            ("Orm\\Query", "Doctrine\\ORM\\Query"),
            ("Bar", "App\\Bar"),
            ("Sub\\Bar", "App\\Sub\\Bar"),
            ("User[]", "array"),
        ],
    )
    def test_resolve(self, name, expected):
        assert resolve_class_name(name, "App", self.IMPORTS, "App\\Foo", "App\\Base") == expected

    def test_global_namespace(self):
        assert resolve_class_name("Bar", None, ()) == "Bar"


class TestParseFunctions:
    """Tests for functions declared outside class bodies."""

    def test_function_with_namespace(self, parser):
        source = "<?php\nnamespace App;\n\nuse Lib\\Mailer;\n\nfunction send(Mailer $m, int $n = 2): bool {}\n"

        functions = parser.parse(source).functions

        assert [f.name for f in functions] == ["App\\send"]
        assert functions[0].short_name == "send"
        assert [p.type for p in functions[0].parameters] == [Type("Lib\\Mailer"), Type("int")]
        assert functions[0].parameters[1].default.value == 2
        assert list(functions[0].inferred_return_types) == [Type("bool")]

    def test_docblock_return_type(self, parser):
        source = "<?php\n/** @return string */\nfunction label($x) {}\n"

        function = parser.parse(source).functions[0]

        assert list(function.inferred_return_types) == [Type("string")]

    def test_methods_and_closures_are_not_functions(self, parser):
        source = "<?php\nclass A { public function run() {} }\n$f = function ($x) {};\nfunction top() {}\n"

        assert [f.name for f in parser.parse(source).functions] == ["top"]


class TestTextHelpers:
    """Tests for the comment and brace helpers."""

    def test_blank_comments_keeps_offsets(self):
        source = "a // x\nb /* y\n z */ c # w\n'// kept'"

        blanked = blank_comments(source)

        assert len(blanked) == len(source)
        assert blanked.split("\n") == ["a     ", "b     ", "      c    ", "'// kept'"]

    def test_attributes_are_not_comments(self):
        assert blank_comments("#[Attr] class A {}") == "#[Attr] class A {}"

    def test_find_closing_brace_skips_strings(self):
        code = "{ $a = '}'; { } }"

        assert find_closing_brace(code, 0) == len(code) - 1

    def test_blank_strings_keeps_quotes(self):
        assert blank_strings("f('a,b', \"(x)\", 1)") == "f('   ', \"   \", 1)"

    def test_blank_strings_unterminated(self):
        assert blank_strings("echo \"he") == "echo \"  "

    def test_blank_nested(self):
        assert blank_nested("a { b { c } } d") == "a {   {   } } d"

    def test_docblock_before(self):
        source = "/** @var int */\n    public $x;"

        assert docblock_before(source, source.index("public")) == "/** @var int */"

    def test_no_docblock(self):
        source = "$y = 1;\npublic $x;"

        assert docblock_before(source, source.index("public")) == ""

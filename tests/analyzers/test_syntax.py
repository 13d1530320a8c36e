"""Tests for the typed tree-sitter syntax layer."""

from __future__ import annotations

import pytest

from nghelpers.analyzers.syntax import (
    ArrayLiteral,
    CallExpression,
    Identifier,
    ObjectLiteral,
    Opaque,
    SourceSyntaxError,
    StringLiteral,
    check_syntax,
    create_parser,
    decode_string_literal,
    iter_class_declarations,
)


def _classes(source: str):
    source_bytes = source.encode("utf-8")
    tree = create_parser().parse(source_bytes)
    return list(iter_class_declarations(tree.root_node, source_bytes))


@pytest.mark.parametrize(
    ("body", "expected"),
    [
        ("plain", "plain"),
        ("a\\nb\\tc", "a\nb\tc"),
        ("it\\'s", "it's"),
        ('say \\"hi\\"', 'say "hi"'),
        ("\\u0041\\x42", "AB"),
        ("\\u{1F600}", "\U0001F600"),
        ("\\uD83D\\uDE00", "\U0001F600"),
        ("line\\\ncontinued", "linecontinued"),
        ("back\\\\slash", "back\\slash"),
        ("\\101\\0", "A\x00"),
        ("\\377", "\xff"),
        ("\\400", " 0"),
    ],
)
def test_decode_string_literal(body: str, expected: str) -> None:
    assert decode_string_literal(body) == expected


def test_lowering_models_decorator_configuration() -> None:
    classes = _classes(
        """
@Component({
  selector: 'app-root',
  ['computed']: 'ignored',
  'quoted': 'ignored',
  ...shared,
  inputs: ['a', name, "b"],
})
export class AppComponent {}
"""
    )

    assert len(classes) == 1
    declaration = classes[0]
    assert declaration.name == "AppComponent"
    assert len(declaration.decorators) == 1

    call = declaration.decorators[0]
    assert isinstance(call, CallExpression)
    assert call.callee == Identifier("Component")
    config = call.arguments[0]
    assert isinstance(config, ObjectLiteral)

    keys = [prop.key for prop in config.properties]
    assert keys == ["selector", None, None, "inputs"]
    assert config.properties[0].value == StringLiteral("app-root")

    inputs = config.properties[3].value
    assert isinstance(inputs, ArrayLiteral)
    assert inputs.elements == (StringLiteral("a"), Identifier("name"), StringLiteral("b"))


def test_template_strings_are_opaque() -> None:
    classes = _classes("@Component({ template: `<p>hi</p>` })\nclass Inline {}\n")
    config = classes[0].decorators[0].arguments[0]  # type: ignore[union-attr]
    assert isinstance(config.properties[0].value, Opaque)


def test_class_declarations_in_source_order_including_nested() -> None:
    classes = _classes(
        """
class First {}

function factory() {
  class Nested {}
  return Nested;
}

export abstract class Last {}
"""
    )
    assert [declaration.name for declaration in classes] == ["First", "Nested", "Last"]
    assert [declaration.line for declaration in classes] == [2, 5, 9]


def test_decorators_on_plain_class_are_collected() -> None:
    classes = _classes("@One()\n@Two({})\nclass Decorated {}\n")
    callees = [decorator.callee for decorator in classes[0].decorators]  # type: ignore[union-attr]
    assert callees == [Identifier("One"), Identifier("Two")]


def test_member_decorators_are_not_class_decorators() -> None:
    classes = _classes(
        """
class Widget {
  @Input() label: string;
}
"""
    )
    assert classes[0].decorators == ()


def test_check_syntax_reports_first_error() -> None:
    tree = create_parser().parse(b"class Broken {\n  method( {\n")
    with pytest.raises(SourceSyntaxError) as excinfo:
        check_syntax(tree)
    assert excinfo.value.line >= 1
    assert "syntax error at line" in str(excinfo.value)


def test_check_syntax_accepts_valid_source() -> None:
    tree = create_parser().parse(b"export class Fine { constructor(private readonly id: number) {} }\n")
    check_syntax(tree)


def test_deeply_nested_expressions_do_not_hide_classes() -> None:
    concatenation = " + ".join(["'a'"] * 3000)
    source = f"@Component({{ selector: 'x-y' }})\nexport class Deep {{\n  s = {concatenation};\n}}\n"
    tree = create_parser().parse(source.encode("utf-8"))

    check_syntax(tree)
    classes = _classes(source)

    assert [declaration.name for declaration in classes] == ["Deep"]

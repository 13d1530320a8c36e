"""Typed view over tree-sitter TypeScript syntax trees.

Tree-sitter nodes are dynamically typed (``node.type`` is a string). The
extractor only needs a handful of shapes, so this module lowers the parts of
the tree it cares about into a closed set of frozen dataclasses. Anything
outside that set becomes :class:`Opaque`, which callers can recognise and
ignore explicitly.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Dict, Iterator, Optional, Tuple, Union

import tree_sitter_typescript
from tree_sitter import Language, Node, Parser, Tree

TYPESCRIPT = Language(tree_sitter_typescript.language_typescript())

_CLASS_NODE_TYPES = {"class_declaration", "abstract_class_declaration"}
_TRIVIA_NODE_TYPES = {"comment"}


@dataclass(frozen=True)
class Identifier:
    name: str


@dataclass(frozen=True)
class StringLiteral:
    """A single- or double-quoted string; ``value`` holds the decoded text."""

    value: str


@dataclass(frozen=True)
class ArrayLiteral:
    elements: Tuple["Expression", ...]


@dataclass(frozen=True)
class Property:
    """A ``key: value`` member of an object literal.

    ``key`` is ``None`` unless the key is a plain identifier, so computed and
    quoted keys never collide with recognised names.
    """

    key: Optional[str]
    value: "Expression"


@dataclass(frozen=True)
class ObjectLiteral:
    """Object literal; spreads, shorthands and methods are not represented."""

    properties: Tuple[Property, ...]


@dataclass(frozen=True)
class CallExpression:
    callee: "Expression"
    arguments: Tuple["Expression", ...]


@dataclass(frozen=True)
class Opaque:
    """Any expression kind the extractor does not model."""

    kind: str


Expression = Union[Identifier, StringLiteral, ArrayLiteral, ObjectLiteral, CallExpression, Opaque]


@dataclass(frozen=True)
class ClassDeclaration:
    """A class declaration with its decorator expressions in source order."""

    name: Optional[str]
    decorators: Tuple[Expression, ...]
    line: int


class SourceSyntaxError(ValueError):
    """Raised when a parsed file contains error or missing nodes."""

    def __init__(self, line: int, column: int) -> None:
        super().__init__(f"syntax error at line {line}, column {column}")
        self.line = line
        self.column = column


def create_parser() -> Parser:
    """Return a parser configured for TypeScript."""
    return Parser(TYPESCRIPT)


def check_syntax(tree: Tree) -> None:
    """Raise :class:`SourceSyntaxError` at the first error in ``tree``."""
    root = tree.root_node
    if not root.has_error:
        return
    node = _first_error(root) or root
    row, column = node.start_point
    raise SourceSyntaxError(row + 1, column + 1)


def _first_error(root: Node) -> Optional[Node]:
    stack = [root]
    while stack:
        node = stack.pop()
        if node.is_error or node.is_missing:
            return node
        stack.extend(
            child for child in reversed(node.children) if child.has_error or child.is_missing
        )
    return None


def iter_class_declarations(root: Node, source: bytes) -> Iterator[ClassDeclaration]:
    """Yield every class declaration below ``root`` in source order.

    The walk is iterative; nesting depth is not limited by the recursion limit.
    """
    stack = list(reversed(root.children))
    while stack:
        node = stack.pop()
        if _is_class_declaration(node):
            yield _lower_class(node, source)
        stack.extend(reversed(node.children))


def _is_class_declaration(node: Node) -> bool:
    if node.type in _CLASS_NODE_TYPES:
        return True
    # `export default class {}` parses as an unnamed class expression.
    parent = node.parent
    return (
        node.is_named
        and node.type == "class"
        and parent is not None
        and parent.type == "export_statement"
    )


def _lower_class(node: Node, source: bytes) -> ClassDeclaration:
    decorator_nodes = []
    # `@Component(...) export class X` attaches the decorators to the export.
    parent = node.parent
    if parent is not None and parent.type == "export_statement":
        decorator_nodes.extend(child for child in parent.children if child.type == "decorator")
    decorator_nodes.extend(child for child in node.children if child.type == "decorator")

    decorators = []
    for decorator in decorator_nodes:
        expression = _significant_children(decorator)
        if expression:
            decorators.append(lower_expression(expression[0], source))

    name_node = node.child_by_field_name("name")
    name = _node_text(name_node, source) if name_node is not None else None
    return ClassDeclaration(
        name=name or None,
        decorators=tuple(decorators),
        line=node.start_point[0] + 1,
    )


def lower_expression(node: Node, source: bytes) -> Expression:
    """Convert a tree-sitter expression node into the typed model."""
    handler = _LOWERINGS.get(node.type)
    if handler is None:
        return Opaque(node.type)
    return handler(node, source)


def _lower_identifier(node: Node, source: bytes) -> Expression:
    return Identifier(_node_text(node, source))


def _lower_string(node: Node, source: bytes) -> Expression:
    raw = _node_text(node, source)
    return StringLiteral(decode_string_literal(raw[1:-1]))


def _lower_array(node: Node, source: bytes) -> Expression:
    return ArrayLiteral(tuple(lower_expression(child, source) for child in _significant_children(node)))


def _lower_object(node: Node, source: bytes) -> Expression:
    properties = []
    for child in _significant_children(node):
        if child.type != "pair":
            continue
        key_node = child.child_by_field_name("key")
        value_node = child.child_by_field_name("value")
        if value_node is None:
            continue
        key = None
        if key_node is not None and key_node.type == "property_identifier":
            key = _node_text(key_node, source)
        properties.append(Property(key=key, value=lower_expression(value_node, source)))
    return ObjectLiteral(tuple(properties))


def _lower_call(node: Node, source: bytes) -> Expression:
    function_node = node.child_by_field_name("function")
    arguments_node = node.child_by_field_name("arguments")
    callee = lower_expression(function_node, source) if function_node is not None else Opaque("missing")
    arguments: Tuple[Expression, ...] = ()
    if arguments_node is not None:
        arguments = tuple(lower_expression(child, source) for child in _significant_children(arguments_node))
    return CallExpression(callee=callee, arguments=arguments)


_LOWERINGS: Dict[str, Callable[[Node, bytes], Expression]] = {
    "identifier": _lower_identifier,
    "string": _lower_string,
    "array": _lower_array,
    "object": _lower_object,
    "call_expression": _lower_call,
}


def _significant_children(node: Node) -> list[Node]:
    return [child for child in node.named_children if child.type not in _TRIVIA_NODE_TYPES]


def _node_text(node: Node, source: bytes) -> str:
    return source[node.start_byte : node.end_byte].decode("utf-8", errors="replace")


_ESCAPE_PATTERN = re.compile(
    r"\\(u\{[0-9a-fA-F]+\}|u[0-9a-fA-F]{4}|x[0-9a-fA-F]{2}|[0-3][0-7]{2}|[0-7]{1,2}|\r\n|[\s\S])"
)
_SIMPLE_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "b": "\b", "f": "\f", "v": "\v"}
_LINE_CONTINUATIONS = {"\n", "\r", "\r\n", "\u2028", "\u2029"}


def decode_string_literal(body: str) -> str:
    """Decode JavaScript escape sequences in the body of a quoted string."""
    if "\\" not in body:
        return body
    decoded = _ESCAPE_PATTERN.sub(_decode_escape, body)
    # \uD83D\uDE00 style pairs arrive as two lone surrogates.
    return decoded.encode("utf-16", "surrogatepass").decode("utf-16", errors="replace")


def _decode_escape(match: re.Match[str]) -> str:
    sequence = match.group(1)
    if sequence.startswith("u{"):
        code_point = int(sequence[2:-1], 16)
        return chr(code_point) if code_point <= 0x10FFFF else sequence
    if sequence[0] == "u" and len(sequence) == 5:
        return chr(int(sequence[1:], 16))
    if sequence[0] == "x" and len(sequence) == 3:
        return chr(int(sequence[1:], 16))
    if sequence[0] in "01234567":
        return chr(int(sequence, 8))
    if sequence in _LINE_CONTINUATIONS:
        return ""
    return _SIMPLE_ESCAPES.get(sequence, sequence)


__all__ = [
    "ArrayLiteral",
    "CallExpression",
    "ClassDeclaration",
    "Expression",
    "Identifier",
    "ObjectLiteral",
    "Opaque",
    "Property",
    "SourceSyntaxError",
    "StringLiteral",
    "TYPESCRIPT",
    "check_syntax",
    "create_parser",
    "decode_string_literal",
    "iter_class_declarations",
    "lower_expression",
]

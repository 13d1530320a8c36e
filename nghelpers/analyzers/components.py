"""Tree-sitter powered `@Component` metadata extractor."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, List, Optional, TypeGuard

from tree_sitter import Parser

from ..logging import get_logger
from ..models import ComponentRecord
from .syntax import (
    ArrayLiteral,
    CallExpression,
    ClassDeclaration,
    Expression,
    Identifier,
    ObjectLiteral,
    StringLiteral,
    check_syntax,
    create_parser,
    iter_class_declarations,
)

COMPONENT_DECORATOR = "Component"
UNKNOWN_CLASS_NAME = "Unknown"

_STRING_FIELDS = ("selector", "template", "templateUrl")
_LIST_FIELDS = ("inputs", "outputs")

logger = get_logger("analyzers.components")


class ComponentExtractor:
    """Extracts component records from TypeScript sources."""

    def __init__(self, parser: Optional[Parser] = None) -> None:
        self._parser = parser or create_parser()

    def extract_file(self, path: Path, display_path: Optional[str] = None) -> List[ComponentRecord]:
        """Parse ``path`` and return one record per component decorator.

        Raises ``OSError``/``UnicodeDecodeError`` when the file cannot be read
        and :class:`~nghelpers.analyzers.syntax.SourceSyntaxError` when it
        does not parse cleanly.
        """
        source = path.read_text(encoding="utf-8")
        return self.extract_source(source, display_path or str(path))

    def extract_source(self, source: str, file_path: str) -> List[ComponentRecord]:
        source_bytes = source.encode("utf-8")
        tree = self._parser.parse(source_bytes)
        check_syntax(tree)

        records: List[ComponentRecord] = []
        for declaration in iter_class_declarations(tree.root_node, source_bytes):
            records.extend(self._records_for_class(declaration, file_path))
        logger.debug("Found %d component(s) in %s", len(records), file_path)
        return records

    def _records_for_class(
        self, declaration: ClassDeclaration, file_path: str
    ) -> Iterable[ComponentRecord]:
        class_name = declaration.name or UNKNOWN_CLASS_NAME
        for decorator in declaration.decorators:
            if not is_component_decorator(decorator):
                continue
            record = record_from_decorator(decorator, class_name, file_path)
            if record is not None:
                yield record


def is_component_decorator(expression: Expression) -> TypeGuard[CallExpression]:
    """Return True for `Component(...)` calls with a bare identifier callee."""
    if not isinstance(expression, CallExpression):
        return False
    callee = expression.callee
    return isinstance(callee, Identifier) and callee.name == COMPONENT_DECORATOR


def record_from_decorator(
    call: CallExpression, class_name: str, file_path: str
) -> Optional[ComponentRecord]:
    """Build a record from the decorator's configuration object, if it has one."""
    if not call.arguments:
        return None
    config = call.arguments[0]
    if not isinstance(config, ObjectLiteral):
        return None

    strings = {}
    lists = {}
    for prop in config.properties:
        if prop.key in _STRING_FIELDS and isinstance(prop.value, StringLiteral):
            strings[prop.key] = prop.value.value
        elif prop.key in _LIST_FIELDS and isinstance(prop.value, ArrayLiteral):
            lists[prop.key] = _string_elements(prop.value)

    return ComponentRecord(
        class_name=class_name,
        selector=strings.get("selector", ""),
        file_path=file_path,
        template=strings.get("template"),
        template_url=strings.get("templateUrl"),
        inputs=lists.get("inputs", ()),
        outputs=lists.get("outputs", ()),
    )


def _string_elements(array: ArrayLiteral) -> tuple[str, ...]:
    return tuple(element.value for element in array.elements if isinstance(element, StringLiteral))


__all__ = [
    "COMPONENT_DECORATOR",
    "ComponentExtractor",
    "UNKNOWN_CLASS_NAME",
    "is_component_decorator",
    "record_from_decorator",
]

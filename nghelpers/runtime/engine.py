"""Compilation and invocation of registered function sources."""

from __future__ import annotations

import builtins
import io
import tokenize
import types
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Set

from ..logging import get_logger

FUNCTION_NAME = "anonymous"
_FILENAME = "<nghelpers-function>"
_INDENT = "    "
_STRING_START_TOKENS = {"FSTRING_START", "TSTRING_START"}
_STRING_END_TOKENS = {"FSTRING_END", "TSTRING_END"}

logger = get_logger("runtime.engine")


def build_function_source(args: Sequence[str], body: str) -> str:
    """Wrap ``body`` in a function definition taking ``args``.

    Lines are indented by four spaces, except continuation lines of
    multi-line string literals, whose text is part of the literal's value.
    The body is not validated; errors surface when the source is compiled.
    """
    params = ", ".join(args)
    literal_lines = _string_continuation_lines(body)
    lines = body.splitlines(keepends=True)
    indented = "".join(
        line if number in literal_lines or not line.strip() else _INDENT + line
        for number, line in enumerate(lines, start=1)
    )
    if not indented.endswith("\n"):
        indented += "\n"
    return f"def {FUNCTION_NAME}({params}):\n{indented}"


def _string_continuation_lines(body: str) -> Set[int]:
    """Return 1-based numbers of lines that start inside a string literal."""
    lines: Set[int] = set()
    opened: List[int] = []
    try:
        for token in tokenize.generate_tokens(io.StringIO(body).readline):
            name = tokenize.tok_name[token.type]
            if token.type == tokenize.STRING:
                lines.update(range(token.start[0] + 1, token.end[0] + 1))
            elif name in _STRING_START_TOKENS:
                opened.append(token.start[0])
            elif name in _STRING_END_TOKENS and opened:
                lines.update(range(opened.pop() + 1, token.end[0] + 1))
    except (tokenize.TokenError, SyntaxError) as exc:
        logger.debug("Function body did not tokenize: %s", exc)
    return lines


class ExecutionContext:
    """Global namespace shared by every function compiled in this process."""

    def __init__(self, initial: Optional[Mapping[str, Any]] = None) -> None:
        self.globals: Dict[str, Any] = {
            "__builtins__": builtins,
            "__name__": "nghelpers.context",
        }
        if initial:
            self.globals.update(initial)


class ScriptEngine:
    """Turns source text into callables bound to an :class:`ExecutionContext`."""

    def __init__(self, context: Optional[ExecutionContext] = None) -> None:
        self.context = context or ExecutionContext()

    def compile(self, source: str) -> Callable[..., Any]:
        """Evaluate ``source`` and return the function it produces.

        Expression sources (``lambda x: x``) evaluate to their value. Statement
        sources are executed in the context and yield the function bound to
        ``anonymous``, or else the last callable they bind.
        """
        namespace = self.context.globals
        try:
            code = compile(source, _FILENAME, "eval")
        except SyntaxError:
            code = None
        if code is not None:
            value = eval(code, namespace)
        else:
            before = dict(namespace)
            exec(compile(source, _FILENAME, "exec"), namespace)
            value = _defined_function(namespace, before)
        if not callable(value):
            raise TypeError("source did not evaluate to a function")
        return value

    def bind(self, function: Callable[..., Any]) -> Callable[..., Any]:
        """Rebind a plain function so its globals are the shared context."""
        if not isinstance(function, types.FunctionType):
            return function
        if function.__globals__ is self.context.globals:
            return function
        rebound = types.FunctionType(
            function.__code__,
            self.context.globals,
            function.__name__,
            function.__defaults__,
            function.__closure__,
        )
        rebound.__kwdefaults__ = function.__kwdefaults__
        return rebound

    def invoke(self, function: Callable[..., Any], args: Sequence[Any] = ()) -> Any:
        return self.bind(function)(*args)


def _defined_function(namespace: Mapping[str, Any], before: Mapping[str, Any]) -> Any:
    changed = [
        name
        for name, value in namespace.items()
        if before.get(name, _MISSING) is not value
    ]
    if FUNCTION_NAME in changed:
        return namespace[FUNCTION_NAME]
    for name in reversed(changed):
        if callable(namespace[name]):
            return namespace[name]
    return None


_MISSING = object()


__all__ = ["ExecutionContext", "FUNCTION_NAME", "ScriptEngine", "build_function_source"]

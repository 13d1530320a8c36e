"""Tests for the script engine."""

from __future__ import annotations

import pytest

from nghelpers.runtime.engine import ExecutionContext, ScriptEngine, build_function_source


def test_build_function_source_wraps_body() -> None:
    source = build_function_source(["x", "y"], "total = x + y\nreturn total;")

    assert source == "def anonymous(x, y):\n    total = x + y\n    return total;\n"


def test_build_function_source_without_args() -> None:
    assert build_function_source([], "return 1").startswith("def anonymous():\n")


def test_build_function_source_keeps_string_continuation_lines() -> None:
    source = build_function_source([], 'value = """first\nsecond"""\nreturn value')

    assert source == 'def anonymous():\n    value = """first\nsecond"""\n    return value\n'


def test_build_function_source_indents_untokenizable_bodies() -> None:
    assert build_function_source([], "return (\n1") == "def anonymous():\n    return (\n    1\n"


def test_compile_and_invoke_registered_source() -> None:
    engine = ScriptEngine()
    function = engine.compile(build_function_source(["x"], "return x * 2;"))

    assert engine.invoke(function, [21]) == 42


def test_compile_expression_source() -> None:
    engine = ScriptEngine()
    function = engine.compile("lambda a, b: a - b")

    assert engine.invoke(function, [5, 3]) == 2


def test_compile_prefers_anonymous_over_helpers() -> None:
    engine = ScriptEngine()
    function = engine.compile(
        "def anonymous(n):\n    return helper(n)\n\ndef helper(n):\n    return n + 1\n"
    )

    assert engine.invoke(function, [1]) == 2


def test_recursive_functions_resolve_through_context() -> None:
    engine = ScriptEngine()
    function = engine.compile(
        build_function_source(["n"], "return 1 if n <= 1 else n * anonymous(n - 1)")
    )

    assert engine.invoke(function, [5]) == 120


def test_compile_rejects_non_callables() -> None:
    engine = ScriptEngine()
    with pytest.raises(TypeError, match="did not evaluate to a function"):
        engine.compile("40 + 2")
    with pytest.raises(TypeError):
        engine.compile("value = 3")


def test_compile_raises_on_malformed_source() -> None:
    with pytest.raises(SyntaxError):
        ScriptEngine().compile(build_function_source([], "return ("))


def test_functions_share_the_context_globals() -> None:
    context = ExecutionContext({"counter": 0})
    engine = ScriptEngine(context)
    bump = engine.compile(build_function_source([], "global counter\ncounter += 1\nreturn counter"))

    engine.invoke(bump)
    engine.invoke(bump)

    assert context.globals["counter"] == 2


def test_bind_replaces_caller_globals_with_context() -> None:
    engine = ScriptEngine(ExecutionContext({"factor": 3}))

    def scaled(value, offset=0):
        return value * factor + offset  # noqa: F821 - resolved from the context

    bound = engine.bind(scaled)

    assert bound.__globals__ is engine.context.globals  # type: ignore[attr-defined]
    assert engine.invoke(scaled, [2]) == 6
    assert engine.invoke(scaled, [2, 1]) == 7


def test_bind_leaves_builtins_alone() -> None:
    engine = ScriptEngine()
    assert engine.bind(len) is len

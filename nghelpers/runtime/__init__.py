"""Dynamic function registry and executor."""

from .engine import ExecutionContext, ScriptEngine, build_function_source
from .errors import EvaluationFailure, InvalidInput, NotFound, RuntimeHelperError
from .policy import PolicyGate, discover_policy
from .registry import EXECUTE_COMMAND, NEW_FUNCTION_COMMAND, FunctionRegistry

__all__ = [
    "EXECUTE_COMMAND",
    "EvaluationFailure",
    "ExecutionContext",
    "FunctionRegistry",
    "InvalidInput",
    "NEW_FUNCTION_COMMAND",
    "NotFound",
    "PolicyGate",
    "RuntimeHelperError",
    "ScriptEngine",
    "build_function_source",
    "discover_policy",
]

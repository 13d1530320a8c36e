"""Function registry: register new functions and execute cached ones."""

from __future__ import annotations

import json
import random
import string
import time
import traceback
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..logging import get_logger
from ..models import FunctionRecord
from ..stores import FunctionCache
from .engine import ScriptEngine, build_function_source
from .errors import EvaluationFailure, InvalidInput, NotFound
from .policy import PolicyGate

NEW_FUNCTION_COMMAND = "new-function"
EXECUTE_COMMAND = "execute"

TRUSTED_PREFIX = "trusted_"
PLAIN_PREFIX = "fn_"

_ID_ALPHABET = string.digits + string.ascii_lowercase
_ID_SUFFIX_LENGTH = 9

logger = get_logger("runtime.registry")


class RegisterRequest(BaseModel):
    args: Optional[List[str]] = None
    body: Optional[str] = None


class ExecuteRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    function_id: Optional[str] = Field(default=None, alias="functionId")
    args: Optional[List[Any]] = None
    source: Optional[str] = None


def new_function_id(
    trusted: bool,
    *,
    clock: Callable[[], float] = time.time,
    rng: random.Random | None = None,
) -> str:
    """Return ``<prefix><epoch ms>_<random base36 suffix>``."""
    chooser = rng or random
    prefix = TRUSTED_PREFIX if trusted else PLAIN_PREFIX
    suffix = "".join(chooser.choice(_ID_ALPHABET) for _ in range(_ID_SUFFIX_LENGTH))
    return f"{prefix}{int(clock() * 1000)}_{suffix}"


class FunctionRegistry:
    """Executes `new-function` and `execute` commands against the cache."""

    def __init__(
        self,
        cache_path: Path,
        *,
        policy: Optional[PolicyGate] = None,
        engine: Optional[ScriptEngine] = None,
        id_factory: Callable[[bool], str] = new_function_id,
    ) -> None:
        self._cache_path = cache_path
        self._policy = policy or PolicyGate()
        self._engine = engine or ScriptEngine()
        self._id_factory = id_factory

    def dispatch(self, command: str, payload: Any) -> Dict[str, Any]:
        if command == NEW_FUNCTION_COMMAND:
            return self.register(payload)
        if command == EXECUTE_COMMAND:
            return self.execute(payload)
        raise InvalidInput(f"Unknown command: {command}")

    def register(self, payload: Any) -> Dict[str, Any]:
        """Store a new function built from ``args`` and ``body``."""
        request = _parse(RegisterRequest, payload)
        if not request.body:
            raise InvalidInput("function body is required")

        source = build_function_source(request.args or [], request.body)
        artifact = self._policy.create_script(source)
        function_id = self._id_factory(artifact is not None)

        cache = FunctionCache(self._cache_path)
        cache.store(
            FunctionRecord(function_id=function_id, source=source, sandboxed_artifact=artifact)
        )
        cache.persist()
        logger.info("Registered %s", function_id)
        return {"functionId": function_id, "source": source}

    def execute(self, payload: Any) -> Dict[str, Any]:
        """Run a cached or inline function and return its result."""
        request = _parse(ExecuteRequest, payload)
        source = request.source
        artifact: Optional[str] = None

        if request.function_id:
            record = FunctionCache(self._cache_path).get(request.function_id)
            if record is not None:
                source = record.source
                artifact = record.sandboxed_artifact
            elif not source:
                raise NotFound(
                    f"Function {request.function_id} not found in cache and no source provided"
                )
            else:
                logger.debug("Function %s not cached; using inline source", request.function_id)
        elif not source:
            raise InvalidInput("Either functionId or source must be provided")

        args = request.args or []
        try:
            function = self._load(source, artifact)
            result = self._engine.invoke(function, args)
        except Exception as exc:
            raise _evaluation_failure(exc) from exc
        try:
            json.dumps(result, allow_nan=False)
        except (TypeError, ValueError) as exc:
            raise EvaluationFailure(f"result is not JSON serializable: {exc}") from exc
        return {"result": result}

    def _load(self, source: str, artifact: Optional[str]) -> Callable[..., Any]:
        if artifact is not None and self._policy.available:
            script = self._policy.create_script(artifact)
            if script is not None:
                try:
                    return self._engine.compile(script)
                except Exception as exc:  # the raw source is the fallback
                    logger.debug("Sandboxed artifact failed to compile: %s", exc)
        return self._engine.compile(source)


def _parse(model: type[BaseModel], payload: Any) -> Any:
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise InvalidInput(_describe_validation_error(exc)) from exc


def _describe_validation_error(exc: ValidationError) -> str:
    problems = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ())) or "input"
        problems.append(f"{location}: {error.get('msg', 'invalid value')}")
    return "invalid input (" + "; ".join(problems) + ")"


def _evaluation_failure(exc: BaseException) -> EvaluationFailure:
    message = str(exc) or type(exc).__name__
    return EvaluationFailure(message, traceback.format_exc())


__all__ = [
    "EXECUTE_COMMAND",
    "ExecuteRequest",
    "FunctionRegistry",
    "NEW_FUNCTION_COMMAND",
    "RegisterRequest",
    "new_function_id",
]

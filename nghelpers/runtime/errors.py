"""Error types reported by the function registry."""

from __future__ import annotations

from typing import Dict, Optional


class RuntimeHelperError(RuntimeError):
    """Base class for failures reported back to the calling driver."""

    def to_payload(self) -> Dict[str, str]:
        return {"error": str(self)}


class InvalidInput(RuntimeHelperError):
    """Raised for missing fields, unknown commands and malformed payloads."""


class NotFound(RuntimeHelperError):
    """Raised when a function id is unknown and no fallback source was sent."""


class EvaluationFailure(RuntimeHelperError):
    """Raised when compiling or invoking a function fails."""

    def __init__(self, message: str, stack: Optional[str] = None) -> None:
        super().__init__(message)
        self.stack = stack

    def to_payload(self) -> Dict[str, str]:
        payload = super().to_payload()
        if self.stack is not None:
            payload["stack"] = self.stack
        return payload


__all__ = ["EvaluationFailure", "InvalidInput", "NotFound", "RuntimeHelperError"]

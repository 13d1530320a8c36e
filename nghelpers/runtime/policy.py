"""Optional host security policy mediating creation of executable scripts.

A host opts in by exposing a factory ``factory(policy_name) -> policy``
where ``policy.create_script(text)`` returns the approved script text or
raises to reject it. Factories are found through an explicit
``module:attribute`` path or the ``nghelpers.script_policies`` entry point
group.
"""

from __future__ import annotations

from importlib import import_module, metadata
from typing import Callable, Iterable, Optional, Protocol

from ..logging import get_logger

POLICY_NAME = "nghelpers#unsafe-jit"

_ENTRY_POINT_GROUP = "nghelpers.script_policies"

logger = get_logger("runtime.policy")


class ScriptPolicy(Protocol):
    """Gatekeeper approving script text before it is evaluated."""

    def create_script(self, text: str) -> str:
        """Return the approved script or raise to reject it."""


PolicyFactory = Callable[[str], ScriptPolicy]


class PolicyGate:
    """Routes script creation through the host policy when one is installed."""

    def __init__(self, factory: Optional[PolicyFactory] = None) -> None:
        self._factory = factory

    @property
    def available(self) -> bool:
        return self._factory is not None

    def create_script(self, text: str) -> Optional[str]:
        """Return the policy-approved form of ``text``.

        ``None`` means the policy is unavailable or refused; callers then use
        the unmediated path.
        """
        if self._factory is None:
            return None
        try:
            policy = self._factory(POLICY_NAME)
            return str(policy.create_script(text))
        except Exception as exc:  # any refusal falls back to the plain path
            logger.debug("Script policy rejected source: %s", exc)
            return None


def discover_policy(import_path: Optional[str] = None) -> PolicyGate:
    """Return a gate for the configured or advertised policy factory."""
    factory: Optional[PolicyFactory] = None
    if import_path:
        try:
            factory = _import_object(import_path)
        except Exception as exc:  # a failing host module leaves the policy unavailable
            logger.debug("Script policy %s unavailable: %s", import_path, exc)
    else:
        for entry in _iter_entry_points():
            try:
                factory = entry.load()
            except Exception as exc:
                logger.debug("Failed to load script policy '%s': %s", entry.name, exc)
                continue
            break
    if factory is not None and not callable(factory):
        logger.debug("Script policy factory %r is not callable", factory)
        factory = None
    return PolicyGate(factory)


def _import_object(import_path: str) -> PolicyFactory:
    module_name, sep, attribute = import_path.partition(":")
    if not sep or not module_name or not attribute:
        raise ValueError(f"Expected 'module:attribute', got '{import_path}'")
    target: object = import_module(module_name)
    for part in attribute.split("."):
        target = getattr(target, part)
    return target  # type: ignore[return-value]


def _iter_entry_points() -> Iterable[metadata.EntryPoint]:
    return metadata.entry_points(group=_ENTRY_POINT_GROUP)


__all__ = ["POLICY_NAME", "PolicyFactory", "PolicyGate", "ScriptPolicy", "discover_policy"]

"""Static analysis of TypeScript sources for component metadata."""

from .components import COMPONENT_DECORATOR, ComponentExtractor
from .syntax import SourceSyntaxError

__all__ = [
    "COMPONENT_DECORATOR",
    "ComponentExtractor",
    "SourceSyntaxError",
]

"""Persistent stores used by nghelpers services."""

from .function_cache import FunctionCache, default_cache_path

__all__ = ["FunctionCache", "default_cache_path"]

"""Configuration loading for nghelpers (.nghelpers.yml)."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

CONFIG_FILENAME = ".nghelpers.yml"
CACHE_DIR_ENV = "NGHELPERS_CACHE_DIR"
SCRIPT_POLICY_ENV = "NGHELPERS_SCRIPT_POLICY"


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class ScanConfig:
    """Extra directory names pruned by the metadata extractor."""

    exclude_dirs: List[str] = field(default_factory=list)


@dataclass
class RuntimeConfig:
    """Function registry settings."""

    cache_dir: Optional[Path] = None
    script_policy: Optional[str] = None


@dataclass
class HelpersConfig:
    """Represents the settings defined in .nghelpers.yml."""

    root: Path
    scan: ScanConfig = field(default_factory=ScanConfig)
    runtime: RuntimeConfig = field(default_factory=RuntimeConfig)

    def cache_dir(self) -> Optional[Path]:
        """Return the function cache directory, honoring the environment override."""
        override = os.environ.get(CACHE_DIR_ENV)
        if override:
            return Path(override).expanduser()
        return self.runtime.cache_dir

    def script_policy(self) -> Optional[str]:
        """Return the `module:attribute` path of the script policy factory, if any."""
        override = os.environ.get(SCRIPT_POLICY_ENV)
        if override:
            return override
        return self.runtime.script_policy


def load_config(config_path: Path) -> HelpersConfig:
    """Load configuration from disk."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent

    if not config_file.is_file():
        return HelpersConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    scan = ScanConfig()
    scan_data = _as_dict(data.get("scan"))
    if scan_data:
        scan.exclude_dirs = _as_str_list(scan_data.get("exclude_dirs"))

    runtime = RuntimeConfig()
    runtime_data = _as_dict(data.get("runtime"))
    if runtime_data:
        cache_dir = _as_str(runtime_data.get("cache_dir"))
        if cache_dir:
            runtime.cache_dir = root / Path(cache_dir).expanduser()
        runtime.script_policy = _as_str(runtime_data.get("script_policy"))

    return HelpersConfig(root=root, scan=scan, runtime=runtime)


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    if config_path.name != CONFIG_FILENAME:
        return (config_path.parent / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigError(f"Failed to read {path.name}: {exc}") from exc
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded if loaded is not None else {}


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float, bool)) else None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float, bool))]
    return []


__all__ = [
    "CACHE_DIR_ENV",
    "CONFIG_FILENAME",
    "ConfigError",
    "HelpersConfig",
    "RuntimeConfig",
    "SCRIPT_POLICY_ENV",
    "ScanConfig",
    "load_config",
]

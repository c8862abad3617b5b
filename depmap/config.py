"""Configuration loading for depmap (.depmap.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

from .errors import DepmapError
from .models import (
    DEFAULT_SKIPPED_LIBRARY_PREFIXES,
    DEFAULT_SKIPPED_TARGET_PREFIXES,
    ResolutionContext,
)
from .resolver.paths import DEFAULT_BUILD_FILE_NAMES

CONFIG_FILE_NAME = ".depmap.yml"


class ConfigError(DepmapError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class ResolverConfig:
    """Resolution settings from .depmap.yml."""

    preview: bool = False
    extensions: List[str] = field(default_factory=list)
    skip_targets: List[str] = field(default_factory=lambda: list(DEFAULT_SKIPPED_TARGET_PREFIXES))
    skip_libraries: List[str] = field(default_factory=lambda: list(DEFAULT_SKIPPED_LIBRARY_PREFIXES))
    build_file_names: List[str] = field(default_factory=lambda: list(DEFAULT_BUILD_FILE_NAMES))


@dataclass
class LoggingConfig:
    """Log verbosity and optional log file."""

    verbose: bool = False
    file: Optional[Path] = None


@dataclass
class DepmapConfig:
    """Represents the settings defined in .depmap.yml."""

    root: Path
    resolver: ResolverConfig = field(default_factory=ResolverConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def resolution_context(
        self, work_dir: Optional[Path] = None, *, preview: Optional[bool] = None
    ) -> ResolutionContext:
        """Build the context for one resolution; explicit arguments win over the file."""
        effective_preview = self.resolver.preview if preview is None else preview
        return ResolutionContext(
            work_dir=work_dir if work_dir is not None else self.root,
            generate_jars=not effective_preview,
            skipped_target_prefixes=tuple(self.resolver.skip_targets),
            skipped_library_prefixes=tuple(self.resolver.skip_libraries),
        )


def load_config(config_path: Path) -> DepmapConfig:
    """Load configuration from disk."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return DepmapConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILE_NAME} must contain a mapping at the root")

    resolver = ResolverConfig()
    resolver_data = _as_dict(data.get("resolver"))
    if resolver_data:
        resolver.preview = _as_bool(resolver_data.get("preview")) or False
        resolver.extensions = _as_str_list(resolver_data.get("extensions"))
        if "skip_targets" in resolver_data:
            resolver.skip_targets = _as_str_list(resolver_data.get("skip_targets"))
        if "skip_libraries" in resolver_data:
            resolver.skip_libraries = _as_str_list(resolver_data.get("skip_libraries"))
        build_file_names = _as_str_list(resolver_data.get("build_file_names"))
        if build_file_names:
            resolver.build_file_names = build_file_names

    logging_config = LoggingConfig()
    logging_data = _as_dict(data.get("logging"))
    if logging_data:
        logging_config.verbose = _as_bool(logging_data.get("verbose")) or False
        log_file = _as_str(logging_data.get("file"))
        logging_config.file = root / log_file if log_file else None

    return DepmapConfig(root=root, resolver=resolver, logging=logging_config)


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILE_NAME).resolve()
    if config_path.name != CONFIG_FILE_NAME and config_path.suffix not in {".yml", ".yaml"}:
        return (config_path.parent / CONFIG_FILE_NAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded or {}


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float, bool)) else None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float, bool))]
    return []


__all__ = [
    "CONFIG_FILE_NAME",
    "ConfigError",
    "DepmapConfig",
    "LoggingConfig",
    "ResolverConfig",
    "load_config",
]

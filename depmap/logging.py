"""Logger hierarchy and diagnostic reporting for depmap resolutions."""

from __future__ import annotations

import logging
from collections import Counter
from pathlib import Path
from typing import TYPE_CHECKING, Iterable

if TYPE_CHECKING:
    from .errors import Diagnostic

_LOGGER_NAME = "depmap"
_CONSOLE_FORMAT = "[depmap] %(levelname)s %(message)s"
_VERBOSE_CONSOLE_FORMAT = "[depmap] %(levelname)s %(name)s: %(message)s"
_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a logger under ``depmap``, e.g. ``get_logger("resolver.builder")``."""
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


def configure_logging(
    *, verbose: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Install the console handler and, when ``log_file`` is set, a file sink.

    Verbose mode lowers the level to DEBUG, which surfaces suppressed cycles
    and common-root decisions, and prefixes each line with the logger name.
    """
    level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    # Handlers from an earlier call in the same process are replaced.
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler()
    console.setLevel(level)
    console.setFormatter(logging.Formatter(_VERBOSE_CONSOLE_FORMAT if verbose else _CONSOLE_FORMAT))
    logger.addHandler(console)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        sink = logging.FileHandler(log_file, encoding="utf-8")
        sink.setLevel(logging.DEBUG)
        sink.setFormatter(logging.Formatter(_FILE_FORMAT))
        logger.addHandler(sink)

    return logger


def log_diagnostic(logger: logging.Logger, diagnostic: "Diagnostic") -> None:
    """Emit ``diagnostic`` at its own level, tagged with its kind."""
    logger.log(diagnostic.level, "%s (%s): %s", diagnostic.kind, diagnostic.subject, diagnostic.message)


def summarize_diagnostics(diagnostics: Iterable["Diagnostic"]) -> str | None:
    """Return a one-line count of warning-level diagnostics per kind, or ``None``."""
    counts = Counter(diagnostic.kind for diagnostic in diagnostics if diagnostic.is_warning)
    if not counts:
        return None
    total = sum(counts.values())
    details = ", ".join(f"{count} {kind}" for kind, count in sorted(counts.items()))
    noun = "warning" if total == 1 else "warnings"
    return f"{total} {noun} ({details})"


__all__ = ["configure_logging", "get_logger", "log_diagnostic", "summarize_diagnostics"]

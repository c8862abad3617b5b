"""Resolution pipeline: dependency map text in, module graph out."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple

from .config import ConfigError, DepmapConfig, load_config
from .logging import get_logger
from .models import ResolutionContext, TargetGraph
from .parser import parse_project_info
from .resolver import (
    BuildFileLookup,
    BuildFileProbe,
    ExtensionOutcome,
    ExtensionRegistry,
    ModuleGraphBuilder,
    ResolutionResult,
    ResolverExtension,
)
from .resolver.paths import DEFAULT_BUILD_FILE_NAMES


class Resolver:
    """Coordinates parsing, common-root merging and module graph building.

    Extensions are either passed directly or named in ``enabled_extensions``
    and looked up in ``registry``. Fresh extension instances are created for
    every resolution.
    """

    def __init__(
        self,
        context: ResolutionContext | None = None,
        *,
        extensions: Optional[Iterable[ResolverExtension]] = None,
        registry: ExtensionRegistry | None = None,
        enabled_extensions: Sequence[str] = (),
        build_file_lookup: BuildFileLookup | None = None,
        build_file_names: Sequence[str] = DEFAULT_BUILD_FILE_NAMES,
    ) -> None:
        self.context = context or ResolutionContext()
        self.registry = registry or ExtensionRegistry()
        self.enabled_extensions = list(enabled_extensions)
        self._extension_overrides = list(extensions) if extensions is not None else None
        self.build_file_lookup = build_file_lookup or BuildFileProbe(
            self.context.work_dir, build_file_names
        )
        self.logger = get_logger("orchestrator")

    @classmethod
    def from_config(
        cls,
        config: DepmapConfig,
        *,
        work_dir: Path | None = None,
        preview: bool | None = None,
        registry: ExtensionRegistry | None = None,
    ) -> "Resolver":
        return cls(
            config.resolution_context(work_dir, preview=preview),
            registry=registry or ExtensionRegistry.from_entry_points(),
            enabled_extensions=config.resolver.extensions,
            build_file_names=config.resolver.build_file_names,
        )

    @classmethod
    def for_directory(
        cls,
        work_dir: Path,
        *,
        preview: bool | None = None,
        registry: ExtensionRegistry | None = None,
    ) -> "Resolver":
        """Create a resolver configured from ``work_dir/.depmap.yml`` when present."""
        work_dir = work_dir.expanduser().resolve()
        try:
            config = load_config(work_dir)
        except ConfigError as exc:
            get_logger("orchestrator").warning("Ignoring configuration in %s: %s", work_dir, exc)
            config = DepmapConfig(root=work_dir)
        return cls.from_config(config, work_dir=work_dir, preview=preview, registry=registry)

    def resolve(self, text: str) -> ResolutionResult:
        """Parse the dependency map and resolve it.

        Raises :class:`~depmap.errors.MalformedPayload` when the text cannot be
        parsed; every other problem is recorded on the result.
        """
        self.logger.info(
            "Resolving dependency map (%s mode)", "preview" if self.context.preview else "full"
        )
        graph = parse_project_info(text)
        return self.resolve_graph(graph)

    def resolve_graph(self, graph: TargetGraph) -> ResolutionResult:
        extensions, failures = self._select_extensions()
        builder = ModuleGraphBuilder(self.context, build_file_lookup=self.build_file_lookup)
        result = builder.build(graph, extensions=extensions, extension_outcomes=failures)
        self.logger.info(
            "Resolved %d targets into %d modules with %d warnings",
            len(graph),
            len(result.graph),
            len(result.warnings),
        )
        return result

    def _select_extensions(self) -> Tuple[List[ResolverExtension], List[ExtensionOutcome]]:
        if self._extension_overrides is not None:
            return list(self._extension_overrides), []
        return self.registry.instantiate(self.enabled_extensions)


def resolve_payload(
    text: str,
    *,
    work_dir: Path | None = None,
    preview: bool = False,
) -> ResolutionResult:
    """Resolve ``text`` with default settings."""
    context = ResolutionContext(work_dir=work_dir, generate_jars=not preview)
    return Resolver(context).resolve(text)


__all__ = ["Resolver", "resolve_payload"]

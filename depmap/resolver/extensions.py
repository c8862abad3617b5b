"""Post-processing hooks that run after the module graph has been wired."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from importlib import metadata
from typing import Callable, Dict, Iterable, List, Mapping, MutableMapping, Optional, Sequence, Tuple

from ..logging import get_logger
from ..models import ModuleDraft, TargetGraph

_ENTRY_POINT_GROUP = "depmap.extensions"

_LOGGER = get_logger("resolver.extensions")


class ResolverExtension(ABC):
    """Contract for hooks that adjust the module graph after the builder passes."""

    name: str = "extension"

    @abstractmethod
    def resolve(self, graph: TargetGraph, modules: MutableMapping[str, ModuleDraft]) -> None:
        """Mutate ``modules`` (target address -> module) using the parsed target graph."""


@dataclass(frozen=True)
class ExtensionOutcome:
    """Result of loading or running a single extension."""

    name: str
    ok: bool
    error: Optional[str] = None


ExtensionFactory = Callable[[], ResolverExtension]


class ExtensionRegistry:
    """Named extension factories supplied when a resolver is constructed."""

    def __init__(self, factories: Optional[Mapping[str, ExtensionFactory]] = None) -> None:
        self._factories: Dict[str, ExtensionFactory] = {}
        for name, factory in (factories or {}).items():
            self.register(name, factory)

    @classmethod
    def from_entry_points(
        cls, factories: Optional[Mapping[str, ExtensionFactory]] = None
    ) -> "ExtensionRegistry":
        """Return a registry with ``factories`` plus those published under ``depmap.extensions``."""
        registry = cls(factories)
        for entry in _iter_entry_points():
            if entry.name.lower() in registry:
                continue

            def _factory(entry: metadata.EntryPoint = entry) -> ResolverExtension:
                return _coerce_extension(entry.load())

            registry.register(entry.name, _factory)
        return registry

    def register(self, name: str, factory: ExtensionFactory) -> None:
        self._factories[name.lower()] = factory

    def names(self) -> List[str]:
        return list(self._factories)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._factories

    def instantiate(
        self, enabled: Sequence[str]
    ) -> Tuple[List[ResolverExtension], List[ExtensionOutcome]]:
        """Create the enabled extensions; names that cannot be loaded become failed outcomes."""
        extensions: List[ResolverExtension] = []
        failures: List[ExtensionOutcome] = []
        for name in enabled:
            factory = self._factories.get(name.lower())
            if factory is None:
                failures.append(ExtensionOutcome(name=name, ok=False, error="unknown extension"))
                continue
            try:
                extension = _coerce_extension(factory())
            except Exception as exc:
                failures.append(ExtensionOutcome(name=name, ok=False, error=str(exc)))
                continue
            extension.name = name
            extensions.append(extension)
        return extensions, failures


def run_extensions(
    extensions: Iterable[ResolverExtension],
    graph: TargetGraph,
    modules: MutableMapping[str, ModuleDraft],
) -> List[ExtensionOutcome]:
    """Run every extension; a failing extension does not stop the others."""
    outcomes: List[ExtensionOutcome] = []
    for extension in extensions:
        try:
            extension.resolve(graph, modules)
        except Exception as exc:
            _LOGGER.error("Resolver extension %s failed: %s", extension.name, exc, exc_info=True)
            outcomes.append(ExtensionOutcome(name=extension.name, ok=False, error=str(exc)))
        else:
            outcomes.append(ExtensionOutcome(name=extension.name, ok=True))
    return outcomes


def _coerce_extension(obj: object) -> ResolverExtension:
    if isinstance(obj, ResolverExtension):
        return obj
    if isinstance(obj, type) and issubclass(obj, ResolverExtension):
        return obj()
    if callable(obj):
        instance = obj()
        if isinstance(instance, ResolverExtension):
            return instance
    raise TypeError("Resolver extension must be a ResolverExtension subclass or factory")


def _iter_entry_points() -> Iterable[metadata.EntryPoint]:
    return metadata.entry_points().select(group=_ENTRY_POINT_GROUP)


__all__ = [
    "ExtensionFactory",
    "ExtensionOutcome",
    "ExtensionRegistry",
    "ResolverExtension",
    "run_extensions",
]

"""Core data models shared across depmap components."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterator, List, Mapping, Optional, Tuple

from .source_types import SourceType

DEFAULT_SKIPPED_TARGET_PREFIXES: Tuple[str, ...] = (":scala-library",)
DEFAULT_SKIPPED_LIBRARY_PREFIXES: Tuple[str, ...] = ("org.scala-lang:scala-library",)


# Target graph (input side)


@dataclass(frozen=True)
class SourceRoot:
    """Source directory declared by a target, optionally tagged with a package prefix."""

    source_root: str
    package_prefix: Optional[str] = None

    @property
    def raw_source_root(self) -> str:
        """Return the root with the package directories stripped from its tail."""
        if not self.package_prefix:
            return self.source_root
        package_path = self.package_prefix.replace(".", "/")
        stripped = self.source_root.rstrip("/")
        if stripped.endswith("/" + package_path):
            return stripped[: -len(package_path) - 1]
        return self.source_root

    def path_for(self, source_type: Optional[SourceType]) -> str:
        """Return the directory registered for the given kind of source root."""
        if source_type is not None and source_type.is_resource:
            return self.raw_source_root
        return self.source_root


@dataclass(frozen=True)
class TargetInfo:
    """A build target as reported by the dependency map."""

    target_type: Optional[str] = None
    roots: Tuple[SourceRoot, ...] = ()
    targets: Tuple[str, ...] = ()
    libraries: Tuple[str, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.roots and not self.targets and not self.libraries


@dataclass(frozen=True)
class TargetGraph:
    """Parsed dependency map: targets in payload order plus the library table."""

    targets: Mapping[str, TargetInfo]
    libraries: Mapping[str, Tuple[str, ...]] = field(default_factory=dict)

    def items(self) -> Iterator[Tuple[str, TargetInfo]]:
        return iter(self.targets.items())

    def get(self, address: str) -> Optional[TargetInfo]:
        return self.targets.get(address)

    def get_libraries(self, library_id: str) -> Tuple[str, ...]:
        return self.libraries.get(library_id, ())

    def __contains__(self, address: object) -> bool:
        return address in self.targets

    def __len__(self) -> int:
        return len(self.targets)


@dataclass(frozen=True)
class ResolutionContext:
    """Per-resolution settings: where the build tool ran and whether jars must exist."""

    work_dir: Optional[Path] = None
    generate_jars: bool = True
    skipped_target_prefixes: Tuple[str, ...] = DEFAULT_SKIPPED_TARGET_PREFIXES
    skipped_library_prefixes: Tuple[str, ...] = DEFAULT_SKIPPED_LIBRARY_PREFIXES

    @property
    def preview(self) -> bool:
        return not self.generate_jars

    def skips_target(self, address: str) -> bool:
        return address.startswith(self.skipped_target_prefixes)

    def skips_library(self, library_id: str) -> bool:
        return library_id.startswith(self.skipped_library_prefixes)


# Module graph (output side)


@dataclass(frozen=True)
class SourceRootEntry:
    """Classified source root attached to a module content root."""

    path: str
    kind: SourceType
    package_prefix: Optional[str] = None


@dataclass(frozen=True)
class ModuleDependency:
    target: str
    exported: bool = True


@dataclass(frozen=True)
class LibraryDependency:
    library_id: str
    paths: Tuple[str, ...]
    exported: bool = True


@dataclass(frozen=True)
class Module:
    """Resolved IDE module."""

    name: str
    content_root: str
    source_roots: Tuple[SourceRootEntry, ...] = ()
    module_dependencies: Tuple[ModuleDependency, ...] = ()
    library_dependencies: Tuple[LibraryDependency, ...] = ()
    target_addresses: Tuple[str, ...] = ()
    build_file: Optional[str] = None
    merged: bool = False

    def depends_on(self, name: str) -> bool:
        return any(dep.target == name for dep in self.module_dependencies)


@dataclass
class ModuleDraft:
    """Mutable module used while a resolution pass is running."""

    name: str
    content_root: str
    target_addresses: List[str] = field(default_factory=list)
    build_file: Optional[str] = None
    merged: bool = False
    source_roots: List[SourceRootEntry] = field(default_factory=list)
    module_dependencies: List[ModuleDependency] = field(default_factory=list)
    library_dependencies: List[LibraryDependency] = field(default_factory=list)

    def depends_on(self, name: str) -> bool:
        return any(dep.target == name for dep in self.module_dependencies)

    def has_library(self, library_id: str) -> bool:
        return any(dep.library_id == library_id for dep in self.library_dependencies)

    def freeze(self) -> Module:
        return Module(
            name=self.name,
            content_root=self.content_root,
            source_roots=tuple(self.source_roots),
            module_dependencies=tuple(self.module_dependencies),
            library_dependencies=tuple(self.library_dependencies),
            target_addresses=tuple(self.target_addresses),
            build_file=self.build_file,
            merged=self.merged,
        )


@dataclass(frozen=True)
class ModuleGraph:
    """Final module graph handed to the consumer."""

    modules: Tuple[Module, ...] = ()

    def __post_init__(self) -> None:
        by_name: Dict[str, Module] = {}
        by_target: Dict[str, str] = {}
        for module in self.modules:
            by_name[module.name] = module
            if module.merged:
                continue
            for address in module.target_addresses:
                by_target.setdefault(address, module.name)
        object.__setattr__(self, "_by_name", by_name)
        object.__setattr__(self, "_by_target", by_target)

    def __iter__(self) -> Iterator[Module]:
        return iter(self.modules)

    def __len__(self) -> int:
        return len(self.modules)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name  # type: ignore[attr-defined]

    def names(self) -> List[str]:
        return [module.name for module in self.modules]

    def get(self, name: str) -> Optional[Module]:
        return self._by_name.get(name)  # type: ignore[attr-defined]

    def module_for_target(self, address: str) -> Optional[Module]:
        """Return the module created for a target, ignoring merged modules."""
        name = self._by_target.get(address)  # type: ignore[attr-defined]
        return self.get(name) if name is not None else None

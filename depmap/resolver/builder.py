"""Module graph construction from a parsed target graph."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Set, Tuple

from ..errors import (
    EXTENSION_FAILURE,
    INVALID_SOURCE_ROOT,
    MISSING_LIBRARY_ARTIFACTS,
    SUPPRESSED_CYCLE,
    Diagnostic,
    InvalidSourceRootPath,
)
from ..logging import get_logger, log_diagnostic
from ..models import (
    LibraryDependency,
    ModuleDependency,
    ModuleDraft,
    ModuleGraph,
    ResolutionContext,
    SourceRoot,
    SourceRootEntry,
    TargetGraph,
    TargetInfo,
)
from ..source_types import SourceType, source_type_for_target_type
from .common_roots import CommonRoots, MergedRoot, merge_common_roots, unique_name
from .extensions import ExtensionOutcome, ResolverExtension, run_extensions
from .paths import (
    BuildFileLookup,
    anchored,
    canonical_module_name,
    find_common_root,
    is_under,
    no_build_files,
    target_directory,
)


@dataclass(frozen=True)
class ResolutionResult:
    """Module graph plus everything that was recorded while building it."""

    graph: ModuleGraph
    diagnostics: Tuple[Diagnostic, ...] = ()
    extension_outcomes: Tuple[ExtensionOutcome, ...] = ()

    @property
    def warnings(self) -> List[Diagnostic]:
        return [diagnostic for diagnostic in self.diagnostics if diagnostic.is_warning]

    def diagnostics_of(self, kind: str) -> List[Diagnostic]:
        return [diagnostic for diagnostic in self.diagnostics if diagnostic.kind == kind]


class ModuleGraphBuilder:
    """Turns a :class:`TargetGraph` into a :class:`ModuleGraph`.

    Each call to :meth:`build` works on fresh state, so one builder can be
    reused for several resolutions.
    """

    def __init__(
        self,
        context: ResolutionContext,
        *,
        build_file_lookup: Optional[BuildFileLookup] = None,
    ) -> None:
        self.context = context
        self.build_file_lookup = build_file_lookup or no_build_files

    def build(
        self,
        graph: TargetGraph,
        *,
        extensions: Sequence[ResolverExtension] = (),
        extension_outcomes: Sequence[ExtensionOutcome] = (),
    ) -> ResolutionResult:
        run = _BuildRun(graph, self.context, self.build_file_lookup)
        run.create_modules()
        common_roots = merge_common_roots(graph, run.module_names(), self.context)
        run.diagnostics.extend(common_roots.diagnostics)
        run.create_merged_modules(common_roots)
        run.attach_source_roots(common_roots)
        run.add_target_dependencies()
        run.add_library_dependencies()

        outcomes = list(extension_outcomes)
        outcomes.extend(run_extensions(extensions, graph, run.by_target))
        for outcome in outcomes:
            if not outcome.ok:
                run.record(
                    EXTENSION_FAILURE,
                    f"Resolver extension {outcome.name} failed: {outcome.error}",
                    outcome.name,
                    level=logging.ERROR,
                )

        module_graph = run.freeze()
        return ResolutionResult(
            graph=module_graph,
            diagnostics=tuple(run.diagnostics),
            extension_outcomes=tuple(outcomes),
        )


class _BuildRun:
    """State of a single resolution pass."""

    def __init__(
        self,
        graph: TargetGraph,
        context: ResolutionContext,
        build_file_lookup: BuildFileLookup,
    ) -> None:
        self.graph = graph
        self.context = context
        self.build_file_lookup = build_file_lookup
        self.logger = get_logger("resolver.builder")
        self.modules: Dict[str, ModuleDraft] = {}
        self.by_target: Dict[str, ModuleDraft] = {}
        self.claimed_paths: Dict[str, str] = {}
        self.missing_libraries: Set[str] = set()
        self.diagnostics: List[Diagnostic] = []

    def module_names(self) -> Dict[str, str]:
        return {address: draft.name for address, draft in self.by_target.items()}

    # ------------------------------------------------------------------
    # Passes

    def create_modules(self) -> None:
        for address, info in self.graph.items():
            if self.context.skips_target(address):
                # Supplied through library dependencies instead.
                self.logger.debug("Skipping %s, it is provided as a library", address)
                continue
            if info.is_empty:
                self.logger.info("Skipping %s because it is empty", address)
                continue
            draft = self._new_module(address, info)
            self.by_target[address] = draft
        self.logger.debug("Created %d target modules", len(self.by_target))

    def create_merged_modules(self, common_roots: CommonRoots) -> None:
        for merged in common_roots.merged:
            draft = self._new_merged_module(merged)
            self._attach(draft, merged.root, merged.source_type)
            for address in merged.dependencies:
                dependency = self.by_target.get(address)
                if dependency is not None:
                    self.add_module_dependency(draft, dependency, exported=False)
            for library_id in merged.libraries:
                self.add_library(draft, library_id, exported=False)

    def attach_source_roots(self, common_roots: CommonRoots) -> None:
        for address, info in self.graph.items():
            draft = self.by_target.get(address)
            if draft is None or not info.roots:
                continue
            source_type = source_type_for_target_type(info.target_type)
            for root in info.roots:
                owner = common_roots.owner_of(root)
                if owner is not None and owner != draft.name:
                    self.add_module_dependency(draft, self.modules[owner], exported=True)
                    continue
                self._attach(draft, root, source_type)

    def add_target_dependencies(self) -> None:
        for address, info in self.graph.items():
            draft = self.by_target.get(address)
            if draft is None:
                continue
            for dependency_address in info.targets:
                dependency = self.by_target.get(dependency_address)
                if dependency is None:
                    continue
                self.add_module_dependency(draft, dependency, exported=True)

    def add_library_dependencies(self) -> None:
        for address, info in self.graph.items():
            draft = self.by_target.get(address)
            if draft is None:
                continue
            for library_id in info.libraries:
                self.add_library(draft, library_id, exported=True)

    # ------------------------------------------------------------------
    # Edges

    def add_module_dependency(self, source: ModuleDraft, target: ModuleDraft, *, exported: bool) -> None:
        if source.name == target.name or source.depends_on(target.name):
            return
        if target.depends_on(source.name):
            self.record(
                SUPPRESSED_CYCLE,
                f"Found cyclic dependency between {target.name} and {source.name}",
                source.name,
                level=logging.DEBUG,
            )
            return
        source.module_dependencies.append(ModuleDependency(target=target.name, exported=exported))

    def add_library(self, draft: ModuleDraft, library_id: str, *, exported: bool) -> None:
        if self.context.skips_library(library_id):
            return
        paths = self.graph.get_libraries(library_id)
        if not paths:
            # Missing jars are expected in preview mode. Each id is reported once.
            if self.context.generate_jars and library_id not in self.missing_libraries:
                self.missing_libraries.add(library_id)
                self.record(
                    MISSING_LIBRARY_ARTIFACTS,
                    f"No info for library: {library_id}",
                    draft.name,
                )
            return
        if draft.has_library(library_id):
            return
        draft.library_dependencies.append(
            LibraryDependency(library_id=library_id, paths=paths, exported=exported)
        )

    # ------------------------------------------------------------------
    # Helpers

    def record(self, kind: str, message: str, subject: str, *, level: int = logging.WARNING) -> None:
        diagnostic = Diagnostic(kind=kind, message=message, subject=subject, level=level)
        log_diagnostic(self.logger, diagnostic)
        self.diagnostics.append(diagnostic)

    def freeze(self) -> ModuleGraph:
        final: Dict[str, ModuleDraft] = dict(self.modules)
        targeted = {id(draft) for draft in self.by_target.values()}
        supplied: Dict[str, str] = {}
        # Extensions may add modules or replace the module of a target.
        for address, draft in self.by_target.items():
            current = final.get(draft.name)
            if current is draft:
                continue
            replaceable = (
                current is None
                or (draft.name not in supplied and not current.merged and id(current) not in targeted)
            )
            if not replaceable:
                self.record(
                    EXTENSION_FAILURE,
                    f"Module {draft.name} for {address} clashes with an existing module of that name",
                    address,
                    level=logging.ERROR,
                )
                continue
            final[draft.name] = draft
            supplied[draft.name] = address
        return ModuleGraph(modules=tuple(draft.freeze() for draft in final.values()))

    def _new_module(self, address: str, info: TargetInfo) -> ModuleDraft:
        source_type = source_type_for_target_type(info.target_type)
        directory = target_directory(address)
        content_root = (
            find_common_root([root.path_for(source_type) for root in info.roots])
            or directory
            or "."
        )
        draft = ModuleDraft(
            name=unique_name(canonical_module_name(address), self.modules),
            content_root=content_root,
            target_addresses=[address],
            build_file=self.build_file_lookup(directory) or directory or ".",
        )
        self.modules[draft.name] = draft
        return draft

    def _new_merged_module(self, merged: MergedRoot) -> ModuleDraft:
        draft = ModuleDraft(
            name=merged.name,
            content_root=merged.content_root,
            target_addresses=list(merged.target_addresses),
            build_file=self.build_file_lookup(merged.content_root) or merged.content_root,
            merged=True,
        )
        self.modules[draft.name] = draft
        return draft

    def _attach(self, draft: ModuleDraft, root: SourceRoot, source_type: SourceType) -> None:
        path = root.path_for(source_type)
        try:
            self._check_source_root(draft, path)
        except InvalidSourceRootPath as exc:
            self.record(INVALID_SOURCE_ROOT, str(exc), draft.name)
            return

        key = str(anchored(path, self.context.work_dir))
        claimed_by = self.claimed_paths.get(key)
        if claimed_by is not None and claimed_by != draft.name:
            self.logger.debug("%s is already registered by %s", path, claimed_by)
            self.add_module_dependency(draft, self.modules[claimed_by], exported=True)
            return
        self.claimed_paths[key] = draft.name

        entry = SourceRootEntry(path=path, kind=source_type, package_prefix=root.package_prefix)
        if entry not in draft.source_roots:
            draft.source_roots.append(entry)

    def _check_source_root(self, draft: ModuleDraft, path: str) -> None:
        if not path.strip():
            raise InvalidSourceRootPath(f"Empty source root for {draft.name}")
        if not is_under(path, draft.content_root, self.context.work_dir):
            raise InvalidSourceRootPath(
                f"Source root {path} is not under content root {draft.content_root} of {draft.name}"
            )


__all__ = ["ModuleGraphBuilder", "ResolutionResult"]

"""Ownership of source roots shared by several targets.

The IDE model allows a physical source root to belong to a single module.
When the dependency map reports the same root for several targets, one
module has to own it:

* if a referencing target has that root as its only root, the module
  created for that target owns it;
* otherwise a merged module is synthesized for the root. It depends on the
  union of the referencing targets' dependencies and libraries through
  non-exported edges, so modules depending on it do not inherit its
  classpath.

Every other referencing target then depends on the owner instead of
registering the root itself.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Container, Dict, Iterable, List, Mapping, Set, Tuple

from ..errors import BAD_COMMON_ROOT, Diagnostic
from ..logging import get_logger, log_diagnostic
from ..models import ResolutionContext, SourceRoot, TargetGraph, TargetInfo
from ..source_types import SourceType, source_type_for_target_type
from .paths import canonical_module_name, relative_path

_LOGGER = get_logger("resolver.common_roots")


@dataclass(frozen=True)
class MergedRoot:
    """Plan for a module synthesized to own a shared source root."""

    root: SourceRoot
    name: str
    content_root: str
    source_type: SourceType
    target_addresses: Tuple[str, ...]
    dependencies: Tuple[str, ...]
    libraries: Tuple[str, ...]


@dataclass
class CommonRoots:
    """Result of the merge: owning module name per shared root plus merged modules to create."""

    owners: Dict[SourceRoot, str] = field(default_factory=dict)
    merged: List[MergedRoot] = field(default_factory=list)
    diagnostics: List[Diagnostic] = field(default_factory=list)

    def owner_of(self, root: SourceRoot) -> str | None:
        return self.owners.get(root)


def collect_root_users(graph: TargetGraph) -> Dict[SourceRoot, List[Tuple[str, TargetInfo]]]:
    """Map each source root to the targets declaring it, in payload order."""
    users: Dict[SourceRoot, List[Tuple[str, TargetInfo]]] = {}
    for address, info in graph.items():
        for root in info.roots:
            users.setdefault(root, []).append((address, info))
    return users


def merge_common_roots(
    graph: TargetGraph,
    modules: Mapping[str, str],
    context: ResolutionContext,
) -> CommonRoots:
    """Decide which module owns every source root declared by more than one target.

    ``modules`` maps target addresses to the names of the modules already
    created for them.
    """
    result = CommonRoots()
    taken: Set[str] = set(modules.values())

    for root, users in collect_root_users(graph).items():
        if len(users) < 2:
            continue

        single_root_targets = [address for address, info in users if len(info.roots) == 1]
        if single_root_targets:
            owner_address = single_root_targets[0]
            if len(single_root_targets) > 1:
                _LOGGER.debug(
                    "Several single-root targets share %s, %s wins over %s",
                    root.source_root,
                    owner_address,
                    ", ".join(single_root_targets[1:]),
                )
            owner = modules.get(owner_address)
            if owner is None:
                diagnostic = Diagnostic(
                    kind=BAD_COMMON_ROOT,
                    message=f"Bad common source root {root.source_root} for {owner_address}",
                    subject=owner_address,
                )
                log_diagnostic(_LOGGER, diagnostic)
                result.diagnostics.append(diagnostic)
                continue
            _LOGGER.debug("Found common source root target %s", owner_address)
            result.owners[root] = owner
            continue

        merged = _plan_merged_root(root, users, context, taken)
        taken.add(merged.name)
        result.merged.append(merged)
        result.owners[root] = merged.name
        _LOGGER.debug(
            "Merged %d targets sharing %s into %s",
            len(users),
            root.source_root,
            merged.name,
        )

    return result


def _plan_merged_root(
    root: SourceRoot,
    users: List[Tuple[str, TargetInfo]],
    context: ResolutionContext,
    taken: Set[str],
) -> MergedRoot:
    # The first referencing target decides how the root is classified.
    source_type = source_type_for_target_type(users[0][1].target_type)
    declared = root.path_for(source_type)
    content_root = relative_path(declared, context.work_dir) or declared

    addresses = tuple(address for address, _ in users)
    # Targets sharing the root depend on the merged module, never the other way round.
    dependencies = tuple(
        address
        for address in _ordered_union(info.targets for _, info in users)
        if address not in addresses
    )
    libraries = _ordered_union(info.libraries for _, info in users)

    base_name = root.package_prefix or canonical_module_name(content_root)
    return MergedRoot(
        root=root,
        name=unique_name(base_name, taken),
        content_root=content_root,
        source_type=source_type,
        target_addresses=addresses,
        dependencies=dependencies,
        libraries=libraries,
    )


def unique_name(base: str, taken: Container[str]) -> str:
    """Return ``base`` or ``base_<n>`` so that the name is not in ``taken``."""
    if base not in taken:
        return base
    index = 1
    while f"{base}_{index}" in taken:
        index += 1
    return f"{base}_{index}"


def _ordered_union(groups: Iterable[Iterable[str]]) -> Tuple[str, ...]:
    seen: Dict[str, None] = {}
    for group in groups:
        for item in group:
            seen.setdefault(item, None)
    return tuple(seen)


__all__ = [
    "CommonRoots",
    "MergedRoot",
    "collect_root_users",
    "merge_common_roots",
    "unique_name",
]

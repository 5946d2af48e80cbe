"""Fetch planning: which module coordinates a package needs, and in what order."""

import logging
from dataclasses import dataclass, field
from pathlib import Path

from gnomod.core.imports import get_gno_file_imports
from gnomod.core.load import gno_files_from_args_recursively
from gnomod.core.manifest import ManifestFile
from gnomod.core.ports.source import ModuleSource
from gnomod.core.quoting import is_directory_path
from gnomod.errors import ErrorList, ManifestError, ResolutionError
from gnomod.models import ModuleVersion

logger = logging.getLogger(__name__)


def is_stdlib_import(path: str) -> bool:
    return "." not in path


def resolve_module(mod: ModuleVersion, *manifests: ManifestFile) -> ModuleVersion:
    """Apply replace rules to ``mod`` until it stops changing.

    At each step the first manifest with a rule for the current coordinate
    wins. Resolution stops at a local directory. Revisiting a coordinate
    raises ``ResolutionError``.
    """
    current = mod
    seen = {current}
    while not is_directory_path(current.path):
        target = current
        for manifest in manifests:
            target = manifest.resolve(current)
            if target != current:
                break
        if target == current:
            break
        if target in seen:
            raise ResolutionError(mod.path, f"replace cycle through {target}")
        logger.debug("Replaced %s with %s", current, target)
        seen.add(target)
        current = target
    return current


@dataclass
class FetchPlan:
    modules: list[ModuleVersion] = field(default_factory=list)  # to fetch, in discovery order
    local: list[ModuleVersion] = field(default_factory=list)  # replaced by directories
    excluded: list[ModuleVersion] = field(default_factory=list)
    errors: list[ResolutionError] = field(default_factory=list)


class Resolver:
    """Walks a manifest's requirements transitively through a ``ModuleSource``.

    Each call to ``plan`` uses its own visited set.
    """

    def __init__(self, source: ModuleSource) -> None:
        self._source = source

    def plan(self, manifest: ManifestFile, import_paths: list[str]) -> FetchPlan:
        plan = FetchPlan()
        visited: set[str] = set()
        for import_path in import_paths:
            if is_stdlib_import(import_path):
                continue
            mod = manifest.required_module(import_path)
            if mod is None:
                logger.debug("No requirement provides %s", import_path)
                mod = ModuleVersion(path=import_path)
            self._visit(plan, visited, manifest, manifest, mod)
        return plan

    def _visit(
        self,
        plan: FetchPlan,
        visited: set[str],
        root: ManifestFile,
        owner: ManifestFile,
        mod: ModuleVersion,
    ) -> None:
        manifests = (root,) if owner is root else (root, owner)
        try:
            resolved = resolve_module(mod, *manifests)
        except ResolutionError as e:
            logger.warning("Cannot resolve %s: %s", mod, e.err)
            plan.errors.append(e)
            return

        if resolved.path in visited:
            return
        visited.add(resolved.path)

        if is_directory_path(resolved.path):
            plan.local.append(resolved)
            return
        if any(m.is_excluded(resolved) for m in manifests):
            logger.info("Skipping excluded module %s", resolved)
            plan.excluded.append(resolved)
            return

        plan.modules.append(resolved)
        try:
            dependency = self._source.load_manifest(resolved)
        except (ErrorList, ManifestError) as e:
            logger.warning("Cannot read manifest of %s: %s", resolved, e)
            plan.errors.append(ResolutionError(resolved.path, e))
            return
        if dependency is None:
            return

        for req in dependency.requires:
            self._visit(plan, visited, root, dependency, req.mod)


def collect_imports(root_dir: str | Path) -> list[str]:
    """Return every import of every source file under ``root_dir``, first-seen order."""
    imports: list[str] = []
    seen: set[str] = set()
    for path in gno_files_from_args_recursively([str(root_dir)]):
        for imp in get_gno_file_imports(path):
            if imp not in seen:
                seen.add(imp)
                imports.append(imp)
    return imports


def plan_downloads(manifest: ManifestFile, root_dir: str | Path, source: ModuleSource) -> FetchPlan:
    return Resolver(source).plan(manifest, collect_imports(root_dir))

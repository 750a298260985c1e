"""Workspace descriptor loading and project discovery."""

from __future__ import annotations

from dataclasses import dataclass
from fnmatch import fnmatch
from graphlib import CycleError, TopologicalSorter
from pathlib import Path
from typing import Iterable, Sequence
import tomllib

from pydantic import ValidationError

from deadshake.exceptions import DescriptorError, MissingDescriptorError
from deadshake.model import Project, SourceUnit
from deadshake.schema import WorkspaceDescriptorDTO

DESCRIPTOR_SUFFIX = ".workspace.toml"


@dataclass(frozen=True)
class ProjectSpec:
    name: str
    root: Path
    include: tuple[str, ...]
    exclude: tuple[str, ...]
    dependencies: tuple[str, ...]


def find_descriptor(root: Path | None = None) -> Path:
    base = root if root is not None else Path.cwd()
    matches = sorted(
        path for path in base.glob(f"*{DESCRIPTOR_SUFFIX}") if path.is_file()
    )
    if not matches:
        raise MissingDescriptorError(
            f"No *{DESCRIPTOR_SUFFIX} descriptor found in {base}; pass one with --sln."
        )
    if len(matches) > 1:
        names = ", ".join(path.name for path in matches)
        raise MissingDescriptorError(
            f"Several descriptors found in {base} ({names}); pass one with --sln."
        )
    return matches[0]


def matches_filter(project: Project, patterns: Sequence[str]) -> bool:
    if not patterns:
        return True
    candidates = [project.name.lower(), project.root.as_posix().lower()]
    return any(
        fnmatch(candidate, pattern.lower())
        for pattern in patterns
        for candidate in candidates
    )


class Workspace:
    """Projects declared by one descriptor, in dependency order.

    Units are discovered from disk on every call to :meth:`projects`, so units
    deleted by an earlier pass are never seen again.
    """

    def __init__(self, descriptor: Path, name: str, specs: Sequence[ProjectSpec]) -> None:
        self.descriptor = descriptor
        self.name = name
        self._specs = {spec.name: spec for spec in specs}
        self._order = self._topological_order(specs)

    @classmethod
    def load(cls, descriptor: Path) -> Workspace:
        try:
            raw = descriptor.read_text(encoding="utf-8")
        except OSError as exc:
            raise MissingDescriptorError(f"Cannot read descriptor {descriptor}: {exc}") from exc
        try:
            payload = tomllib.loads(raw)
        except tomllib.TOMLDecodeError as exc:
            raise DescriptorError(f"{descriptor}: {exc}") from exc
        try:
            dto = WorkspaceDescriptorDTO.model_validate(payload)
        except ValidationError as exc:
            raise DescriptorError(f"{descriptor}: {exc}") from exc
        base = descriptor.resolve().parent
        specs: list[ProjectSpec] = []
        seen: set[str] = set()
        for project in dto.projects:
            if project.name in seen:
                raise DescriptorError(f"{descriptor}: duplicate project {project.name!r}")
            seen.add(project.name)
            specs.append(
                ProjectSpec(
                    name=project.name,
                    root=(base / project.path).resolve(),
                    include=tuple(project.include),
                    exclude=tuple(project.exclude),
                    dependencies=tuple(project.dependencies),
                )
            )
        name = dto.workspace.name or descriptor.name[: -len(DESCRIPTOR_SUFFIX)]
        return cls(descriptor, name, specs)

    @staticmethod
    def _topological_order(specs: Sequence[ProjectSpec]) -> tuple[str, ...]:
        names = {spec.name for spec in specs}
        sorter: TopologicalSorter[str] = TopologicalSorter()
        for spec in specs:
            for dependency in spec.dependencies:
                if dependency not in names:
                    raise DescriptorError(
                        f"Project {spec.name!r} depends on unknown project {dependency!r}"
                    )
            sorter.add(spec.name, *spec.dependencies)
        try:
            return tuple(sorter.static_order())
        except CycleError as exc:
            cycle = " -> ".join(exc.args[1])
            raise DescriptorError(f"Project dependency cycle: {cycle}") from exc

    @property
    def order(self) -> tuple[str, ...]:
        return self._order

    def projects(self) -> tuple[Project, ...]:
        claimed: set[Path] = set()
        projects: list[Project] = []
        for name in self._order:
            spec = self._specs[name]
            units = []
            for path in self._discover(spec):
                if path in claimed:
                    continue
                claimed.add(path)
                units.append(SourceUnit(path=path, project=name))
            projects.append(
                Project(
                    name=name,
                    root=spec.root,
                    units=tuple(units),
                    dependencies=spec.dependencies,
                )
            )
        return tuple(projects)

    @staticmethod
    def _discover(spec: ProjectSpec) -> list[Path]:
        if not spec.root.is_dir():
            return []
        found: set[Path] = set()
        for pattern in spec.include:
            for path in spec.root.glob(pattern):
                if not path.is_file():
                    continue
                rel = path.relative_to(spec.root).as_posix()
                if _excluded(rel, spec.exclude):
                    continue
                found.add(path)
        return sorted(found)


def _excluded(rel: str, patterns: Iterable[str]) -> bool:
    return any(fnmatch(rel, pattern) for pattern in patterns)

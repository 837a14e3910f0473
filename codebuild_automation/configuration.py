"""
Build configuration resolution

A project is described by a plain mapping with at least a ``name`` key and an
optional ``subscriptions`` key; any other keys belong to the caller's build
setup strategy. Each project is merged with the shared project defaults and
handed to the strategy, which returns the CodeBuild projects to declare keyed
by build type (for example ``"ci"`` and ``"pr"``).
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

logger = logging.getLogger(__name__)

ProjectArgs = Mapping[str, Any]


def override_fields(*layers: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """
    Merge mappings field by field, later layers taking precedence

    A field present in a later layer always wins, even when its value is
    falsy. ``None`` layers are skipped. The merge is shallow.

    Args:
        *layers: Mappings ordered from lowest to highest precedence

    Returns:
        A new dict holding the merged fields
    """
    merged: Dict[str, Any] = {}
    for layer in layers:
        if layer:
            merged.update(layer)
    return merged


@dataclass(frozen=True)
class BuildConfiguration:
    """
    One CodeBuild project produced by a build setup strategy

    Attributes:
        build: Keyword arguments for ``aws_codebuild.CfnProject``. ``name`` is
            required and is used both as the project name and construct id.
        webhook_filter_groups: Optional webhook filter groups. When set, the
            project is declared with a webhook trigger using these groups.
    """

    build: Mapping[str, Any]
    webhook_filter_groups: Optional[Sequence[Any]] = None

    def __post_init__(self) -> None:
        name = self.build.get("name")
        if not isinstance(name, str) or not name:
            raise ValueError("Build configuration requires a static string 'name'")

    @property
    def name(self) -> str:
        return self.build["name"]


BuildConfigurations = Dict[str, BuildConfiguration]
BuildSetupStrategy = Callable[[Dict[str, Any]], Mapping[str, BuildConfiguration]]


@dataclass(frozen=True)
class ProjectSetup:
    """The resolved build configurations for one project"""

    project: ProjectArgs
    merged: Dict[str, Any]
    builds: BuildConfigurations = field(default_factory=dict)

    @property
    def name(self) -> str:
        return self.project["name"]


def resolve_project_setups(
    projects: Sequence[ProjectArgs],
    project_defaults: Optional[ProjectArgs],
    build_setup: BuildSetupStrategy,
) -> List[ProjectSetup]:
    """
    Run the build setup strategy once per project

    Args:
        projects: Project mappings, each with a ``name``
        project_defaults: Fields applied to every project unless the project
            defines them itself
        build_setup: Strategy mapping a merged project to its build
            configurations keyed by build type

    Returns:
        One ProjectSetup per project, in input order
    """
    setups = []
    for project in projects:
        if "name" not in project:
            raise ValueError(f"Project is missing a name: {dict(project)!r}")

        merged = override_fields(project_defaults, project)
        builds = dict(build_setup(merged) or {})
        if not builds:
            logger.info("Build setup produced no builds for project %s", project["name"])
        setups.append(ProjectSetup(project=project, merged=merged, builds=builds))

    return setups

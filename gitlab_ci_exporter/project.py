"""Project pull parameters and the projects the exporter watches."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import Field, dataclass, field, fields, is_dataclass
from typing import Any, TypeVar

T = TypeVar("T")

_UNSIGNED = {"unsigned": True}


def _uint(default: int = 0) -> Any:
    return field(default=default, metadata=_UNSIGNED)


@dataclass
class ProjectPullEnvironments:
    """Whether and which environments/deployments are pulled."""

    enabled: bool = False
    regexp: str = ".*"
    exclude_stopped: bool = True


@dataclass
class ProjectPullRefsBranches:
    """Which branches are monitored."""

    enabled: bool = True
    regexp: str = "^(?:main|master)$"
    most_recent: int = _uint()
    max_age_seconds: int = _uint()
    exclude_deleted: bool = True


@dataclass
class ProjectPullRefsTags:
    """Which tags are monitored."""

    enabled: bool = True
    regexp: str = ".*"
    most_recent: int = _uint()
    max_age_seconds: int = _uint()
    exclude_deleted: bool = True


@dataclass
class ProjectPullRefsMergeRequests:
    """Which merge requests are monitored."""

    enabled: bool = False
    most_recent: int = _uint()
    max_age_seconds: int = _uint()


@dataclass
class ProjectPullRefs:
    """Ref pulling configuration for branches, tags and merge requests."""

    branches: ProjectPullRefsBranches = field(default_factory=ProjectPullRefsBranches)
    tags: ProjectPullRefsTags = field(default_factory=ProjectPullRefsTags)
    merge_requests: ProjectPullRefsMergeRequests = field(
        default_factory=ProjectPullRefsMergeRequests
    )


@dataclass
class ProjectPullPipelineJobsFromChildPipelines:
    """Whether jobs of child/downstream pipelines are pulled."""

    enabled: bool = True


@dataclass
class ProjectPullPipelineJobsRunnerDescription:
    """Export of the description of the runner which ran a job."""

    enabled: bool = True
    aggregation_regexp: str = r"shared-runners-manager-(\d*)\.gitlab\.com"


@dataclass
class ProjectPullPipelineJobs:
    """Pipeline jobs metrics configuration."""

    enabled: bool = False
    from_child_pipelines: ProjectPullPipelineJobsFromChildPipelines = field(
        default_factory=ProjectPullPipelineJobsFromChildPipelines
    )
    runner_description: ProjectPullPipelineJobsRunnerDescription = field(
        default_factory=ProjectPullPipelineJobsRunnerDescription
    )


@dataclass
class ProjectPullPipelineVariables:
    """Retrieval of the variables included in a pipeline."""

    enabled: bool = False
    regexp: str = ".*"


@dataclass
class ProjectPullPipelineTestReportsFromChildPipelines:
    """Whether test reports of child/downstream pipelines are pulled."""

    enabled: bool = False


@dataclass
class ProjectPullPipelineTestReportsTestCases:
    """Whether individual test cases are pulled."""

    enabled: bool = False


@dataclass
class ProjectPullPipelineTestReports:
    """Retrieval of the test report included in a pipeline."""

    enabled: bool = False
    from_child_pipelines: ProjectPullPipelineTestReportsFromChildPipelines = field(
        default_factory=ProjectPullPipelineTestReportsFromChildPipelines
    )
    test_cases: ProjectPullPipelineTestReportsTestCases = field(
        default_factory=ProjectPullPipelineTestReportsTestCases
    )


@dataclass
class ProjectPullPipeline:
    """Pipeline related pulling configuration."""

    jobs: ProjectPullPipelineJobs = field(default_factory=ProjectPullPipelineJobs)
    variables: ProjectPullPipelineVariables = field(
        default_factory=ProjectPullPipelineVariables
    )
    test_reports: ProjectPullPipelineTestReports = field(
        default_factory=ProjectPullPipelineTestReports
    )


@dataclass
class ProjectPull:
    """What gets pulled for a project."""

    environments: ProjectPullEnvironments = field(default_factory=ProjectPullEnvironments)
    refs: ProjectPullRefs = field(default_factory=ProjectPullRefs)
    pipeline: ProjectPullPipeline = field(default_factory=ProjectPullPipeline)


@dataclass
class ProjectParameters:
    """Fetching parameters shared by projects and wildcards."""

    pull: ProjectPull = field(default_factory=ProjectPull)
    # Export all pipeline/job statuses (False) or solely the current one (True).
    output_sparse_status_metrics: bool = True


@dataclass
class Project(ProjectParameters):
    """A GitLab project, named by its path with namespace."""

    name: str = ""


def _decode_value(owner: type, spec: Field, current: Any, value: Any) -> Any:
    where = f"{owner.__name__}.{spec.name}"

    if is_dataclass(current):
        return merge_mapping(current, value)

    if isinstance(current, bool):
        if isinstance(value, bool):
            return value
        raise TypeError(f"{where}: expected a boolean, got {value!r}")

    if isinstance(current, int):
        if isinstance(value, bool) or not isinstance(value, int):
            raise TypeError(f"{where}: expected an integer, got {value!r}")
        if spec.metadata.get("unsigned") and value < 0:
            raise ValueError(f"{where}: expected a non-negative integer, got {value!r}")
        return value

    if isinstance(current, str):
        if isinstance(value, str):
            return value
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, (int, float)):
            return str(value)
        raise TypeError(f"{where}: expected a string, got {value!r}")

    return value


def merge_mapping(obj: T, data: Any) -> T:
    """Update the dataclass ``obj`` in place from a decoded YAML mapping.

    Unknown keys and null values are ignored, nested mappings are merged into
    the nested dataclasses. Mismatching value types raise ``TypeError`` and
    negative values for unsigned fields raise ``ValueError``. Returns ``obj``.
    """
    if data is None:
        return obj
    if not isinstance(data, Mapping):
        raise TypeError(
            f"cannot decode {type(data).__name__} into {type(obj).__name__}"
        )

    known = {spec.name: spec for spec in fields(obj)}
    for key, value in data.items():
        spec = known.get(key) if isinstance(key, str) else None
        if spec is None or value is None:
            continue
        current = getattr(obj, spec.name)
        setattr(obj, spec.name, _decode_value(type(obj), spec, current, value))

    return obj


def new_project(name: str) -> Project:
    """Return a project with the default parameters."""
    return Project(name=name)
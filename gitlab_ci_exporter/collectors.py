"""Metric collectors exposed by the exporter."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from typing import ClassVar

DEFAULT_LABELS = ("project", "topics", "kind", "ref", "source", "variables")
JOB_LABELS = ("stage", "job_name", "runner_description", "tag_list", "failure_reason")
STATUS_LABELS = ("status",)
ENVIRONMENT_LABELS = ("project", "environment")
ENVIRONMENT_INFORMATION_LABELS = (
    "environment_id",
    "external_url",
    "kind",
    "ref",
    "latest_commit_short_id",
    "current_commit_short_id",
    "available",
    "username",
)
TEST_SUITE_LABELS = ("test_suite_name",)
TEST_CASE_LABELS = ("test_case_name", "test_case_classname")
STATUSES = (
    "created",
    "waiting_for_resource",
    "preparing",
    "pending",
    "running",
    "success",
    "failed",
    "canceled",
    "skipped",
    "manual",
    "scheduled",
    "error",
)


class Gauge:
    """A value which can go up and down."""

    def __init__(self) -> None:
        self.value = 0.0

    def set(self, value: float) -> None:
        self.value = float(value)

    def add(self, amount: float) -> None:
        self.value += amount

    def inc(self) -> None:
        self.add(1.0)

    def dec(self) -> None:
        self.add(-1.0)


class Counter:
    """A value which only goes up."""

    def __init__(self) -> None:
        self.value = 0.0

    def add(self, amount: float) -> None:
        if amount < 0:
            raise ValueError("counter cannot decrease in value")
        self.value += amount

    def inc(self) -> None:
        self.add(1.0)


@dataclass
class _MetricVec:
    name: str
    help: str
    label_names: tuple[str, ...]
    _children: dict[tuple[str, ...], Gauge | Counter] = field(
        default_factory=dict, init=False, repr=False
    )

    type: ClassVar[str] = ""

    def _new_child(self) -> Gauge | Counter:
        raise NotImplementedError

    def _key(self, labels: Mapping[str, str]) -> tuple[str, ...]:
        if set(labels) != set(self.label_names):
            raise ValueError(
                f"{self.name}: expected labels {sorted(self.label_names)}, "
                f"got {sorted(labels)}"
            )
        return tuple(str(labels[name]) for name in self.label_names)

    def _child(self, labels: Mapping[str, str]) -> Gauge | Counter:
        key = self._key(labels)
        child = self._children.get(key)
        if child is None:
            child = self._children[key] = self._new_child()
        return child

    def collect(self) -> Iterator[tuple[dict[str, str], float]]:
        """Yield the labels and value of every child, in creation order."""
        for key, child in self._children.items():
            yield dict(zip(self.label_names, key)), child.value

    def __len__(self) -> int:
        return len(self._children)


@dataclass
class GaugeVec(_MetricVec):
    """A family of gauges sharing a name and label names."""

    type: ClassVar[str] = "gauge"

    def _new_child(self) -> Gauge:
        return Gauge()

    def with_labels(self, labels: Mapping[str, str]) -> Gauge:
        """Return the gauge for these label values, creating it if needed."""
        child = self._child(labels)
        assert isinstance(child, Gauge)
        return child


@dataclass
class CounterVec(_MetricVec):
    """A family of counters sharing a name and label names."""

    type: ClassVar[str] = "counter"

    def _new_child(self) -> Counter:
        return Counter()

    def with_labels(self, labels: Mapping[str, str]) -> Counter:
        """Return the counter for these label values, creating it if needed."""
        child = self._child(labels)
        assert isinstance(child, Counter)
        return child


def _gauge(name: str, help_text: str, *label_groups: tuple[str, ...]) -> GaugeVec:
    return GaugeVec(name, help_text, tuple(l for g in label_groups for l in g))


def _counter(name: str, help_text: str, *label_groups: tuple[str, ...]) -> CounterVec:
    return CounterVec(name, help_text, tuple(l for g in label_groups for l in g))


def new_internal_collector_currently_queued_tasks_count() -> GaugeVec:
    return _gauge("gcpe_currently_queued_tasks_count", "Number of tasks in the queue")


def new_internal_collector_environments_count() -> GaugeVec:
    return _gauge(
        "gcpe_environments_count", "Number of GitLab environments being exported"
    )


def new_internal_collector_executed_tasks_count() -> GaugeVec:
    return _gauge("gcpe_executed_tasks_count", "Number of tasks executed")


def new_internal_collector_gitlab_api_requests_count() -> GaugeVec:
    return _gauge("gcpe_gitlab_api_requests_count", "GitLab API requests count")


def new_internal_collector_gitlab_api_requests_remaining() -> GaugeVec:
    return _gauge(
        "gcpe_gitlab_api_requests_remaining",
        "GitLab API requests remaining in the api limit",
    )


def new_internal_collector_gitlab_api_requests_limit() -> GaugeVec:
    return _gauge(
        "gcpe_gitlab_api_requests_limit",
        "GitLab API requests available in the api limit",
    )


def new_internal_collector_metrics_count() -> GaugeVec:
    return _gauge(
        "gcpe_metrics_count", "Number of GitLab pipelines metrics being exported"
    )


def new_internal_collector_projects_count() -> GaugeVec:
    return _gauge("gcpe_projects_count", "Number of GitLab projects being exported")


def new_internal_collector_refs_count() -> GaugeVec:
    return _gauge("gcpe_refs_count", "Number of GitLab refs being exported")


def new_collector_coverage() -> GaugeVec:
    return _gauge(
        "gitlab_ci_pipeline_coverage",
        "Coverage of the most recent pipeline",
        DEFAULT_LABELS,
    )


def new_collector_duration_seconds() -> GaugeVec:
    return _gauge(
        "gitlab_ci_pipeline_duration_seconds",
        "Duration in seconds of the most recent pipeline",
        DEFAULT_LABELS,
    )


def new_collector_queued_duration_seconds() -> GaugeVec:
    return _gauge(
        "gitlab_ci_pipeline_queued_duration_seconds",
        "Duration in seconds the most recent pipeline has been queued before starting",
        DEFAULT_LABELS,
    )


def new_collector_environment_behind_commits_count() -> GaugeVec:
    return _gauge(
        "gitlab_ci_environment_behind_commits_count",
        "Number of commits the environment is behind given its last deployment",
        ENVIRONMENT_LABELS,
    )


def new_collector_environment_behind_duration_seconds() -> GaugeVec:
    return _gauge(
        "gitlab_ci_environment_behind_duration_seconds",
        "Duration in seconds the environment is behind the most recent commit "
        "given its last deployment",
        ENVIRONMENT_LABELS,
    )


def new_collector_environment_deployment_count() -> CounterVec:
    return _counter(
        "gitlab_ci_environment_deployment_count",
        "Number of deployments for an environment",
        ENVIRONMENT_LABELS,
    )


def new_collector_environment_deployment_duration_seconds() -> GaugeVec:
    return _gauge(
        "gitlab_ci_environment_deployment_duration_seconds",
        "Duration in seconds of the most recent deployment of the environment",
        ENVIRONMENT_LABELS,
    )


def new_collector_environment_deployment_job_id() -> GaugeVec:
    return _gauge(
        "gitlab_ci_environment_deployment_job_id",
        "ID of the most recent deployment job of the environment",
        ENVIRONMENT_LABELS,
    )


def new_collector_environment_deployment_status() -> GaugeVec:
    return _gauge(
        "gitlab_ci_environment_deployment_status",
        "Status of the most recent deployment of the environment",
        ENVIRONMENT_LABELS,
        STATUS_LABELS,
    )


def new_collector_environment_deployment_timestamp() -> GaugeVec:
    return _gauge(
        "gitlab_ci_environment_deployment_timestamp",
        "Creation date of the most recent deployment of the environment",
        ENVIRONMENT_LABELS,
    )


def new_collector_environment_information() -> GaugeVec:
    return _gauge(
        "gitlab_ci_environment_information",
        "Information about the environment",
        ENVIRONMENT_LABELS,
        ENVIRONMENT_INFORMATION_LABELS,
    )


def new_collector_id() -> GaugeVec:
    return _gauge(
        "gitlab_ci_pipeline_id", "ID of the most recent pipeline", DEFAULT_LABELS
    )


def new_collector_job_artifact_size_bytes() -> GaugeVec:
    return _gauge(
        "gitlab_ci_pipeline_job_artifact_size_bytes",
        "Artifact size in bytes (sum of all of them) of the most recent job",
        DEFAULT_LABELS,
        JOB_LABELS,
    )


def new_collector_job_duration_seconds() -> GaugeVec:
    return _gauge(
        "gitlab_ci_pipeline_job_duration_seconds",
        "Duration in seconds of the most recent job",
        DEFAULT_LABELS,
        JOB_LABELS,
    )


def new_collector_job_id() -> GaugeVec:
    return _gauge(
        "gitlab_ci_pipeline_job_id",
        "ID of the most recent job",
        DEFAULT_LABELS,
        JOB_LABELS,
    )


def new_collector_job_queued_duration_seconds() -> GaugeVec:
    return _gauge(
        "gitlab_ci_pipeline_job_queued_duration_seconds",
        "Duration in seconds the most recent job has been queued before starting",
        DEFAULT_LABELS,
        JOB_LABELS,
    )


def new_collector_job_run_count() -> CounterVec:
    return _counter(
        "gitlab_ci_pipeline_job_run_count",
        "Number of executions of a job",
        DEFAULT_LABELS,
        JOB_LABELS,
    )


def new_collector_job_status() -> GaugeVec:
    return _gauge(
        "gitlab_ci_pipeline_job_status",
        "Status of the most recent job",
        DEFAULT_LABELS,
        JOB_LABELS,
        STATUS_LABELS,
    )


def new_collector_job_timestamp() -> GaugeVec:
    return _gauge(
        "gitlab_ci_pipeline_job_timestamp",
        "Creation date timestamp of the most recent job",
        DEFAULT_LABELS,
        JOB_LABELS,
    )


def new_collector_status() -> GaugeVec:
    return _gauge(
        "gitlab_ci_pipeline_status",
        "Status of the most recent pipeline",
        DEFAULT_LABELS,
        STATUS_LABELS,
    )


def new_collector_timestamp() -> GaugeVec:
    return _gauge(
        "gitlab_ci_pipeline_timestamp",
        "Timestamp of the last update of the most recent pipeline",
        DEFAULT_LABELS,
    )


def new_collector_run_count() -> CounterVec:
    return _counter(
        "gitlab_ci_pipeline_run_count",
        "Number of executions of a pipeline",
        DEFAULT_LABELS,
    )


def new_collector_test_report_total_time() -> GaugeVec:
    return _gauge(
        "gitlab_ci_pipeline_test_report_total_time",
        "Duration in seconds of all the tests in the most recently finished pipeline",
        DEFAULT_LABELS,
    )


def new_collector_test_report_total_count() -> GaugeVec:
    return _gauge(
        "gitlab_ci_pipeline_test_report_total_count",
        "Number of total tests in the most recently finished pipeline",
        DEFAULT_LABELS,
    )


def new_collector_test_report_success_count() -> GaugeVec:
    return _gauge(
        "gitlab_ci_pipeline_test_report_success_count",
        "Number of successful tests in the most recently finished pipeline",
        DEFAULT_LABELS,
    )


def new_collector_test_report_failed_count() -> GaugeVec:
    return _gauge(
        "gitlab_ci_pipeline_test_report_failed_count",
        "Number of failed tests in the most recently finished pipeline",
        DEFAULT_LABELS,
    )


def new_collector_test_report_skipped_count() -> GaugeVec:
    return _gauge(
        "gitlab_ci_pipeline_test_report_skipped_count",
        "Number of skipped tests in the most recently finished pipeline",
        DEFAULT_LABELS,
    )


def new_collector_test_report_error_count() -> GaugeVec:
    return _gauge(
        "gitlab_ci_pipeline_test_report_error_count",
        "Number of errored tests in the most recently finished pipeline",
        DEFAULT_LABELS,
    )


def new_collector_test_suite_total_time() -> GaugeVec:
    return _gauge(
        "gitlab_ci_pipeline_test_suite_total_time",
        "Duration in seconds for the test suite",
        DEFAULT_LABELS,
        TEST_SUITE_LABELS,
    )


def new_collector_test_suite_total_count() -> GaugeVec:
    return _gauge(
        "gitlab_ci_pipeline_test_suite_total_count",
        "Number of total tests for the test suite",
        DEFAULT_LABELS,
        TEST_SUITE_LABELS,
    )


def new_collector_test_suite_success_count() -> GaugeVec:
    return _gauge(
        "gitlab_ci_pipeline_test_suite_success_count",
        "Number of successful tests for the test suite",
        DEFAULT_LABELS,
        TEST_SUITE_LABELS,
    )


def new_collector_test_suite_failed_count() -> GaugeVec:
    return _gauge(
        "gitlab_ci_pipeline_test_suite_failed_count",
        "Number of failed tests for the test suite",
        DEFAULT_LABELS,
        TEST_SUITE_LABELS,
    )


def new_collector_test_suite_skipped_count() -> GaugeVec:
    return _gauge(
        "gitlab_ci_pipeline_test_suite_skipped_count",
        "Number of skipped tests for the test suite",
        DEFAULT_LABELS,
        TEST_SUITE_LABELS,
    )


def new_collector_test_suite_error_count() -> GaugeVec:
    return _gauge(
        "gitlab_ci_pipeline_test_suite_error_count",
        "Number of errors for the test suite",
        DEFAULT_LABELS,
        TEST_SUITE_LABELS,
    )


def new_collector_test_case_execution_time() -> GaugeVec:
    return _gauge(
        "gitlab_ci_pipeline_test_case_execution_time",
        "Duration in seconds for the test case",
        DEFAULT_LABELS,
        TEST_SUITE_LABELS,
        TEST_CASE_LABELS,
    )


def new_collector_test_case_status() -> GaugeVec:
    return _gauge(
        "gitlab_ci_pipeline_test_case_status",
        "Status of the test case in most recent job",
        DEFAULT_LABELS,
        TEST_SUITE_LABELS,
        TEST_CASE_LABELS,
        STATUS_LABELS,
    )
"""Exporter configuration: defaults, decoding, validation and display."""

from __future__ import annotations

import copy
from collections.abc import Mapping
from dataclasses import asdict, dataclass, field, fields, replace
from itertools import combinations
from typing import Any
from urllib.parse import ParseResult, urlsplit

import yaml

from gitlab_ci_exporter.project import Project, ProjectParameters, merge_mapping
from gitlab_ci_exporter.wildcard import Wildcard

_MASK = "*******"
_LOG_LEVELS = ("trace", "debug", "info", "warning", "error", "fatal", "panic")
_LOG_FORMATS = ("text", "json")


class ConfigError(Exception):
    """Raised when a configuration cannot be decoded or is invalid."""


@dataclass
class Global:
    """Globally shared exporter settings, never read from the config file."""

    # Address of the listener exposing metrics about the exporter internals.
    internal_monitoring_listener_address: ParseResult | None = None


@dataclass
class Log:
    """Runtime logging configuration."""

    level: str = "info"
    format: str = "text"


@dataclass
class OpenTelemetry:
    """OpenTelemetry collector configuration."""

    grpc_endpoint: str = ""


@dataclass
class ServerMetrics:
    """Configuration of the /metrics endpoint."""

    enabled: bool = True
    enable_openmetrics_encoding: bool = False


@dataclass
class ServerWebhook:
    """Configuration of the /webhook endpoint."""

    enabled: bool = False
    secret_token: str = ""


@dataclass
class Server:
    """HTTP server configuration."""

    enable_pprof: bool = False
    listen_address: str = ":8080"
    metrics: ServerMetrics = field(default_factory=ServerMetrics)
    webhook: ServerWebhook = field(default_factory=ServerWebhook)


@dataclass
class Gitlab:
    """GitLab server and API usage configuration."""

    url: str = "https://gitlab.com"
    token: str = ""
    health_url: str = "https://gitlab.com/explore"
    enable_health_check: bool = True
    enable_tls_verify: bool = True
    maximum_requests_per_second: int = 1
    burstable_requests_per_second: int = 5
    # Jobs beyond this queue size are dropped; best left unchanged.
    maximum_jobs_queue_size: int = 1000


@dataclass
class Redis:
    """Redis endpoint, format redis[s]://[:password@]host[:port][/db-number]."""

    url: str = ""


@dataclass
class SchedulerConfig:
    """When a recurring task runs: at start-up and/or every few seconds."""

    on_init: bool = False
    scheduled: bool = False
    interval_seconds: int = 0

    def log(self) -> dict[str, str]:
        """Return fields describing this schedule to the end user."""
        return {
            "on-init": "yes" if self.on_init else "no",
            "scheduled": f"every {self.interval_seconds}s" if self.scheduled else "no",
        }


def _schedule(on_init: bool, scheduled: bool, interval_seconds: int) -> Any:
    return field(
        default_factory=lambda: SchedulerConfig(on_init, scheduled, interval_seconds)
    )


@dataclass
class Pull:
    """Schedules of the pulling tasks."""

    projects_from_wildcards: SchedulerConfig = _schedule(True, True, 1800)
    environments_from_projects: SchedulerConfig = _schedule(True, True, 1800)
    refs_from_projects: SchedulerConfig = _schedule(True, True, 300)
    metrics: SchedulerConfig = _schedule(True, True, 30)


@dataclass
class GarbageCollect:
    """Schedules of the garbage collection tasks."""

    projects: SchedulerConfig = _schedule(False, True, 14400)
    environments: SchedulerConfig = _schedule(False, True, 14400)
    refs: SchedulerConfig = _schedule(False, True, 1800)
    metrics: SchedulerConfig = _schedule(False, True, 600)


_SECTIONS = (
    "log",
    "opentelemetry",
    "server",
    "gitlab",
    "redis",
    "pull",
    "garbage_collect",
    "project_defaults",
)


def _is_url(value: str) -> bool:
    if not value:
        return False
    try:
        parts = urlsplit(value)
    except ValueError:
        return False
    return bool(parts.scheme) and bool(parts.netloc)


def _has_duplicates(items: list[Any]) -> bool:
    return any(a == b for a, b in combinations(items, 2))


@dataclass
class Config:
    """All the parameters required for the exporter to run."""

    global_: Global = field(default_factory=Global)
    log: Log = field(default_factory=Log)
    opentelemetry: OpenTelemetry = field(default_factory=OpenTelemetry)
    server: Server = field(default_factory=Server)
    gitlab: Gitlab = field(default_factory=Gitlab)
    redis: Redis = field(default_factory=Redis)
    pull: Pull = field(default_factory=Pull)
    garbage_collect: GarbageCollect = field(default_factory=GarbageCollect)
    # Defaults which projects and wildcards may override.
    project_defaults: ProjectParameters = field(default_factory=ProjectParameters)
    projects: list[Project] = field(default_factory=list)
    wildcards: list[Wildcard] = field(default_factory=list)

    @classmethod
    def from_mapping(cls, data: Any) -> Config:
        """Build a config from a decoded YAML document, on top of the defaults.

        Projects and wildcards start from ``project_defaults`` before their own
        settings are applied.
        """
        cfg = cls()
        if data is None:
            return cfg
        if not isinstance(data, Mapping):
            raise ConfigError(
                f"cannot decode {type(data).__name__} into a configuration"
            )

        try:
            for section in _SECTIONS:
                merge_mapping(getattr(cfg, section), data.get(section))

            for key, factory, target in (
                ("projects", cfg.new_project, cfg.projects),
                ("wildcards", cfg.new_wildcard, cfg.wildcards),
            ):
                nodes = data.get(key)
                if nodes is None:
                    continue
                if not isinstance(nodes, list):
                    raise ConfigError(f"{key}: expected a list, got {nodes!r}")
                target.extend(merge_mapping(factory(), node) for node in nodes)
        except (TypeError, ValueError) as exc:
            raise ConfigError(str(exc)) from exc

        return cfg

    def to_yaml(self) -> str:
        """Render the config as YAML with its secrets masked."""
        masked = replace(
            self,
            global_=Global(),
            server=replace(
                self.server,
                webhook=replace(self.server.webhook, secret_token=_MASK),
            ),
            gitlab=replace(self.gitlab, token=_MASK),
        )
        data = asdict(masked)
        data.pop("global_")
        return yaml.safe_dump(data, sort_keys=False, allow_unicode=True)

    def validate(self) -> None:
        """Raise ConfigError listing every missing or incorrect parameter."""
        problems: list[str] = []

        if not self.log.level:
            problems.append("log.level is required")
        elif self.log.level not in _LOG_LEVELS:
            problems.append(f"log.level must be one of: {' '.join(_LOG_LEVELS)}")
        if self.log.format not in _LOG_FORMATS:
            problems.append(f"log.format must be one of: {' '.join(_LOG_FORMATS)}")

        if self.server.webhook.enabled and not self.server.webhook.secret_token:
            problems.append(
                "server.webhook.secret_token is required when the webhook is enabled"
            )

        gl = self.gitlab
        for name, value in (("url", gl.url), ("health_url", gl.health_url)):
            if not value:
                problems.append(f"gitlab.{name} is required")
            elif not _is_url(value):
                problems.append(f"gitlab.{name} must be a valid URL")
        if not gl.token:
            problems.append("gitlab.token is required")
        for name, value, minimum in (
            ("maximum_requests_per_second", gl.maximum_requests_per_second, 1),
            ("burstable_requests_per_second", gl.burstable_requests_per_second, 1),
            ("maximum_jobs_queue_size", gl.maximum_jobs_queue_size, 10),
        ):
            if value < minimum:
                problems.append(f"gitlab.{name} must be greater or equal to {minimum}")

        for section in ("pull", "garbage_collect"):
            group = getattr(self, section)
            for spec in fields(group):
                if getattr(group, spec.name).interval_seconds < 1:
                    problems.append(
                        f"{section}.{spec.name}.interval_seconds must be greater "
                        "or equal to 1"
                    )

        for name in ("projects", "wildcards"):
            if _has_duplicates(getattr(self, name)):
                problems.append(f"{name} must not contain duplicates")
        if not validate_at_least_one_project_or_wildcard(self):
            problems.append("at least one project or wildcard must be configured")

        if problems:
            raise ConfigError("; ".join(problems))

    def new_project(self) -> Project:
        """Return a project carrying a copy of the config default parameters."""
        defaults = copy.deepcopy(self.project_defaults)
        return Project(
            pull=defaults.pull,
            output_sparse_status_metrics=defaults.output_sparse_status_metrics,
        )

    def new_wildcard(self) -> Wildcard:
        """Return a wildcard carrying a copy of the config default parameters."""
        defaults = copy.deepcopy(self.project_defaults)
        return Wildcard(
            pull=defaults.pull,
            output_sparse_status_metrics=defaults.output_sparse_status_metrics,
        )


def validate_at_least_one_project_or_wildcard(config: Config) -> bool:
    """Tell whether at least one project or wildcard is configured."""
    return bool(config.projects) or bool(config.wildcards)


def new_config() -> Config:
    """Return a config holding the default parameters."""
    return Config()
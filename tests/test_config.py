import pytest
import yaml

from gitlab_ci_exporter.config import (
    Config,
    ConfigError,
    SchedulerConfig,
    new_config,
    validate_at_least_one_project_or_wildcard,
)
from gitlab_ci_exporter.project import new_project
from gitlab_ci_exporter.wildcard import Wildcard


def _valid_config() -> Config:
    cfg = new_config()
    cfg.gitlab.token = "token"
    cfg.projects.append(new_project("bar"))
    return cfg


def test_new_defaults():
    c = new_config()

    assert c.log.level == "info"
    assert c.log.format == "text"
    assert c.opentelemetry.grpc_endpoint == ""

    assert c.server.listen_address == ":8080"
    assert c.server.enable_pprof is False
    assert c.server.metrics.enabled is True
    assert c.server.metrics.enable_openmetrics_encoding is False
    assert c.server.webhook.enabled is False
    assert c.server.webhook.secret_token == ""

    assert c.gitlab.url == "https://gitlab.com"
    assert c.gitlab.health_url == "https://gitlab.com/explore"
    assert c.gitlab.token == ""
    assert c.gitlab.enable_health_check is True
    assert c.gitlab.enable_tls_verify is True
    assert c.gitlab.maximum_requests_per_second == 1
    assert c.gitlab.burstable_requests_per_second == 5
    assert c.gitlab.maximum_jobs_queue_size == 1000

    assert c.redis.url == ""

    assert c.pull.projects_from_wildcards == SchedulerConfig(True, True, 1800)
    assert c.pull.environments_from_projects == SchedulerConfig(True, True, 1800)
    assert c.pull.refs_from_projects == SchedulerConfig(True, True, 300)
    assert c.pull.metrics == SchedulerConfig(True, True, 30)

    assert c.garbage_collect.projects == SchedulerConfig(False, True, 14400)
    assert c.garbage_collect.environments == SchedulerConfig(False, True, 14400)
    assert c.garbage_collect.refs == SchedulerConfig(False, True, 1800)
    assert c.garbage_collect.metrics == SchedulerConfig(False, True, 600)

    d = c.project_defaults
    assert d.output_sparse_status_metrics is True
    assert d.pull.environments.enabled is False
    assert d.pull.environments.regexp == ".*"
    assert d.pull.environments.exclude_stopped is True
    assert d.pull.refs.branches.enabled is True
    assert d.pull.refs.branches.regexp == "^(?:main|master)$"
    assert d.pull.refs.branches.exclude_deleted is True
    assert d.pull.refs.tags.enabled is True
    assert d.pull.refs.tags.regexp == ".*"
    assert d.pull.refs.tags.exclude_deleted is True
    assert d.pull.refs.merge_requests.enabled is False
    assert d.pull.pipeline.jobs.enabled is False
    assert d.pull.pipeline.jobs.from_child_pipelines.enabled is True
    assert d.pull.pipeline.jobs.runner_description.enabled is True
    assert (
        d.pull.pipeline.jobs.runner_description.aggregation_regexp
        == r"shared-runners-manager-(\d*)\.gitlab\.com"
    )
    assert d.pull.pipeline.variables.regexp == ".*"

    assert c.projects == []
    assert c.wildcards == []
    assert c.global_.internal_monitoring_listener_address is None


def test_valid_config():
    cfg = _valid_config()
    assert cfg.validate() is None
    assert validate_at_least_one_project_or_wildcard(cfg) is True


def test_scheduler_config_log():
    sc = SchedulerConfig(on_init=True, scheduled=True, interval_seconds=300)
    assert sc.log() == {"on-init": "yes", "scheduled": "every 300s"}


def test_scheduler_config_log_disabled():
    assert SchedulerConfig().log() == {"on-init": "no", "scheduled": "no"}


def test_validate_requires_token():
    cfg = _valid_config()
    cfg.gitlab.token = ""
    with pytest.raises(ConfigError, match="gitlab.token"):
        cfg.validate()


def test_validate_requires_project_or_wildcard():
    cfg = new_config()
    cfg.gitlab.token = "token"
    assert validate_at_least_one_project_or_wildcard(cfg) is False
    with pytest.raises(ConfigError, match="at least one project or wildcard"):
        cfg.validate()

    cfg.wildcards.append(Wildcard())
    cfg.validate()
    assert validate_at_least_one_project_or_wildcard(cfg) is True


def test_validate_webhook_secret_required_if_enabled():
    cfg = _valid_config()
    cfg.server.webhook.enabled = True
    with pytest.raises(ConfigError, match="secret_token"):
        cfg.validate()

    cfg.server.webhook.secret_token = "secret"
    cfg.validate()
    assert cfg.server.webhook.secret_token == "secret"


@pytest.mark.parametrize(
    "mutate, fragment",
    [
        (lambda c: setattr(c.log, "level", "foo"), "log.level"),
        (lambda c: setattr(c.log, "level", ""), "log.level"),
        (lambda c: setattr(c.log, "format", "xml"), "log.format"),
        (lambda c: setattr(c.gitlab, "url", "not a url"), "gitlab.url"),
        (lambda c: setattr(c.gitlab, "health_url", ""), "gitlab.health_url"),
        (
            lambda c: setattr(c.gitlab, "maximum_requests_per_second", 0),
            "maximum_requests_per_second",
        ),
        (
            lambda c: setattr(c.gitlab, "burstable_requests_per_second", 0),
            "burstable_requests_per_second",
        ),
        (
            lambda c: setattr(c.gitlab, "maximum_jobs_queue_size", 5),
            "maximum_jobs_queue_size",
        ),
        (
            lambda c: setattr(c.pull.metrics, "interval_seconds", 0),
            "pull.metrics.interval_seconds",
        ),
        (
            lambda c: setattr(c.garbage_collect.refs, "interval_seconds", 0),
            "garbage_collect.refs.interval_seconds",
        ),
        (lambda c: c.projects.append(new_project("bar")), "projects"),
    ],
)
def test_validate_rejects(mutate, fragment):
    cfg = _valid_config()
    mutate(cfg)
    with pytest.raises(ConfigError, match=fragment.replace(".", r"\.")):
        cfg.validate()


def test_from_mapping_none_gives_defaults():
    assert Config.from_mapping(None) == new_config()


def test_from_mapping_applies_project_defaults():
    cfg = Config.from_mapping(
        {
            "gitlab": {"token": "token", "maximum_requests_per_second": 3},
            "project_defaults": {
                "output_sparse_status_metrics": False,
                "pull": {"pipeline": {"jobs": {"enabled": True}}},
            },
            "projects": [
                {"name": "foo/bar"},
                {"name": "foo/baz", "output_sparse_status_metrics": True},
            ],
            "wildcards": [{"owner": {"name": "grp", "kind": "group"}}],
        }
    )

    assert cfg.gitlab.token == "token"
    assert cfg.gitlab.maximum_requests_per_second == 3
    assert cfg.gitlab.burstable_requests_per_second == 5

    first, second = cfg.projects
    assert first.name == "foo/bar"
    assert first.output_sparse_status_metrics is False
    assert first.pull.pipeline.jobs.enabled is True
    assert second.output_sparse_status_metrics is True

    (wildcard,) = cfg.wildcards
    assert wildcard.owner.name == "grp"
    assert wildcard.owner.kind == "group"
    assert wildcard.output_sparse_status_metrics is False
    assert wildcard.pull.pipeline.jobs.enabled is True


def test_from_mapping_copies_defaults_per_project():
    cfg = Config.from_mapping({"projects": [{"name": "a"}, {"name": "b"}]})
    cfg.projects[0].pull.refs.tags.enabled = False
    assert cfg.projects[1].pull.refs.tags.enabled is True
    assert cfg.project_defaults.pull.refs.tags.enabled is True


def test_from_mapping_wildcards_empty_entry():
    cfg = Config.from_mapping({"wildcards": [{}]})
    assert cfg.wildcards == [Wildcard()]


def test_from_mapping_rejects_bad_types():
    with pytest.raises(ConfigError):
        Config.from_mapping(["not", "a", "mapping"])
    with pytest.raises(ConfigError):
        Config.from_mapping({"projects": {"name": "foo"}})
    with pytest.raises(ConfigError):
        Config.from_mapping({"server": {"metrics": {"enabled": "maybe"}}})
    with pytest.raises(ConfigError):
        Config.from_mapping({"projects": [{"pull": {"refs": {"tags": {"most_recent": -1}}}}]})


def test_new_project_and_wildcard_follow_defaults():
    cfg = new_config()
    cfg.project_defaults.output_sparse_status_metrics = False

    project = cfg.new_project()
    wildcard = cfg.new_wildcard()
    assert project.output_sparse_status_metrics is False
    assert project.name == ""
    assert wildcard.output_sparse_status_metrics is False

    project.pull.environments.enabled = True
    assert cfg.project_defaults.pull.environments.enabled is False


def test_to_yaml_masks_secrets_without_mutating():
    cfg = _valid_config()
    cfg.server.webhook.secret_token = "secret"

    loaded = yaml.safe_load(cfg.to_yaml())

    assert loaded["gitlab"]["token"] == "*******"
    assert loaded["server"]["webhook"]["secret_token"] == "*******"
    assert "global_" not in loaded
    assert cfg.gitlab.token == "token"
    assert cfg.server.webhook.secret_token == "secret"


def test_to_yaml_round_trip():
    cfg = _valid_config()
    cfg.wildcards.append(Wildcard(search="api"))

    restored = Config.from_mapping(yaml.safe_load(cfg.to_yaml()))
    restored.gitlab.token = cfg.gitlab.token
    restored.server.webhook.secret_token = cfg.server.webhook.secret_token

    assert restored == cfg
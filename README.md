# gitlab-ci-exporter

Building blocks for exporting GitLab CI pipeline metrics:

- a typed configuration model (`gitlab_ci_exporter.config`,
  `gitlab_ci_exporter.project`, `gitlab_ci_exporter.wildcard`), loaded from
  YAML by `gitlab_ci_exporter.parser`, with the exporter's defaults and
  validation rules;
- metric collector definitions (`gitlab_ci_exporter.collectors`): gauge and
  counter families with their names, help texts and label sets, for
  pipelines, jobs, environments, test reports and the exporter's internals.

## Installation

```
pip install .
```

To run the test suite:

```
pip install .[test]
pytest
```

## Loading a configuration

```python
from gitlab_ci_exporter.parser import parse_file

cfg = parse_file("gitlab-ci-pipelines-exporter.yml")
cfg.validate()          # raises ConfigError listing every problem found
print(cfg.to_yaml())    # gitlab.token and server.webhook.secret_token are masked
```

`parse_file` picks the format from the file extension with
`get_type_from_file_extension`: only `.yml` and `.yaml` are accepted
(`Format.YAML`); any other extension raises `ConfigError`. `parse(fmt, data)`
decodes bytes or text already in memory. Malformed YAML, values of the wrong
type and negative values for unsigned settings also raise `ConfigError`.

When `gitlab.url` points to a self-hosted instance and `gitlab.health_url` is
left at its default (`https://gitlab.com/explore`), the health URL becomes
`<url>/-/health`.

A minimal configuration:

```yaml
gitlab:
  token: token
projects:
  - name: foo/bar
wildcards:
  - owner:
      name: my-group
      kind: group
```

Unknown keys and null values are ignored. Values set under
`project_defaults` are the starting point for every project and wildcard
entry, which may then override them. `Config.from_mapping` builds a
configuration from an already decoded mapping in the same way.

Defaults can also be built in code:

```python
from gitlab_ci_exporter.config import new_config
from gitlab_ci_exporter.project import new_project

cfg = new_config()
cfg.gitlab.token = "token"
cfg.projects.append(new_project("foo/bar"))
cfg.validate()
```

`Config.new_project()` and `Config.new_wildcard()` return a `Project` or a
`Wildcard` carrying a copy of the config's `project_defaults`;
`new_project(name)` and `new_wildcard()` use the built-in defaults.

`validate()` checks, among others: the log level and format, a secret token
when the webhook is enabled, a token and valid URLs for GitLab, the minimum
request rates and queue size, intervals of at least one second, no duplicate
projects or wildcards, and at least one project or wildcard
(`validate_at_least_one_project_or_wildcard`).

## Scheduler settings

Each pull and garbage-collection task (`Config.pull`,
`Config.garbage_collect`) is a `SchedulerConfig` with `on_init`, `scheduled`
and `interval_seconds`. `SchedulerConfig.log()` summarises one:

```python
from gitlab_ci_exporter.config import SchedulerConfig

SchedulerConfig(on_init=True, scheduled=True, interval_seconds=300).log()
# {'on-init': 'yes', 'scheduled': 'every 300s'}
```

## Metric collectors

```python
from gitlab_ci_exporter.collectors import new_collector_status

status = new_collector_status()
status.with_labels({
    "project": "foo/bar", "topics": "", "kind": "branch",
    "ref": "main", "source": "push", "variables": "", "status": "success",
}).set(1)

list(status.collect())
# [({'project': 'foo/bar', ..., 'status': 'success'}, 1.0)]
```

The `new_collector_*` and `new_internal_collector_*` functions return a
`GaugeVec` or a `CounterVec` with the metric name, help text and label names
used by the exporter. `with_labels` must be given exactly the family's label
names, otherwise it raises `ValueError`. Gauges support `set`, `add`, `inc`
and `dec`; counters support `add` and `inc` and refuse negative amounts.
The label sets and the list of pipeline/job statuses are available as
`DEFAULT_LABELS`, `JOB_LABELS`, `ENVIRONMENT_LABELS`, `STATUSES` and so on.

## What this package does not do

It holds the configuration and the metric definitions only. It does not
query the GitLab API, schedule or run pull and garbage-collection tasks,
store projects, refs, environments or metrics, serve an HTTP `/metrics`,
health or webhook endpoint, render metrics in the Prometheus text format,
or provide a command-line program.
"""Reading configuration files."""

from __future__ import annotations

import os
from enum import IntEnum
from pathlib import Path

import yaml

from gitlab_ci_exporter.config import Config, ConfigError

_GITLAB_COM_URL = "https://gitlab.com"
_GITLAB_COM_HEALTH_URL = "https://gitlab.com/explore"


class Format(IntEnum):
    """Format of a config file."""

    YAML = 0


def parse_file(filename: str | os.PathLike[str]) -> Config:
    """Read a config file and decode it according to its extension."""
    fmt = get_type_from_file_extension(filename)
    data = Path(os.path.normpath(filename)).read_bytes()
    return parse(fmt, data)


def parse(fmt: Format | int, data: bytes | str) -> Config:
    """Decode config content written in the given format."""
    if fmt != Format.YAML:
        raise ConfigError(f"unsupported config type '{fmt}'")

    try:
        document = yaml.safe_load(data)
    except yaml.YAMLError as exc:
        raise ConfigError(f"invalid YAML: {exc}") from exc

    cfg = Config.from_mapping(document)

    # Self-hosted servers get their health endpoint unless one was given.
    if (
        cfg.gitlab.url != _GITLAB_COM_URL
        and cfg.gitlab.health_url == _GITLAB_COM_HEALTH_URL
    ):
        cfg.gitlab.health_url = f"{cfg.gitlab.url}/-/health"

    return cfg


def get_type_from_file_extension(filename: str | os.PathLike[str]) -> Format:
    """Return the config format matching the extension of ``filename``."""
    name = os.path.basename(os.fspath(filename))
    dot = name.rfind(".")
    ext = name[dot:] if dot >= 0 else ""
    if ext in (".yml", ".yaml"):
        return Format.YAML
    raise ConfigError(f"unsupported config type '{ext}', expected .y(a)ml")
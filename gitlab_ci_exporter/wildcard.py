"""Wildcards used to discover projects dynamically."""

from __future__ import annotations

from dataclasses import dataclass, field

from gitlab_ci_exporter.project import ProjectParameters


@dataclass
class WildcardOwner:
    """Owner (user or group) the wildcard searches projects within."""

    name: str = ""
    kind: str = ""
    include_subgroups: bool = False


@dataclass
class Wildcard(ProjectParameters):
    """A search for projects, with the parameters applied to the ones found."""

    search: str = ""
    owner: WildcardOwner = field(default_factory=WildcardOwner)
    archived: bool = False


def new_wildcard() -> Wildcard:
    """Return a wildcard with the default parameters."""
    return Wildcard()
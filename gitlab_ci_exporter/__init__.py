"""Configuration model and metric collector definitions for a GitLab CI pipelines exporter."""

__version__ = "0.1.0"
__all__ = ["collectors", "config", "parser", "project", "wildcard"]
[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "gitlab-ci-exporter"
version = "0.1.0"
description = "Configuration model and metric collector definitions for a GitLab CI pipelines exporter"
requires-python = ">=3.10"
keywords = ["gitlab", "ci", "pipelines", "prometheus", "metrics", "exporter", "monitoring", "configuration"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: System Administrators",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Monitoring",
    "Typing :: Typed",
]
dependencies = [
    "pyyaml>=6.0",
]

[project.optional-dependencies]
test = [
    "pytest>=7.0",
]

[tool.hatch.build.targets.wheel]
packages = ["gitlab_ci_exporter"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

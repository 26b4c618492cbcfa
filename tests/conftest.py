"""Shared pytest fixtures and test helpers for orbctl tests."""

from __future__ import annotations

import shutil
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner

from orbctl.config.settings import OrbctlSettings
from orbctl.domain.schema import Command, Executor, Job, OrbDefinition, Parameter
from orbctl.infrastructure.catalog import Catalog

FIXTURES = Path(__file__).parent / "fixtures"
PROJECT = FIXTURES / "project"
PROJECT_VERSIONS = ["1.0.0", "1.4.0", "2.0.0", "3.0.0"]

_NO_DEFAULT = object()


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep ORBCTL_* variables from the outer environment out of tests."""
    import os

    for key in list(os.environ):
        if key.startswith("ORBCTL_"):
            monkeypatch.delenv(key)


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def project_root(tmp_path: Path) -> Path:
    """A writable copy of the fixture orb project.

    Layout: ``orbctl.toml``, ``versions/`` (1.0.0, 1.4.0, 2.0.0 unpacked,
    3.0.0), ``migrations/`` for 1.4.0..2.0.0 and 2.0.0..3.0.0, and a
    ``.circleci/config.yml`` pinned to 1.4.0.
    """
    root = tmp_path / "project"
    shutil.copytree(PROJECT, root)
    return root


@pytest.fixture
def settings(project_root: Path) -> OrbctlSettings:
    return OrbctlSettings.from_cli(project_root=project_root)


@pytest.fixture
def catalog(settings: OrbctlSettings) -> Catalog:
    """Catalog over the fixture project's history and rules."""
    return Catalog(settings)


@pytest.fixture
def _isolated_project(project_root: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Change CWD to the project copy so the CLI discovers its orbctl.toml.

    Use via ``@pytest.mark.usefixtures("_isolated_project")`` on command
    test classes.
    """
    monkeypatch.chdir(project_root)


# ---------------------------------------------------------------------------
# Shared test helpers
# ---------------------------------------------------------------------------


def param(name: str, default: Any = _NO_DEFAULT, **kwargs: Any) -> Parameter:
    """Build a parameter; omitting *default* makes it required."""
    if default is _NO_DEFAULT:
        return Parameter(name=name, required=True, **kwargs)
    return Parameter(name=name, default=default, **kwargs)


def make_orb(
    *,
    commands: dict[str, list[Parameter]] | None = None,
    jobs: dict[str, list[Parameter]] | None = None,
    executors: dict[str, list[Parameter]] | None = None,
    **kwargs: Any,
) -> OrbDefinition:
    """Build a definition from ``name -> parameters`` mappings."""
    return OrbDefinition(
        commands={n: Command(name=n, parameters=p) for n, p in (commands or {}).items()},
        jobs={n: Job(name=n, parameters=p) for n, p in (jobs or {}).items()},
        executors={n: Executor(name=n, parameters=p) for n, p in (executors or {}).items()},
        **kwargs,
    )


def project_settings(root: Path, **flags: Any) -> OrbctlSettings:
    """Settings for a project directory holding ``orbctl.toml``."""
    return OrbctlSettings.from_cli(project_root=root, **flags)

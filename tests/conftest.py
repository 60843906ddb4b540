"""Shared pytest fixtures and test helpers for settingconv tests."""

from __future__ import annotations

from collections.abc import Generator
from pathlib import Path

import pytest
from click.testing import CliRunner

from settingconv.converters.editors import EDITORS
from settingconv.registry import ConverterRegistry, builtin_scalars


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def registry() -> ConverterRegistry:
    """Registry with the built-in scalars and no plugins."""
    return ConverterRegistry(builtin_scalars())


@pytest.fixture
def _isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Run from an empty temp directory so no settingconv.toml is discovered.

    Use via ``@pytest.mark.usefixtures("_isolated_config")``.
    """
    monkeypatch.delenv("SETTINGCONV_CONFIG", raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def _restore_editors() -> Generator[None]:
    """Snapshot and restore the global editor registry."""
    saved = dict(EDITORS._factories)
    yield
    with EDITORS._lock:
        EDITORS._factories.clear()
        EDITORS._factories.update(saved)


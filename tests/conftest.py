from __future__ import annotations

import logging
import os
import tempfile
from collections.abc import Generator, Iterator
from pathlib import Path
from typing import TYPE_CHECKING

import pytest

if TYPE_CHECKING:
    from click.testing import CliRunner

# Register fixture plugins from tests/fixtures/
pytest_plugins = [
    "tests.fixtures.schemas",
    "tests.fixtures.runtime",
]


@pytest.fixture(autouse=True)
def configure_test_logging() -> Generator[None, None, None]:
    """Configure structlog for the test environment.

    Runs automatically for every test so that log output goes to stderr at
    WARNING level and never mixes with captured stdout.
    """
    from pagewright.logging import configure_logging

    configure_logging(level=logging.WARNING)
    yield


@pytest.fixture
def temp_dir() -> Iterator[Path]:
    """Create a temporary directory for test files.

    Also saves and restores the current working directory so tests that
    chdir() do not affect each other.
    """
    original_cwd = os.getcwd()
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)
    os.chdir(original_cwd)


@pytest.fixture
def clean_env() -> Generator[None, None, None]:
    """Remove all PAGEWRIGHT_ environment variables for clean testing."""
    original_env = os.environ.copy()
    for key in list(os.environ.keys()):
        if key.startswith("PAGEWRIGHT_"):
            del os.environ[key]
    yield
    os.environ.clear()
    os.environ.update(original_env)


@pytest.fixture
def isolated_config(
    clean_env: None, temp_dir: Path, monkeypatch: pytest.MonkeyPatch
) -> Path:
    """Run from an empty directory with HOME pointed at it.

    Neither a project pagewright.yaml nor a user config file is found, so
    configuration comes from defaults and explicit values only.
    """
    monkeypatch.chdir(temp_dir)
    monkeypatch.setenv("HOME", str(temp_dir))
    return temp_dir


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner.

    Example:
        >>> def test_version(cli_runner):
        ...     from pagewright.main import cli
        ...     result = cli_runner.invoke(cli, ["--version"])
        ...     assert result.exit_code == 0
    """
    from click.testing import CliRunner

    return CliRunner()

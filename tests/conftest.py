"""
Pytest configuration and shared fixtures for the devcompare test suite.
"""

import os
from pathlib import Path
from typing import Callable

import pytest
from hypothesis import Phase, Verbosity, settings
from PyQt6.QtCore import QCoreApplication


# Register custom Hypothesis profiles
settings.register_profile("ci", max_examples=200, verbosity=Verbosity.verbose)
settings.register_profile("dev", max_examples=50, deadline=None)
settings.register_profile(
    "debug", max_examples=10, verbosity=Verbosity.verbose, phases=[Phase.explicit, Phase.reuse, Phase.generate]
)
settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "dev"))


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "slow: Slow tests that may take several seconds")
    config.addinivalue_line("markers", "cli: Tests related to command-line interface")


@pytest.fixture(scope="session")
def qapp() -> QCoreApplication:
    """A Qt application instance for signal and thread tests (no display needed)."""
    app = QCoreApplication.instance() or QCoreApplication([])
    yield app


@pytest.fixture
def make_file(tmp_path: Path) -> Callable[[str, bytes | str], Path]:
    """Factory writing a file under tmp_path and returning its path."""
    def _make(name: str, data: bytes | str) -> Path:
        path = tmp_path / name
        if isinstance(data, str):
            path.write_bytes(data.encode('utf-8'))
        else:
            path.write_bytes(data)
        return path
    return _make


@pytest.fixture
def config_path(tmp_path: Path) -> Path:
    """Settings file location that does not exist yet."""
    return tmp_path / "config" / "settings.json"


@pytest.fixture
def sample_old() -> str:
    return "def greet(name):\n    print('Hello ' + name)\n    return None\n"


@pytest.fixture
def sample_new() -> str:
    return "def greet(name):\n    print('Hi ' + name)\n    return None\n"

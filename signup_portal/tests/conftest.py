"""Shared test fixtures for Signup Portal."""

import pytest
from pathlib import Path

from signup_portal.services.config import ConfigManager
from signup_portal.services.reactive import (
    ImmediateScheduler,
    ManualScheduler,
    set_main_scheduler,
)


@pytest.fixture(autouse=True)
def restore_main_scheduler():
    """Put the default main scheduler back after each test."""
    yield
    set_main_scheduler(ImmediateScheduler())


@pytest.fixture
def scheduler() -> ManualScheduler:
    """Virtual-time scheduler."""
    return ManualScheduler()


@pytest.fixture
def main_queue(scheduler: ManualScheduler) -> ManualScheduler:
    """Install the virtual-time scheduler as the main scheduler."""
    set_main_scheduler(scheduler)
    return scheduler


@pytest.fixture
def config_manager(tmp_path: Path) -> ConfigManager:
    """Create a ConfigManager with temp directory."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    return ConfigManager(config_dir=config_dir)


class Box:
    """Plain attribute holder used as a binding target."""

    def __init__(self, **attributes) -> None:
        self.__dict__.update(attributes)

    def __repr__(self) -> str:
        return f"Box({', '.join(sorted(self.__dict__))})"


@pytest.fixture
def box():
    """Factory for plain attribute holders."""
    return Box

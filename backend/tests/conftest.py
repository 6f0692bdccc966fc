"""Pytest configuration and shared fixtures."""

import sys
from pathlib import Path

import pytest

# Add backend to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.config import AutomationConfig
from core.gateway import MockGateway
from core.scheduler import ManualScheduler
from controller import RunController


@pytest.fixture
def config() -> AutomationConfig:
    """Default line configuration."""
    return AutomationConfig()


@pytest.fixture
def scheduler() -> ManualScheduler:
    """Scheduler that only fires when the test advances time."""
    return ManualScheduler()


@pytest.fixture
def gateway() -> MockGateway:
    return MockGateway()


@pytest.fixture
def controller(gateway, config, scheduler) -> RunController:
    """Stopped controller wired to the mock gateway."""
    ctrl = RunController(gateway, config=config, scheduler=scheduler, clock=scheduler.clock)
    ctrl.attach()
    return ctrl


@pytest.fixture
def running(controller, gateway) -> RunController:
    """Running controller with the priming command cleared."""
    controller.start()
    gateway.clear_history()
    return controller

"""Core infrastructure layer - bus gateway, command model, config, timing"""

from .config import AutomationConfig, load_config
from .gateway import MockGateway
from .executor import CommandDispatcher

__all__ = ['AutomationConfig', 'load_config', 'MockGateway', 'CommandDispatcher']

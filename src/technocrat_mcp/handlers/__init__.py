"""
Built-in capability collaborators

This package registers the default capabilities into a registry at boot:
- tools: echo, system_info
- resources: info://server
- prompts: welcome and the workflow command prompts
"""

from typing import Optional

from ..config import Settings
from ..registry import Registry
from .prompts import register_prompts
from .resources import register_resources
from .tools import register_tools


def build_registry(settings: Optional[Settings] = None) -> Registry:
    """Create a registry populated with every built-in capability."""
    settings = settings or Settings()
    registry = Registry()
    register_tools(registry)
    register_resources(registry)
    register_prompts(registry, settings.commands_dir)
    return registry

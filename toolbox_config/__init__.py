"""
Configuration management for git-toolbox

Handles loading and validation of git-toolbox.toml and the repository setup
that goes with it.
"""

from .loader import ConfigurationLoader, parse_config
from .repo_setup import configure_repository, validate_repository
from .defaults import CONFIG_FILE

__all__ = [
    "ConfigurationLoader",
    "parse_config",
    "configure_repository",
    "validate_repository",
    "CONFIG_FILE",
]

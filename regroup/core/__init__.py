"""Regroup Core - Shared utilities and infrastructure.

Import specific functions from submodules:
    from regroup.core.config import ConfigManager
    from regroup.core import constants
    from regroup.core import logging
    from regroup.core import validators
"""

# Re-export main module references for convenience
from regroup.core import config, constants, logging, validators

__all__ = [
    "config",
    "constants",
    "logging",
    "validators",
]

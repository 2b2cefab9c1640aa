"""Helper modules and utilities for Stackport."""

from .config import StackportConfig, VolumeMapping, load_config
from .constants import VERSION
from .exceptions import StackportError, ProjectRootError, ConfigError, ManifestError, RestoreError
from .logging import get_logger, log_manager, setup_logging
from .system_utils import SystemUtils
from .ui_utils import run_command, SubprocessError

__all__ = [
    'StackportConfig',
    'VolumeMapping',
    'load_config',
    'VERSION',
    'StackportError',
    'ProjectRootError',
    'ConfigError',
    'ManifestError',
    'RestoreError',
    'get_logger',
    'log_manager',
    'setup_logging',
    'SystemUtils',
    'run_command',
    'SubprocessError',
]

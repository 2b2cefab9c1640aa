################################################################################
# STACKPORT
#
# @file:        __init__.py
# @module:      stackport
# @description: Exposes version, logging, and the export/restore managers.
# @author:      Stackport Contributors
# @version:     1.0.0
#
# ------------------------------------------------------------------------------
# MIT-Lizenz: siehe LICENSE oder https://opensource.org/licenses/MIT
# ==============================================================================
# Hinweise:
# - Sets __version__ from constants.VERSION for tooling introspection
# - Keeps logging helpers accessible via the package namespace
################################################################################

"""
Stackport: export a Docker Compose stack into a portable backup folder.

A backup folder holds the stack's images, volume archives and config files
together with a manifest and two small import scripts that restore it on
another Linux or Windows machine.
"""

from .helpers.constants import VERSION

__version__ = VERSION

from .helpers.logging import (
    get_logger,
    log_manager,
    setup_logging,
    StructuredFormatter,
    Colors,
)

from .types import (
    ExportReport,
    ItemOutcome,
    OutcomeStatus,
    RestoreReport,
)

from .helpers.config import StackportConfig, load_config
from .cores.export_manager import ExportManager
from .cores.restore_manager import RestoreManager

__all__ = [
    "VERSION",
    "ExportReport",
    "ItemOutcome",
    "OutcomeStatus",
    "RestoreReport",
    "StackportConfig",
    "load_config",
    "ExportManager",
    "RestoreManager",
    "get_logger",
    "log_manager",
    "setup_logging",
    "StructuredFormatter",
    "Colors",
]

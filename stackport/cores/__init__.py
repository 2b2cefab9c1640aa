"""Export and restore pipeline stages for Stackport."""

from .config_exporter import ConfigExporter
from .container_controller import ContainerController
from .export_manager import ExportManager
from .image_exporter import ImageExporter, image_archive_name
from .manifest import build_manifest, load_manifest, write_manifest
from .restore_manager import RestoreManager
from .retention import apply_retention, list_backups
from .root_locator import find_project_root, require_project_root
from .script_generator import generate_scripts
from .volume_exporter import VolumeExporter

__all__ = [
    'ConfigExporter',
    'ContainerController',
    'ExportManager',
    'ImageExporter',
    'image_archive_name',
    'build_manifest',
    'load_manifest',
    'write_manifest',
    'RestoreManager',
    'apply_retention',
    'list_backups',
    'find_project_root',
    'require_project_root',
    'generate_scripts',
    'VolumeExporter',
]

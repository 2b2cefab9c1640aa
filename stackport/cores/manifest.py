################################################################################
# STACKPORT
#
# @file:        manifest.py
# @module:      stackport.cores.manifest
# @description: Versioned backup manifest shared by export and restore.
# @author:      Stackport Contributors
# @version:     1.0.0
#
# ------------------------------------------------------------------------------
# MIT-Lizenz: siehe LICENSE oder https://opensource.org/licenses/MIT
# ==============================================================================
# Hinweise:
# - manifest.json is the only name -> path table the restore side reads
# - Schema is enforced with jsonschema before any restore step runs
################################################################################

"""
Backup manifest.

Written into every backup directory next to the generated import scripts.
It records where each archived volume belongs, relative to the project root,
and where the project root lies relative to the backup directory.
"""

from __future__ import annotations

import json
import os
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

import jsonschema

from ..helpers.config import StackportConfig
from ..helpers.constants import MANIFEST_FILE, MANIFEST_SCHEMA_VERSION, VERSION
from ..helpers.exceptions import ManifestError
from ..helpers.logging import get_logger
from ..types import ItemOutcome, OutcomeStatus

logger = get_logger(__name__)

FORMAT_ZIP = "zip"
FORMAT_DIR = "dir"

# Relative path below the project root: no leading slash or drive, no "." or ".." segment
TARGET_PATTERN = r"^(?![/\\])(?![A-Za-z]:)(?!(.*[/\\])?\.{1,2}([/\\]|$)).+$"

MANIFEST_SCHEMA: Dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "required": ["schema_version", "backup_name", "project_root_relpath", "volumes", "compose_command"],
    "properties": {
        "schema_version": {"const": MANIFEST_SCHEMA_VERSION},
        "tool_version": {"type": "string"},
        "created_at": {"type": "string"},
        "backup_name": {"type": "string", "minLength": 1},
        "project_root_relpath": {"type": "string", "minLength": 1},
        "images": {"type": "array", "items": {"type": "string"}},
        "config_files": {"type": "array", "items": {"type": "string"}},
        "compose_command": {"type": "array", "items": {"type": "string"}, "minItems": 1},
        "volumes": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["name", "target"],
                "properties": {
                    "name": {"type": "string", "pattern": "^[A-Za-z0-9._-]+$"},
                    "target": {"type": "string", "minLength": 1, "pattern": TARGET_PATTERN},
                    "format": {"enum": [FORMAT_ZIP, FORMAT_DIR, None]},
                    "archive_root": {"type": "string"},
                },
                "additionalProperties": False,
            },
        },
    },
}


def build_manifest(
    config: StackportConfig,
    backup_dir: Path,
    project_root: Path,
    volume_outcomes: Optional[List[ItemOutcome]] = None,
    archive_roots: Optional[Dict[str, str]] = None,
    created_at: Optional[datetime] = None,
) -> Dict[str, Any]:
    """
    Build the manifest for a backup.

    Every configured volume is listed, exported or not, so the restore table
    always matches the export table. ``format`` is ``zip``/``dir`` for
    exported volumes and ``None`` for skipped or failed ones. ``created_at``
    defaults to the current time.
    """
    archive_roots = archive_roots or {}
    formats: Dict[str, Optional[str]] = {}
    for outcome in volume_outcomes or []:
        if outcome.status == OutcomeStatus.OK and outcome.path is not None:
            formats[outcome.name] = FORMAT_ZIP if outcome.path.suffix == ".zip" else FORMAT_DIR

    relpath = os.path.relpath(Path(project_root).resolve(), Path(backup_dir).resolve())

    return {
        "schema_version": MANIFEST_SCHEMA_VERSION,
        "tool_version": VERSION,
        "created_at": (created_at or datetime.now()).isoformat(timespec="seconds"),
        "backup_name": config.backup_name,
        "project_root_relpath": Path(relpath).as_posix(),
        "images": list(config.images),
        "config_files": list(config.config_files),
        "compose_command": list(config.compose_command),
        "volumes": [
            {
                "name": name,
                "target": target,
                "format": formats.get(name),
                "archive_root": archive_roots.get(name, ""),
            }
            for name, target in config.volume_table().items()
        ],
    }


def validate_manifest(data: Any) -> Dict[str, Any]:
    """Raise ManifestError unless ``data`` matches MANIFEST_SCHEMA."""
    try:
        jsonschema.validate(instance=data, schema=MANIFEST_SCHEMA)
    except jsonschema.ValidationError as e:
        path = "/".join(str(p) for p in e.absolute_path) or "<root>"
        raise ManifestError(f"Invalid manifest at {path}: {e.message}") from e
    return data


def write_manifest(backup_dir: Path, manifest: Dict[str, Any]) -> Path:
    validate_manifest(manifest)
    path = Path(backup_dir) / MANIFEST_FILE
    path.write_text(json.dumps(manifest, indent=2) + "\n", encoding="utf-8")
    logger.debug(f"Manifest written to {path}")
    return path


def load_manifest(backup_dir: Path) -> Dict[str, Any]:
    """
    Read and validate ``manifest.json`` from a backup directory.

    Raises:
        ManifestError: file missing, not JSON, or schema mismatch
    """
    path = Path(backup_dir) / MANIFEST_FILE
    if not path.is_file():
        raise ManifestError(f"Manifest not found: {path}")
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ManifestError(f"Manifest is not valid JSON: {e}") from e
    return validate_manifest(data)


def volume_table(manifest: Dict[str, Any]) -> Dict[str, Dict[str, Optional[str]]]:
    """name -> {'target': relative path, 'archive_root': nesting folder, '' or None if unrecorded}"""
    return {
        entry["name"]: {"target": entry["target"], "archive_root": entry.get("archive_root")}
        for entry in manifest["volumes"]
    }

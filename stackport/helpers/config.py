################################################################################
# STACKPORT
#
# @file:        config.py
# @module:      stackport.helpers.config
# @description: Immutable, validated configuration for export and restore runs.
# @author:      Stackport Contributors
# @version:     1.0.0
#
# ------------------------------------------------------------------------------
# MIT-Lizenz: siehe LICENSE oder https://opensource.org/licenses/MIT
################################################################################

"""
Pydantic configuration models for Stackport.

The defaults describe the stack this tool was written for. A project can
override any field with a ``stackport.json`` next to its compose file, or a
file passed with ``--config``.
"""

from __future__ import annotations

import json
import re
from pathlib import Path, PurePosixPath
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from .constants import (
    COMMAND_TIMEOUT,
    COMPRESSOR_7Z,
    COMPRESSOR_AUTO,
    COMPRESSOR_BUILTIN,
    CONTAINER_STOP_DELAY,
    DEFAULT_BACKUP_NAME,
    DEFAULT_COMPOSE_COMMAND,
    DEFAULT_CONFIG_FILENAME,
    DEFAULT_CONFIG_FILES,
    DEFAULT_CONTAINERS,
    DEFAULT_IMAGES,
    DEFAULT_MARKER_FILE,
    DEFAULT_OUTPUT_DIR,
    DEFAULT_RETENTION,
    DEFAULT_VOLUMES,
    MIN_FREE_DISK_GB,
    QUERY_TIMEOUT,
    TIMESTAMP_FORMAT,
)
from .exceptions import ConfigError
from .logging import get_logger

logger = get_logger(__name__)

ARCHIVE_NAME_PATTERN = re.compile(r"^[A-Za-z0-9._-]+$")


def _relative_posix(value: str, what: str) -> str:
    """Normalize a project-relative path to POSIX form and reject escapes."""
    if not value or not value.strip():
        raise ValueError(f"{what} cannot be empty")
    path = PurePosixPath(value.strip().replace("\\", "/"))
    if path.is_absolute() or re.match(r"^[A-Za-z]:", str(path)):
        raise ValueError(f"{what} must be relative to the project root: {value}")
    if ".." in path.parts:
        raise ValueError(f"{what} must not leave the project root: {value}")
    if not path.parts:
        raise ValueError(f"{what} must name a directory below the project root: {value}")
    return str(path)


class VolumeMapping(BaseModel):
    """A bind-mounted directory and the name it is archived under"""

    model_config = ConfigDict(frozen=True)

    local_path: str = Field(..., description="Directory relative to the project root")
    archive_name: str = Field(..., description="Base name of the zip / copy in volumes/")

    @field_validator("local_path")
    @classmethod
    def validate_local_path(cls, v: str) -> str:
        return _relative_posix(v, "Volume path")

    @field_validator("archive_name")
    @classmethod
    def validate_archive_name(cls, v: str) -> str:
        if not ARCHIVE_NAME_PATTERN.match(v or ""):
            raise ValueError(f"Invalid archive name: {v!r} (allowed: letters, digits, '.', '_', '-')")
        return v


class StackportConfig(BaseModel):
    """Everything an export run needs; passed unchanged into each stage"""

    model_config = ConfigDict(frozen=True, extra="forbid")

    marker_file: str = Field(default=DEFAULT_MARKER_FILE, description="File that marks the project root")
    output_dir: str = Field(default=DEFAULT_OUTPUT_DIR, description="Backup directory, relative to project root")
    backup_name: str = Field(default=DEFAULT_BACKUP_NAME, description="Prefix of every backup folder")
    timestamp_format: str = Field(default=TIMESTAMP_FORMAT)

    containers: List[str] = Field(default_factory=lambda: list(DEFAULT_CONTAINERS))
    images: List[str] = Field(default_factory=lambda: list(DEFAULT_IMAGES))
    volumes: List[VolumeMapping] = Field(
        default_factory=lambda: [VolumeMapping(local_path=p, archive_name=n) for p, n in DEFAULT_VOLUMES]
    )
    config_files: List[str] = Field(default_factory=lambda: list(DEFAULT_CONFIG_FILES))

    retention: int = Field(default=DEFAULT_RETENTION, ge=1, description="Backups to keep, including the new one")
    stop_containers: bool = Field(default=True, description="Stop running containers before volume export")
    stop_delay_seconds: float = Field(default=CONTAINER_STOP_DELAY, ge=0)
    compressor: Literal["auto", "builtin"] = Field(
        default=COMPRESSOR_AUTO, description="auto = 7-Zip when installed, else the built-in zip writer"
    )
    command_timeout: Optional[float] = Field(
        default=COMMAND_TIMEOUT, gt=0, description="Timeout for save/load/compress (None = unbounded)"
    )
    query_timeout: float = Field(default=QUERY_TIMEOUT, gt=0, description="Timeout for ps/inspect queries")
    compose_command: List[str] = Field(default_factory=lambda: list(DEFAULT_COMPOSE_COMMAND))
    min_free_gb: float = Field(default=MIN_FREE_DISK_GB, ge=0)

    @field_validator("images", "containers")
    @classmethod
    def validate_names(cls, v: List[str]) -> List[str]:
        cleaned = [item.strip() for item in v]
        if any(not item for item in cleaned):
            raise ValueError("Image and container names cannot be empty")
        return cleaned

    @field_validator("config_files")
    @classmethod
    def validate_config_files(cls, v: List[str]) -> List[str]:
        return [_relative_posix(item, "Config file") for item in v]

    @field_validator("output_dir")
    @classmethod
    def validate_output_dir(cls, v: str) -> str:
        return _relative_posix(v, "Output directory")

    @field_validator("backup_name")
    @classmethod
    def validate_backup_name(cls, v: str) -> str:
        if not ARCHIVE_NAME_PATTERN.match(v or ""):
            raise ValueError(f"Invalid backup name: {v!r}")
        return v

    @field_validator("compose_command")
    @classmethod
    def validate_compose_command(cls, v: List[str]) -> List[str]:
        if not v:
            raise ValueError("compose_command cannot be empty")
        return v

    @model_validator(mode="after")
    def validate_unique_archive_names(self) -> "StackportConfig":
        seen = set()
        for mapping in self.volumes:
            if mapping.archive_name in seen:
                raise ValueError(f"Duplicate volume archive name: {mapping.archive_name}")
            seen.add(mapping.archive_name)
        return self

    # --------------- Derived values ---------------

    @property
    def compressor_choices(self) -> tuple:
        """Compressors to try in order."""
        if self.compressor == COMPRESSOR_AUTO:
            return (COMPRESSOR_7Z, COMPRESSOR_BUILTIN)
        return (self.compressor,)

    def volume_table(self) -> Dict[str, str]:
        """archive name -> local path, in configured order"""
        return {m.archive_name: m.local_path for m in self.volumes}

    def output_path(self, project_root: Path) -> Path:
        return Path(project_root) / self.output_dir


def load_config(
    path: Optional[Path] = None,
    project_root: Optional[Path] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> StackportConfig:
    """
    Load configuration.

    Resolution order: explicit ``path``, then ``stackport.json`` in the
    project root, then built-in defaults. ``overrides`` (e.g. CLI flags) win
    over file values.

    Raises:
        ConfigError: file missing (explicit path), invalid JSON or invalid values
    """
    data: Dict[str, Any] = {}
    source = "defaults"

    if path is not None:
        path = Path(path).expanduser()
        if not path.is_file():
            raise ConfigError(f"Config file not found: {path}")
    elif project_root is not None and (Path(project_root) / DEFAULT_CONFIG_FILENAME).is_file():
        path = Path(project_root) / DEFAULT_CONFIG_FILENAME

    if path is not None:
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid JSON in {path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"Config file {path} must contain a JSON object")
        source = str(path)

    if overrides:
        data.update({k: v for k, v in overrides.items() if v is not None})

    try:
        config = StackportConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration ({source}):\n{e}") from e

    logger.debug(f"Configuration loaded from {source}", extra={"source": source})
    return config

################################################################################
# STACKPORT
#
# @file:        constants.py
# @module:      stackport.helpers.constants
# @description: Defaults for the exported stack, backup layout and timeouts.
# @author:      Stackport Contributors
# @version:     1.0.0
#
# ------------------------------------------------------------------------------
# MIT-Lizenz: siehe LICENSE oder https://opensource.org/licenses/MIT
################################################################################

"""
Constants used throughout Stackport.

This module defines all constant values used across different modules
to ensure consistency and ease of maintenance.
"""

# Version information
VERSION = "1.0.0"

# Project root detection
DEFAULT_MARKER_FILE = "docker-compose.yml"
DEFAULT_CONFIG_FILENAME = "stackport.json"

# Backup layout
DEFAULT_OUTPUT_DIR = "backups"
DEFAULT_BACKUP_NAME = "stack_backup"
TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"
IMAGES_DIR = "images"
VOLUMES_DIR = "volumes"
CONFIG_DIR = "config"
MANIFEST_FILE = "manifest.json"
REPORT_FILE = "export-report.json"
LINUX_SCRIPT = "import_linux.sh"
WINDOWS_SCRIPT = "import_windows.ps1"

# Manifest versioning
MANIFEST_SCHEMA_VERSION = 1

# Retention
DEFAULT_RETENTION = 3

# Services of the stack (graph db, vector db + deps, relational db, apps)
DEFAULT_CONTAINERS = [
    "neo4j",
    "milvus-standalone",
    "milvus-etcd",
    "milvus-minio",
    "postgres",
]

DEFAULT_IMAGES = [
    "neo4j:5.15.0",
    "milvusdb/milvus:v2.3.3",
    "quay.io/coreos/etcd:v3.5.5",
    "minio/minio:RELEASE.2023-03-20T20-16-18Z",
    "postgres:15",
    "stack-backend:latest",
    "stack-frontend:latest",
]

# (local directory relative to project root, archive name)
DEFAULT_VOLUMES = [
    ("docker/volumes/neo4j/data", "neo4j_data"),
    ("docker/volumes/neo4j/logs", "neo4j_logs"),
    ("docker/volumes/milvus", "milvus_data"),
    ("docker/volumes/etcd", "etcd_data"),
    ("docker/volumes/minio", "minio_data"),
    ("docker/volumes/postgresql", "postgres_data"),
]

DEFAULT_CONFIG_FILES = [
    ".env",
    "docker-compose.yml",
]

DEFAULT_COMPOSE_COMMAND = ["docker", "compose", "up", "-d"]

# Compression
COMPRESSOR_AUTO = "auto"
COMPRESSOR_7Z = "7z"
COMPRESSOR_BUILTIN = "builtin"
SEVEN_ZIP_BINARIES = ("7z", "7za", "7zz")

# Timeouts (in seconds); None means the command may run unbounded
CONTAINER_STOP_DELAY = 2
QUERY_TIMEOUT = 30
COMMAND_TIMEOUT = None

# Pre-flight
MIN_FREE_DISK_GB = 1.0

# Logging
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
LOG_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

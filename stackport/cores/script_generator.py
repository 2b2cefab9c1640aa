"""
Restore entry points for Linux and Windows.

Both scripts are rendered from the backup manifest and contain no restore
logic of their own: they locate themselves, work out the project root and
hand over to ``python -m stackport restore``, so there is exactly one restore
implementation regardless of the host OS.
"""

from pathlib import Path
from string import Template
from typing import Any, Dict, List

from ..helpers.constants import LINUX_SCRIPT, VERSION, WINDOWS_SCRIPT
from ..helpers.logging import get_logger
from ..types import ItemOutcome, OutcomeStatus, STAGE_SCRIPTS

logger = get_logger(__name__)


class _ScriptTemplate(Template):
    # "$" belongs to bash and PowerShell
    delimiter = "@@"


LINUX_TEMPLATE = _ScriptTemplate("""\
#!/usr/bin/env bash
#
# Stackport restore script (Linux)
# Backup:    @@{backup_name}
# Generated: @@{created_at}
#
# Takes no arguments. All paths are derived from this file's location, so the
# backup folder may be moved or renamed freely.
#
# Requires on this host: Docker, and Python 3.10+ with stackport==@@{tool_version}
# installed (python -m pip install stackport==@@{tool_version}).
#
# Volumes (archive name -> directory below the project root):
@@{volume_lines}
#
# Environment overrides:
#   STACKPORT_TARGET_ROOT  project root to restore into (default: @@{project_root_relpath} from here)
#   PYTHON                 interpreter with stackport installed (default: python3)
#
set -euo pipefail

SCRIPT_DIR="$(cd "$(dirname "${BASH_SOURCE[0]}")" && pwd)"
TARGET_ROOT="${STACKPORT_TARGET_ROOT:-$SCRIPT_DIR/@@{project_root_relpath}}"
PYTHON="${PYTHON:-python3}"

command -v docker >/dev/null 2>&1 || { echo "ERROR docker not found"; exit 1; }
command -v "$PYTHON" >/dev/null 2>&1 || { echo "ERROR $PYTHON not found"; exit 1; }
if ! "$PYTHON" -c "import stackport" >/dev/null 2>&1; then
    echo "ERROR stackport is not installed for $PYTHON"
    echo "      Install it with: $PYTHON -m pip install stackport==@@{tool_version}"
    exit 1
fi

mkdir -p "$TARGET_ROOT"
TARGET_ROOT="$(cd "$TARGET_ROOT" && pwd)"

echo "STEP  Restoring $SCRIPT_DIR into $TARGET_ROOT"
exec "$PYTHON" -m stackport restore "$SCRIPT_DIR" --target "$TARGET_ROOT"
""")


WINDOWS_TEMPLATE = _ScriptTemplate("""\
#
# Stackport restore script (Windows)
# Backup:    @@{backup_name}
# Generated: @@{created_at}
#
# Takes no arguments. All paths are derived from this file's location, so the
# backup folder may be moved or renamed freely.
#
# Requires on this host: Docker, and Python 3.10+ with stackport==@@{tool_version}
# installed (python -m pip install stackport==@@{tool_version}).
#
# Volumes (archive name -> directory below the project root):
@@{volume_lines}
#
# Environment overrides:
#   STACKPORT_TARGET_ROOT  project root to restore into (default: @@{project_root_relpath} from here)
#   PYTHON                 interpreter with stackport installed (default: python)
#
$ErrorActionPreference = 'Stop'

$ScriptDir = $PSScriptRoot
if ($env:STACKPORT_TARGET_ROOT) {
    $TargetRoot = $env:STACKPORT_TARGET_ROOT
} else {
    $TargetRoot = Join-Path $ScriptDir '@@{project_root_relpath}'
}
$Python = if ($env:PYTHON) { $env:PYTHON } else { 'python' }

if (-not (Get-Command docker -ErrorAction SilentlyContinue)) {
    Write-Host 'ERROR docker not found'
    exit 1
}
if (-not (Get-Command $Python -ErrorAction SilentlyContinue)) {
    Write-Host "ERROR $Python not found"
    exit 1
}
try { & $Python -c 'import stackport' 2>$null | Out-Null } catch { }
if ($LASTEXITCODE -ne 0) {
    Write-Host "ERROR stackport is not installed for $Python"
    Write-Host "      Install it with: $Python -m pip install stackport==@@{tool_version}"
    exit 1
}

New-Item -ItemType Directory -Force -Path $TargetRoot | Out-Null
$TargetRoot = (Resolve-Path $TargetRoot).Path

Write-Host "STEP  Restoring $ScriptDir into $TargetRoot"
& $Python -m stackport restore $ScriptDir --target $TargetRoot
exit $LASTEXITCODE
""")


def _template_values(manifest: Dict[str, Any]) -> Dict[str, str]:
    volumes = manifest.get("volumes", [])
    width = max((len(v["name"]) for v in volumes), default=0)
    volume_lines = "\n".join(f"#   {v['name'].ljust(width)} -> {v['target']}" for v in volumes) or "#   (none)"
    return {
        "backup_name": manifest["backup_name"],
        "tool_version": manifest.get("tool_version", VERSION),
        "created_at": manifest.get("created_at", ""),
        "project_root_relpath": manifest["project_root_relpath"],
        "volume_lines": volume_lines,
    }


def render_linux_script(manifest: Dict[str, Any]) -> str:
    return LINUX_TEMPLATE.substitute(_template_values(manifest))


def render_windows_script(manifest: Dict[str, Any]) -> str:
    return WINDOWS_TEMPLATE.substitute(_template_values(manifest))


def generate_scripts(backup_dir: Path, manifest: Dict[str, Any]) -> List[ItemOutcome]:
    """
    Write import_linux.sh (LF, 0755) and import_windows.ps1 (CRLF) into ``backup_dir``.
    """
    outcomes = []
    for filename, render, newline in (
        (LINUX_SCRIPT, render_linux_script, "\n"),
        (WINDOWS_SCRIPT, render_windows_script, "\r\n"),
    ):
        path = Path(backup_dir) / filename
        try:
            path.write_text(render(manifest), encoding="utf-8", newline=newline)
            if filename == LINUX_SCRIPT:
                path.chmod(0o755)
        except OSError as e:
            logger.error(f"Failed to write {filename}: {e}", extra={'script': filename})
            outcomes.append(ItemOutcome(STAGE_SCRIPTS, filename, OutcomeStatus.FAILED, f"write failed: {e}"))
            continue
        logger.info(f"Generated {filename}", extra={'script': filename})
        outcomes.append(ItemOutcome(STAGE_SCRIPTS, filename, OutcomeStatus.OK, "generated", path, path.stat().st_size))
    return outcomes

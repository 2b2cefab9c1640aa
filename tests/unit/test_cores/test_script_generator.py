"""Tests for the generated import scripts."""

import os
import stat

import pytest

from stackport.cores.script_generator import generate_scripts, render_linux_script, render_windows_script
from stackport.helpers.constants import VERSION


@pytest.fixture
def manifest():
    return {
        "schema_version": 1,
        "backup_name": "stack_backup",
        "created_at": "2025-01-01T12:00:00",
        "project_root_relpath": "../..",
        "compose_command": ["docker", "compose", "up", "-d"],
        "volumes": [
            {"name": "postgres_data", "target": "docker/volumes/postgresql", "format": "zip", "archive_root": ""},
            {"name": "neo4j_data", "target": "docker/volumes/neo4j/data", "format": None, "archive_root": ""},
        ],
    }


@pytest.mark.unit
class TestRenderLinux:
    def test_delegates_to_single_restore(self, manifest):
        script = render_linux_script(manifest)
        assert script.startswith("#!/usr/bin/env bash\n")
        assert "set -euo pipefail" in script
        assert '-m stackport restore "$SCRIPT_DIR" --target "$TARGET_ROOT"' in script

    def test_derives_paths_from_own_location(self, manifest):
        script = render_linux_script(manifest)
        assert 'SCRIPT_DIR="$(cd "$(dirname "${BASH_SOURCE[0]}")" && pwd)"' in script
        assert "$SCRIPT_DIR/../.." in script

    def test_lists_volume_table(self, manifest):
        script = render_linux_script(manifest)
        assert "postgres_data -> docker/volumes/postgresql" in script
        assert "neo4j_data    -> docker/volumes/neo4j/data" in script

    def test_no_unsubstituted_placeholders(self, manifest):
        assert "@@" not in render_linux_script(manifest)
        assert "@@" not in render_windows_script(manifest)


@pytest.mark.unit
class TestRenderWindows:
    def test_uses_script_root(self, manifest):
        script = render_windows_script(manifest)
        assert "$ScriptDir = $PSScriptRoot" in script
        assert "$ErrorActionPreference = 'Stop'" in script
        assert "-m stackport restore $ScriptDir --target $TargetRoot" in script

    def test_ascii_only(self, manifest):
        render_windows_script(manifest).encode("ascii")


@pytest.mark.unit
class TestGenerateScripts:
    def test_writes_both_scripts(self, manifest, tmp_path):
        outcomes = generate_scripts(tmp_path, manifest)

        assert [o.name for o in outcomes] == ["import_linux.sh", "import_windows.ps1"]
        assert all(o.ok for o in outcomes)

    def test_line_endings(self, manifest, tmp_path):
        generate_scripts(tmp_path, manifest)
        linux = (tmp_path / "import_linux.sh").read_bytes()
        windows = (tmp_path / "import_windows.ps1").read_bytes()

        assert b"\r\n" not in linux
        assert windows.count(b"\r\n") == windows.count(b"\n")

    @pytest.mark.skipif(os.name == "nt", reason="POSIX permissions")
    def test_linux_script_is_executable(self, manifest, tmp_path):
        generate_scripts(tmp_path, manifest)
        mode = (tmp_path / "import_linux.sh").stat().st_mode
        assert mode & stat.S_IXUSR

    def test_write_failure_is_reported(self, manifest, tmp_path):
        outcomes = generate_scripts(tmp_path / "missing", manifest)
        assert all(not o.ok for o in outcomes)
        assert "write failed" in outcomes[0].message


@pytest.mark.unit
class TestRestorePrerequisites:
    def test_scripts_name_the_install_command(self, manifest):
        manifest["tool_version"] = "1.2.3"
        for script in (render_linux_script(manifest), render_windows_script(manifest)):
            assert "Requires on this host: Docker, and Python 3.10+ with stackport==1.2.3" in script
            assert "-m pip install stackport==1.2.3" in script

    def test_install_command_defaults_to_running_version(self, manifest):
        assert f"pip install stackport=={VERSION}" in render_linux_script(manifest)

    def test_linux_checks_package_before_restore(self, manifest):
        script = render_linux_script(manifest)
        check = script.index('if ! "$PYTHON" -c "import stackport"')
        assert check < script.index("-m stackport restore")

    def test_windows_checks_package_before_restore(self, manifest):
        script = render_windows_script(manifest)
        check = script.index("& $Python -c 'import stackport'")
        assert check < script.index("-m stackport restore")

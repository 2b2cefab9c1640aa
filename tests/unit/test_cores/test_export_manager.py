"""Tests for ExportManager orchestration."""

import json
from datetime import datetime
from unittest.mock import Mock, patch

import pytest

from stackport.cores.export_manager import ExportManager
from stackport.types import OutcomeStatus, STAGE_CONTAINERS, STAGE_IMAGES, STAGE_VOLUMES


class Clock:
    """Returns 2025-01-01 12:00:00, advancing one second per call."""

    def __init__(self):
        self.tick = 0

    def __call__(self):
        self.tick += 1
        return datetime(2025, 1, 1, 12, 0, 0).replace(second=self.tick % 60)


@pytest.fixture
def manager_factory(project, config, fake_docker):
    def factory(**overrides):
        cfg = config.model_copy(update=overrides) if overrides else config
        return ExportManager(cfg, project, runner=fake_docker, sleep=Mock(), now=Clock(), verbose=False)
    return factory


@pytest.mark.unit
class TestCreateBackupDir:
    def test_name_contains_prefix_and_timestamp(self, project, config, fake_docker):
        now = Mock(return_value=datetime(2025, 3, 4, 5, 6, 7))
        manager = ExportManager(config, project, runner=fake_docker, now=now, verbose=False)

        assert manager.create_backup_dir() == project.resolve() / "backups" / "stack_backup_20250304_050607"

    def test_collision_gets_suffix(self, project, config, fake_docker):
        now = Mock(return_value=datetime(2025, 3, 4, 5, 6, 7))
        manager = ExportManager(config, project, runner=fake_docker, now=now, verbose=False)

        first = manager.create_backup_dir()
        second = manager.create_backup_dir()
        assert second.name == first.name + "_1"


@pytest.mark.unit
class TestExportRun:
    def test_layout(self, manager_factory, fake_docker):
        fake_docker.images = {"postgres:15"}
        report = manager_factory().run()
        backup = report.backup_dir

        assert (backup / "images" / "postgres_15.tar").is_file()
        assert (backup / "volumes" / "postgres_data.zip").is_file()
        assert (backup / "volumes" / "neo4j_data.zip").is_file()
        assert (backup / "config" / ".env").is_file()
        assert (backup / "manifest.json").is_file()
        assert (backup / "import_linux.sh").is_file()
        assert (backup / "import_windows.ps1").is_file()
        assert report.success
        assert report.total_size_bytes > 0

    def test_skips_are_not_failures(self, manager_factory):
        report = manager_factory().run()

        skipped = {(o.stage, o.name) for o in report.skipped}
        assert (STAGE_IMAGES, "stack-backend:latest") in skipped
        assert (STAGE_VOLUMES, "minio_data") in skipped
        assert report.success

    def test_manifest_matches_configured_volumes(self, manager_factory, config):
        report = manager_factory().run()
        manifest = json.loads((report.backup_dir / "manifest.json").read_text())

        assert {v["name"]: v["target"] for v in manifest["volumes"]} == config.volume_table()
        assert manifest["project_root_relpath"] == "../.."

    def test_report_file_written(self, manager_factory):
        report = manager_factory().run()
        data = json.loads((report.backup_dir / "export-report.json").read_text())

        assert data["success"] is True
        assert data["backup_dir"] == str(report.backup_dir)
        assert len(data["outcomes"]) == len(report.outcomes)

    def test_only_stopped_containers_restarted(self, manager_factory, fake_docker):
        fake_docker.running = {"neo4j"}
        report = manager_factory().run()

        assert report.stopped_containers == ["neo4j"]
        assert report.restarted_containers == ["neo4j"]
        assert fake_docker.verbs("start") == ["neo4j"]
        assert fake_docker.running == {"neo4j"}

    def test_no_stop_leaves_containers_alone(self, manager_factory, fake_docker):
        fake_docker.running = {"neo4j", "postgres"}
        report = manager_factory(stop_containers=False).run()

        assert fake_docker.verbs("ps") == []
        assert fake_docker.verbs("stop") == []
        assert report.by_stage(STAGE_CONTAINERS) == []

    def test_containers_restarted_on_unexpected_error(self, manager_factory, fake_docker):
        fake_docker.running = {"postgres"}
        manager = manager_factory()

        with patch.object(manager.volumes, "export_all", side_effect=RuntimeError("boom")):
            with pytest.raises(RuntimeError):
                manager.run()

        assert fake_docker.verbs("start") == ["postgres"]

    def test_partial_failure_marks_report(self, manager_factory, fake_docker):
        fake_docker.images = {"postgres:15", "stack-backend:latest"}
        fake_docker.fail = {("save", "postgres:15")}
        report = manager_factory().run()

        assert not report.success
        assert [o.name for o in report.failures] == ["postgres:15"]
        assert (report.backup_dir / "images" / "stack-backend_latest.tar").is_file()

    def test_retention_keeps_newest(self, manager_factory):
        manager = manager_factory(retention=2)
        reports = [manager.run() for _ in range(3)]

        assert not reports[0].backup_dir.exists()
        assert reports[1].backup_dir.exists()
        assert reports[2].backup_dir.exists()
        assert reports[2].deleted_backups == [reports[0].backup_dir]

    def test_low_disk_space_only_warns(self, manager_factory):
        with patch("stackport.cores.export_manager.SystemUtils.get_available_disk_space", return_value=0.1):
            report = manager_factory(min_free_gb=5).run()
        assert report.success


@pytest.mark.unit
class TestPreflight:
    def test_docker_checked_first(self, manager_factory, fake_docker):
        manager_factory().run()
        assert fake_docker.calls[0] == ["docker", "version"]

    def test_missing_docker_warns_and_continues(self, manager_factory, fake_docker):
        fake_docker.fail = {("version", "version")}
        manager = manager_factory()

        with patch.object(manager, "_warn") as mock_warn:
            report = manager.run()

        mock_warn.assert_any_call("Docker is not available; container and image stages will fail")
        assert (report.backup_dir / "manifest.json").is_file()


@pytest.mark.unit
class TestConsoleOutput:
    @patch("stackport.cores.export_manager.ui_utils")
    def test_container_not_running_is_reported_as_ok(self, mock_ui, project, config, fake_docker):
        manager = ExportManager(config, project, runner=fake_docker, sleep=Mock(), now=Clock(), verbose=True)
        manager.run()

        successes = [c.args[0] for c in mock_ui.print_success.call_args_list]
        warnings = [c.args[0] for c in mock_ui.print_warning.call_args_list]
        assert "containers: neo4j (not running)" in successes
        assert not any(w.startswith("containers:") for w in warnings)
        assert "volumes: minio_data" in " ".join(warnings)

    def test_manifest_timestamp_follows_clock(self, manager_factory):
        report = manager_factory().run()
        manifest = json.loads((report.backup_dir / "manifest.json").read_text())

        assert manifest["created_at"] == report.started_at.isoformat(timespec="seconds")
        assert manifest["created_at"] == "2025-01-01T12:00:01"

"""Tests for ConfigExporter."""

import pytest

from stackport.cores.config_exporter import ConfigExporter
from stackport.types import OutcomeStatus


@pytest.mark.unit
class TestConfigExporter:
    def test_copies_files_by_name(self, project, config, tmp_path):
        outcomes = ConfigExporter(config, project).export_all(tmp_path / "config")

        assert all(o.ok for o in outcomes)
        assert (tmp_path / "config" / ".env").read_text() == "POSTGRES_PASSWORD=secret\n"
        assert (tmp_path / "config" / "docker-compose.yml").is_file()

    def test_missing_file_is_skipped(self, project, config, tmp_path):
        (project / ".env").unlink()
        outcomes = ConfigExporter(config, project).export_all(tmp_path / "config")

        assert outcomes[0].status == OutcomeStatus.SKIPPED
        assert outcomes[1].ok
        assert not (tmp_path / "config" / ".env").exists()

"""Tests for the backup manifest."""

import json
from datetime import datetime

import pytest

from stackport.cores.manifest import (
    FORMAT_DIR,
    FORMAT_ZIP,
    build_manifest,
    load_manifest,
    validate_manifest,
    volume_table,
    write_manifest,
)
from stackport.helpers.exceptions import ManifestError
from stackport.types import ItemOutcome, OutcomeStatus, STAGE_VOLUMES


@pytest.fixture
def backup_dir(project):
    path = project / "backups" / "stack_backup_20250101_120000"
    path.mkdir(parents=True)
    return path


@pytest.fixture
def manifest(config, backup_dir, project):
    outcomes = [
        ItemOutcome(STAGE_VOLUMES, "postgres_data", OutcomeStatus.OK, path=backup_dir / "volumes" / "postgres_data.zip"),
        ItemOutcome(STAGE_VOLUMES, "neo4j_data", OutcomeStatus.OK, path=backup_dir / "volumes" / "neo4j_data"),
        ItemOutcome(STAGE_VOLUMES, "minio_data", OutcomeStatus.SKIPPED),
    ]
    return build_manifest(config, backup_dir, project, outcomes, {"postgres_data": ""})


@pytest.mark.unit
class TestBuildManifest:
    def test_lists_every_configured_volume(self, manifest):
        assert [v["name"] for v in manifest["volumes"]] == ["postgres_data", "neo4j_data", "minio_data"]
        assert [v["format"] for v in manifest["volumes"]] == [FORMAT_ZIP, FORMAT_DIR, None]

    def test_project_root_relative_to_backup(self, manifest):
        assert manifest["project_root_relpath"] == "../.."

    def test_volume_table_matches_config(self, manifest, config):
        table = volume_table(manifest)
        assert {name: entry["target"] for name, entry in table.items()} == config.volume_table()

    def test_validates(self, manifest):
        assert validate_manifest(manifest) is manifest


@pytest.mark.unit
class TestManifestFile:
    def test_write_then_load(self, manifest, backup_dir):
        path = write_manifest(backup_dir, manifest)
        assert path.name == "manifest.json"
        assert load_manifest(backup_dir)["volumes"] == manifest["volumes"]

    def test_missing_manifest(self, backup_dir):
        with pytest.raises(ManifestError, match="not found"):
            load_manifest(backup_dir)

    def test_invalid_json(self, backup_dir):
        (backup_dir / "manifest.json").write_text("{not json")
        with pytest.raises(ManifestError, match="not valid JSON"):
            load_manifest(backup_dir)

    def test_wrong_schema_version(self, manifest, backup_dir):
        manifest["schema_version"] = 99
        (backup_dir / "manifest.json").write_text(json.dumps(manifest))
        with pytest.raises(ManifestError, match="schema_version"):
            load_manifest(backup_dir)

    def test_unsafe_volume_name_rejected(self, manifest):
        manifest["volumes"][0]["name"] = "../etc"
        with pytest.raises(ManifestError, match="volumes/0/name"):
            validate_manifest(manifest)

    @pytest.mark.parametrize("target", ["../precious", "a/../../b", "/abs", "\\\\server\\share", "C:/x", ".", "a/./b", "a/.."])
    def test_target_must_stay_below_project_root(self, manifest, target):
        manifest["volumes"][0]["target"] = target
        with pytest.raises(ManifestError, match="volumes/0/target"):
            validate_manifest(manifest)

    @pytest.mark.parametrize("target", ["a/.hidden", "docker/volumes/..data", "pg"])
    def test_dotted_names_are_accepted(self, manifest, target):
        manifest["volumes"][0]["target"] = target
        assert validate_manifest(manifest) is manifest


@pytest.mark.unit
class TestManifestTimestamps:
    def test_created_at_is_taken_from_caller(self, config, backup_dir, project):
        manifest = build_manifest(config, backup_dir, project, created_at=datetime(2025, 3, 4, 5, 6, 7, 891))
        assert manifest["created_at"] == "2025-03-04T05:06:07"

    def test_missing_archive_root_is_none(self, manifest):
        del manifest["volumes"][1]["archive_root"]
        table = volume_table(manifest)

        assert table["postgres_data"]["archive_root"] == ""
        assert table["neo4j_data"]["archive_root"] is None

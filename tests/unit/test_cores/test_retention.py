"""Tests for backup retention."""

import os
from unittest.mock import patch

import pytest

from stackport.cores.retention import apply_retention, list_backups
from stackport.types import OutcomeStatus


def _make_backups(output_dir, count, name="stack_backup"):
    """Create ``count`` backups with strictly increasing mtimes, oldest first."""
    paths = []
    for i in range(count):
        path = output_dir / f"{name}_2025010{i + 1}_120000"
        path.mkdir(parents=True)
        (path / "manifest.json").write_text("{}")
        os.utime(path, (1_700_000_000 + i * 60, 1_700_000_000 + i * 60))
        paths.append(path)
    return paths


@pytest.mark.unit
class TestListBackups:
    def test_newest_first_and_prefix_only(self, tmp_path):
        backups = _make_backups(tmp_path, 3)
        (tmp_path / "other_20250101_120000").mkdir()
        (tmp_path / "stack_backup_notes").mkdir()
        (tmp_path / "stack_backup_20250109_120000.txt").write_text("file, not dir")

        assert list_backups(tmp_path, "stack_backup") == list(reversed(backups))

    def test_missing_output_dir(self, tmp_path):
        assert list_backups(tmp_path / "nope", "stack_backup") == []


@pytest.mark.unit
class TestApplyRetention:
    @pytest.mark.parametrize("count", [4, 5, 7])
    def test_keeps_three_newest(self, tmp_path, count):
        backups = _make_backups(tmp_path, count)

        deleted, outcomes = apply_retention(tmp_path, "stack_backup", 3, current=backups[-1])

        remaining = list_backups(tmp_path, "stack_backup")
        assert remaining == list(reversed(backups[-3:]))
        assert sorted(deleted) == sorted(backups[:-3])
        assert all(o.ok for o in outcomes)

    def test_current_backup_always_kept(self, tmp_path):
        backups = _make_backups(tmp_path, 4)
        # current has the oldest mtime, e.g. clock skew
        deleted, _ = apply_retention(tmp_path, "stack_backup", 1, current=backups[0])

        assert backups[0].exists()
        assert sorted(deleted) == sorted(backups[1:])

    def test_fewer_than_keep_deletes_nothing(self, tmp_path):
        _make_backups(tmp_path, 2)
        assert apply_retention(tmp_path, "stack_backup", 3) == ([], [])

    def test_deletion_failure_is_best_effort(self, tmp_path):
        backups = _make_backups(tmp_path, 5)
        real_rmtree = __import__("shutil").rmtree

        def flaky_rmtree(path, *args, **kwargs):
            if path == backups[0]:
                raise PermissionError("in use")
            return real_rmtree(path, *args, **kwargs)

        with patch("stackport.cores.retention.shutil.rmtree", side_effect=flaky_rmtree):
            deleted, outcomes = apply_retention(tmp_path, "stack_backup", 3, current=backups[-1])

        assert deleted == [backups[1]]
        failed = [o for o in outcomes if o.status == OutcomeStatus.FAILED]
        assert [o.name for o in failed] == [backups[0].name]
        assert backups[0].exists()

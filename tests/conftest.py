"""
Shared pytest fixtures for Stackport tests.

Provides a fake docker runner, a sample project tree and a small configuration.
"""

import subprocess
from pathlib import Path

import pytest
from typer.testing import CliRunner

from stackport.helpers.config import StackportConfig, VolumeMapping
from stackport.helpers.logging import log_manager
from stackport.helpers.ui_utils import SubprocessError


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests without external tools")
    config.addinivalue_line("markers", "integration: tests that run generated scripts")


class FakeDocker:
    """
    Stand-in for ``run_command`` that emulates the docker CLI.

    ``running`` and ``images`` hold the daemon state; ``fail`` holds
    ``(verb, name)`` pairs that should exit non-zero.
    """

    def __init__(self):
        self.calls = []
        self.running = set()
        self.images = set()
        self.fail = set()

    def __call__(self, cmd, description="", timeout=None, check=True, cwd=None):
        cmd = list(cmd)
        self.calls.append(cmd)
        verb, name = self._parse(cmd)

        if (verb, name) in self.fail:
            if check:
                raise SubprocessError(cmd, 1, f"{verb} {name}: boom")
            return subprocess.CompletedProcess(cmd, 1, stdout="", stderr="boom")

        stdout = ""
        returncode = 0
        if verb == "ps":
            stdout = f"{name}\n" if name in self.running else ""
        elif verb == "stop":
            self.running.discard(name)
        elif verb == "start":
            self.running.add(name)
        elif verb == "inspect":
            returncode = 0 if name in self.images else 1
        elif verb == "save":
            Path(cmd[3]).write_bytes(b"image:" + name.encode())

        if check and returncode != 0:
            raise SubprocessError(cmd, returncode, "error")
        return subprocess.CompletedProcess(cmd, returncode, stdout=stdout, stderr="")

    @staticmethod
    def _parse(cmd):
        if cmd[0] != "docker":
            return cmd[0], cmd[-1]
        if cmd[1] == "ps":
            return "ps", cmd[3][len("name=^"):-1]
        if cmd[1] == "image":
            return "inspect", cmd[-1]
        return cmd[1], cmd[-1]

    def verbs(self, verb):
        """Names passed to every call of ``verb``, in call order."""
        return [self._parse(c)[1] for c in self.calls if self._parse(c)[0] == verb]


@pytest.fixture
def cli_runner():
    """Typer CLI runner for testing commands."""
    return CliRunner()


@pytest.fixture
def fake_docker():
    return FakeDocker()


@pytest.fixture(autouse=True)
def reset_logging():
    """CLI invocations install handlers on the package logger; drop them afterwards."""
    yield
    log_manager.reset()


@pytest.fixture
def project(tmp_path):
    """A project root with a compose file, .env and two bind-mount directories."""
    root = tmp_path / "project"
    root.mkdir()
    (root / "docker-compose.yml").write_text("services: {}\n")
    (root / ".env").write_text("POSTGRES_PASSWORD=secret\n")

    pg = root / "docker" / "volumes" / "postgresql"
    (pg / "base").mkdir(parents=True)
    (pg / "PG_VERSION").write_text("15\n")
    (pg / "a.txt").write_text("alpha\n")
    (pg / "b.txt").write_bytes(b"beta\x00\xff")
    (pg / "base" / "1.dat").write_bytes(bytes(range(256)) * 4)

    neo = root / "docker" / "volumes" / "neo4j" / "data"
    neo.mkdir(parents=True)
    (neo / "graph.db").write_bytes(b"neo4j-data")
    return root


@pytest.fixture
def config():
    """Small configuration matching the ``project`` fixture."""
    return StackportConfig(
        containers=["neo4j", "postgres"],
        images=["postgres:15", "stack-backend:latest"],
        volumes=[
            VolumeMapping(local_path="docker/volumes/postgresql", archive_name="postgres_data"),
            VolumeMapping(local_path="docker/volumes/neo4j/data", archive_name="neo4j_data"),
            VolumeMapping(local_path="docker/volumes/minio", archive_name="minio_data"),
        ],
        config_files=[".env", "docker-compose.yml"],
        stop_delay_seconds=0,
        compressor="builtin",
        min_free_gb=0,
    )

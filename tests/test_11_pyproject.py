"""Tests for pyproject.toml and package installation."""
from __future__ import annotations

import subprocess
import sys
from pathlib import Path

import pytest

PYPROJECT = Path(__file__).parent.parent / "pyproject.toml"


class TestPackageInstallation:
    """Test that the package is properly installed."""

    def test_package_importable(self):
        """Package can be imported without PYTHONPATH."""
        import tts_relay
        assert tts_relay is not None

    def test_version_defined(self):
        """Package has __version__ attribute."""
        import tts_relay
        assert isinstance(tts_relay.__version__, str)
        assert len(tts_relay.__version__) > 0

    def test_core_modules_importable(self):
        """Core modules can be imported."""
        from tts_relay.core import config
        from tts_relay.core import logging
        from tts_relay.api import routes
        from tts_relay.api import schemas
        from tts_relay.services import speech_service
        from tts_relay.tts import client
        from tts_relay.tts import storage

        assert config is not None
        assert logging is not None
        assert routes is not None
        assert schemas is not None
        assert speech_service is not None
        assert client is not None
        assert storage is not None


class TestCLIEntryPoint:
    """Test the CLI entry point."""

    def test_cli_help_exits_zero(self):
        """CLI --help exits with code 0."""
        result = subprocess.run(
            [sys.executable, "-m", "tts_relay.cli", "--help"],
            capture_output=True,
            text=True,
        )
        assert result.returncode == 0
        assert "tts-relay CLI" in result.stdout


class TestPyprojectToml:
    """Test pyproject.toml configuration."""

    @pytest.fixture
    def data(self):
        tomllib = pytest.importorskip("tomllib")  # Python 3.11+
        return tomllib.loads(PYPROJECT.read_text())

    def test_pyproject_exists(self):
        assert PYPROJECT.exists()

    def test_project_name(self, data):
        assert data["project"]["name"] == "tts-relay"

    def test_pyproject_has_dependencies(self, data):
        deps = data["project"].get("dependencies", [])
        dep_names = [d.split(">=")[0].split("[")[0] for d in deps]
        for name in ("fastapi", "uvicorn", "pydantic", "pyyaml", "httpx", "prometheus_client"):
            assert name in dep_names

    def test_script_entry_point(self, data):
        assert data["project"]["scripts"]["tts-relay"] == "tts_relay.cli:main"

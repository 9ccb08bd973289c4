"""Pytest configuration and fixtures for delta-settings tests."""

import os
import tempfile
from pathlib import Path

import pytest

# Keep log files and the library config out of the user's home directory.
# Must happen before delta_settings is imported by any test module.
_TEST_ROOT = Path(tempfile.mkdtemp(prefix="delta-settings-tests-"))
os.environ["DELTA_SETTINGS_LOG_DIR"] = str(_TEST_ROOT / "logs")
os.environ["DELTA_SETTINGS_CONFIG"] = str(_TEST_ROOT / "missing.conf")


@pytest.fixture
def settings_dir(tmp_path: Path) -> Path:
    """Directory for settings files, not created up front."""
    return tmp_path / "settings"

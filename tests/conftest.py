"""
Shared fixtures for the Channel Archive Pipeline tests.
"""

from pathlib import Path

import pytest

from shared.storage.storage_manager import StorageManager


@pytest.fixture
def storage(tmp_path: Path) -> StorageManager:
    """StorageManager rooted in a temporary directory."""
    return StorageManager(str(tmp_path / "data"), str(tmp_path / "logs"))

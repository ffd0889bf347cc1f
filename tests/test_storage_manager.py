"""
Tests for the StorageManager filesystem primitives.
"""

import pytest

from shared.storage.storage_manager import StorageManager


class TestStorageManager:
    """Test layout and file operations."""

    def test_directories_are_created(self, storage):
        assert storage.data_path.is_dir()
        assert storage.channel_data_path.is_dir()
        assert storage.logs_path.is_dir()
        assert storage.key_store_path.name == "keyStore.txt"

    def test_channel_cache_dirs(self, storage):
        storage.channel_cache_dir("B").mkdir()
        storage.channel_cache_dir("A").mkdir()

        assert [d.name for d in storage.channel_cache_dirs()] == ["A", "B"]
        assert storage.legacy_channel_cache_dir("A") == storage.data_path / "A"

    def test_write_and_read_lines(self, tmp_path):
        path = tmp_path / "nested" / "lines.txt"

        StorageManager.write_lines(path, ["a", "b"])

        assert path.read_bytes() == b"a\nb\n"
        assert StorageManager.read_lines(path) == ["a", "b"]

    def test_safe_rewrite_replaces_content_and_drops_backup(self, tmp_path):
        path = tmp_path / "state.txt"
        path.write_text("old\n", encoding="utf-8")

        StorageManager.safe_rewrite(path, ["new"])

        assert path.read_text(encoding="utf-8") == "new\n"
        assert not (tmp_path / "state.txt.bak").exists()
        assert not (tmp_path / "state.txt.tmp").exists()

    def test_move_copy_delete(self, tmp_path):
        source = tmp_path / "a.txt"
        source.write_text("x", encoding="utf-8")

        StorageManager.copy_file(source, tmp_path / "copy" / "b.txt")
        StorageManager.move_file(source, tmp_path / "moved" / "a.txt")

        assert (tmp_path / "copy" / "b.txt").read_text(encoding="utf-8") == "x"
        assert (tmp_path / "moved" / "a.txt").exists()
        assert not source.exists()
        assert StorageManager.delete_file(tmp_path / "moved" / "a.txt") is True
        assert StorageManager.delete_file(tmp_path / "moved" / "a.txt") is False

    def test_read_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            StorageManager.read_lines(tmp_path / "missing.txt")

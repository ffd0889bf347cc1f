"""
Storage Manager for the Channel Archive Pipeline
Data directory layout and filesystem primitives
"""

import hashlib
import logging
import shutil
from pathlib import Path
from typing import Iterable, List

logger = logging.getLogger(__name__)


class StorageManager:
    """
    Service responsible for the on-disk layout of the archive state.

    Responsibilities:
    - Create and validate the data directory structure.
    - Provide canonical paths for channel caches and the key store.
    - Abstract line-based file I/O and file moves/copies/deletes.
    - Rewrite files safely (temp file, checksum verification, swap).
    """

    KEY_STORE_FILENAME = "keyStore.txt"
    BACKUP_SUFFIX = ".bak"

    def __init__(self, data_root: str = "./data", log_root: str = "./logs"):
        """
        Initialize the StorageManager.

        Args:
            data_root (str): The base directory for all persisted state.
            log_root (str): The directory holding run logs.
        """
        self._root = Path(data_root).resolve()
        self._logs_dir = Path(log_root).resolve()

        # Define subdirectories
        self._channel_dir = self._root / "channel"

        self._ensure_directories()

    def _ensure_directories(self):
        """Ensures that all required storage directories exist."""
        dirs = [
            self._root,
            self._channel_dir,
            self._logs_dir
        ]
        for d in dirs:
            d.mkdir(parents=True, exist_ok=True)
            logger.debug(f"✓ Storage directory verified: {d}")

    @property
    def data_path(self) -> Path:
        return self._root

    @property
    def channel_data_path(self) -> Path:
        return self._channel_dir

    @property
    def logs_path(self) -> Path:
        return self._logs_dir

    @property
    def key_store_path(self) -> Path:
        return self._root / self.KEY_STORE_FILENAME

    def channel_cache_dir(self, channel_name: str) -> Path:
        """Directory holding the state and cache files of one channel."""
        return self._channel_dir / channel_name

    def legacy_channel_cache_dir(self, channel_name: str) -> Path:
        """Directory a channel's files were kept in before the channel/ subdirectory existed."""
        return self._root / channel_name

    def channel_cache_dirs(self) -> List[Path]:
        """Lists every channel cache directory currently on disk."""
        return sorted(d for d in self._channel_dir.iterdir() if d.is_dir())

    # Line-based I/O

    @staticmethod
    def read_lines(path: Path) -> List[str]:
        """Reads a UTF-8 text file into a list of lines without line endings."""
        with open(path, 'r', encoding='utf-8') as f:
            return f.read().splitlines()

    @staticmethod
    def write_lines(path: Path, lines: Iterable[str]):
        """Overwrites a UTF-8 text file with one line per entry."""
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w', encoding='utf-8', newline='\n') as f:
            for line in lines:
                f.write(f"{line}\n")

    @staticmethod
    def ensure_file(path: Path):
        """Creates an empty file (and its parent directories) if it does not exist."""
        if not path.exists():
            path.parent.mkdir(parents=True, exist_ok=True)
            path.touch()
            logger.debug(f"Created empty file: {path}")

    # File operations

    @staticmethod
    def move_file(source: Path, destination: Path):
        """Moves a file, creating the destination directory."""
        destination.parent.mkdir(parents=True, exist_ok=True)
        shutil.move(str(source), str(destination))
        logger.info(f"✓ File moved: {source} -> {destination}")

    @staticmethod
    def copy_file(source: Path, destination: Path):
        """Copies a file over any existing destination."""
        destination.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(source, destination)
        logger.debug(f"File copied: {source} -> {destination}")

    @staticmethod
    def delete_file(path: Path) -> bool:
        """Deletes a file if present. Returns whether anything was deleted."""
        if not path.exists():
            return False
        path.unlink()
        logger.debug(f"File deleted: {path}")
        return True

    @classmethod
    def safe_rewrite(cls, path: Path, lines: Iterable[str]):
        """
        Rewrites a text file without ever leaving it half-written.

        The content goes to a temp sibling first and is verified against
        the expected checksum. The existing file is kept as a `.bak`
        sibling until the swap succeeds.
        """
        content = "".join(f"{line}\n" for line in lines)
        expected = hashlib.sha256(content.encode('utf-8')).hexdigest()

        tmp_path = path.with_name(path.name + ".tmp")
        backup_path = path.with_name(path.name + cls.BACKUP_SUFFIX)

        path.parent.mkdir(parents=True, exist_ok=True)
        with open(tmp_path, 'w', encoding='utf-8', newline='\n') as f:
            f.write(content)

        actual = hashlib.sha256(tmp_path.read_bytes()).hexdigest()
        if actual != expected:
            tmp_path.unlink()
            raise IOError(f"Checksum mismatch writing {path}")

        if path.exists():
            shutil.copy2(path, backup_path)
        tmp_path.replace(path)
        cls.delete_file(backup_path)

    def __repr__(self):
        return f"StorageManager(root={self._root})"

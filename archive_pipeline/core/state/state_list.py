"""
State List
An ordered, file-backed set of item identifiers
"""

import logging
from pathlib import Path
from typing import Iterable, Iterator, List

from shared.storage.storage_manager import StorageManager

from ..errors import StateIOError

logger = logging.getLogger(__name__)


class StateList:
    """
    Ordered set of opaque item ids persisted as one id per line.

    The backing list is never handed out; callers mutate it only through
    add/remove/clear so cleanup invariants cannot be bypassed.
    """

    def __init__(self, path: Path, label: str = ""):
        self._path = path
        self._label = label or path.stem
        self._items: List[str] = []

    @property
    def path(self) -> Path:
        return self._path

    def load(self):
        """
        Re-reads the list from its file, creating an empty file if absent.

        Raises:
            StateIOError: If the file cannot be created or read
        """
        try:
            StorageManager.ensure_file(self._path)
            lines = StorageManager.read_lines(self._path)
        except (OSError, UnicodeDecodeError) as e:
            raise StateIOError(f"Failed to read state file: {self._path}", self._path) from e

        self._items.clear()
        self._items.extend(lines)
        logger.debug(f"Loaded {len(self._items)} {self._label} entries from {self._path.name}")

    def save(self):
        """
        Writes the list to its file, one id per line.

        Raises:
            StateIOError: If the file cannot be written
        """
        try:
            StorageManager.safe_rewrite(self._path, self._items)
        except OSError as e:
            raise StateIOError(f"Failed to write state file: {self._path}", self._path) from e

    def clean(self):
        """Removes blank entries, then duplicates (first occurrence wins)."""
        seen = set()
        cleaned = []
        for item in self._items:
            if item is None or not item.strip() or item in seen:
                continue
            seen.add(item)
            cleaned.append(item)
        self._items[:] = cleaned

    def add(self, item: str) -> bool:
        if item in self._items:
            return False
        self._items.append(item)
        return True

    def extend(self, items: Iterable[str]):
        for item in items:
            self.add(item)

    def remove(self, item: str) -> bool:
        """Removes every occurrence of an id. Returns whether any was present."""
        before = len(self._items)
        self._items[:] = [e for e in self._items if e != item]
        return len(self._items) != before

    def discard(self, item: str):
        """Removes an id if present; absent ids are ignored."""
        self.remove(item)

    def difference_update(self, other: "StateList"):
        excluded = set(other)
        self._items[:] = [e for e in self._items if e not in excluded]

    def clear(self):
        self._items.clear()

    def to_list(self) -> List[str]:
        return list(self._items)

    def __contains__(self, item: object) -> bool:
        return item in self._items

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._items))

    def __len__(self) -> int:
        return len(self._items)

    def __repr__(self) -> str:
        return f"StateList({self._label!r}, entries={len(self._items)})"

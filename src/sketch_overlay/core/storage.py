"""Drawing files on disk."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Dict, List, Optional

from PyQt6.QtCore import QTimer

logger = logging.getLogger(__name__)

DRAWING_EXTENSION = ".json"

Scheduler = Callable[[Callable[[], None]], None]


def _qt_scheduler(callback: Callable[[], None]) -> None:
    """Run the callback once control returns to the Qt event loop."""
    QTimer.singleShot(0, callback)


class DrawingStore:
    """
    Directory of JSON drawings.

    Writes are deferred and coalesced: queuing several snapshots of the
    same drawing before the flush runs writes only the last one. The
    persistent drawing is never listed among the saved drawings.
    """

    def __init__(
        self,
        directory: Path,
        persistent_name: str = "persistent",
        scheduler: Optional[Scheduler] = None
    ) -> None:
        """
        Initialize the store.

        Args:
            directory: Directory holding the drawings
            persistent_name: Name of the drawing restored on start
            scheduler: Runs a callback later, the Qt event loop by default
        """
        self.directory = Path(directory)
        self.persistent_name = persistent_name
        self._scheduler = scheduler or _qt_scheduler
        self._pending: Dict[str, str] = {}
        self._flush_scheduled = False

    def path_for(self, name: str) -> Path:
        return self.directory / f"{name}{DRAWING_EXTENSION}"

    def list_drawings(self) -> List[str]:
        """
        List the saved drawing names, most recently modified first.

        Returns:
            Names without extension, the persistent drawing excluded
        """
        if not self.directory.is_dir():
            return []

        drawings = []
        for path in self.directory.glob(f"*{DRAWING_EXTENSION}"):
            if path.stem == self.persistent_name or not path.is_file():
                continue
            try:
                drawings.append((path.stat().st_mtime, path.stem))
            except OSError as e:
                logger.warning(f"Cannot stat {path}: {e}")
        drawings.sort(key=lambda item: (item[0], item[1]), reverse=True)
        return [name for _, name in drawings]

    def read(self, name: str) -> Optional[str]:
        """
        Read a drawing document.

        Pending writes are returned without touching the disk.

        Returns:
            The document text, or None if it is missing or unreadable
        """
        if name in self._pending:
            return self._pending[name]

        path = self.path_for(name)
        if not path.exists():
            logger.debug(f"No drawing at {path}")
            return None
        try:
            with open(path, "r", encoding="utf-8") as f:
                return f.read()
        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"Error reading drawing {path}: {e}")
            return None

    def write(self, name: str, contents: str) -> None:
        """Queue a snapshot to be written by the next flush."""
        self._pending[name] = contents
        if not self._flush_scheduled:
            self._flush_scheduled = True
            self._scheduler(self.flush)

    @property
    def has_pending_writes(self) -> bool:
        return bool(self._pending)

    def flush(self) -> bool:
        """
        Write every queued snapshot now.

        Returns:
            True if all writes succeeded
        """
        self._flush_scheduled = False
        pending, self._pending = self._pending, {}
        if not pending:
            return True

        try:
            self.directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error(f"Cannot create drawing directory {self.directory}: {e}")
            return False

        success = True
        for name, contents in pending.items():
            path = self.path_for(name)
            try:
                with open(path, "w", encoding="utf-8") as f:
                    f.write(contents)
                logger.debug(f"Saved drawing to {path}")
            except OSError as e:
                logger.error(f"Error saving drawing {path}: {e}")
                success = False
        return success

    def delete(self, name: str) -> bool:
        """
        Delete a drawing file and any pending write of it.

        Returns:
            True if a file was removed
        """
        self._pending.pop(name, None)
        path = self.path_for(name)
        try:
            path.unlink()
            logger.info(f"Deleted drawing {path}")
            return True
        except FileNotFoundError:
            return False
        except OSError as e:
            logger.error(f"Error deleting drawing {path}: {e}")
            return False

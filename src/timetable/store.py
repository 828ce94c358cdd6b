"""File persistence for the timetable snapshot.

The snapshot is stored as the JSON document Pydantic produces for
ScheduleSnapshot. There is no version field; a change to the models needs
a cache clear.
"""

import os
import tempfile
from pathlib import Path

from pydantic import ValidationError

from src.timetable.errors import CorruptStateError
from src.timetable.logging import get_logger
from src.timetable.models import ScheduleSnapshot

logger = get_logger(__name__)


class SnapshotStore:
    """Saves, loads and clears the snapshot at one fixed path."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def exists(self) -> bool:
        return self.path.exists()

    def save(self, snapshot: ScheduleSnapshot) -> None:
        """Replace the persisted snapshot.

        The document is written to a temporary file next to the target and
        moved into place, so readers see either the old or the new copy.
        """
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as tmp:
                tmp.write(snapshot.model_dump_json(indent=2))
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

        logger.info("snapshot_saved", path=str(self.path), weeks=len(snapshot.weeks))

    def load(self) -> ScheduleSnapshot | None:
        """Read the persisted snapshot.

        Returns:
            The snapshot, or None when nothing has been saved yet.

        Raises:
            CorruptStateError: If the file exists but cannot be decoded.
        """
        if not self.path.exists():
            logger.debug("snapshot_load_skipped", reason="file_not_found")
            return None

        try:
            snapshot = ScheduleSnapshot.model_validate_json(self.path.read_bytes())
        except ValidationError as e:
            raise CorruptStateError(
                f"Cannot decode snapshot at {self.path}: {e.error_count()} errors"
            ) from e

        logger.info(
            "snapshot_loaded",
            path=str(self.path),
            weeks=len(snapshot.weeks),
            last_updated_at=(
                snapshot.last_updated_at.isoformat()
                if snapshot.last_updated_at
                else None
            ),
        )
        return snapshot

    def clear(self) -> None:
        """Delete the persisted snapshot, if any."""
        if self.path.exists():
            self.path.unlink()
            logger.info("snapshot_cleared", path=str(self.path))
        else:
            logger.debug("snapshot_clear_skipped", reason="file_not_found")

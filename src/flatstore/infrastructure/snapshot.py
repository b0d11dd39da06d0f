"""JSON snapshot persistence for the store envelope.

The file holds ``{db, currentUserId, view, theme}`` with camelCase keys.
Loading always goes through :func:`normalize_state`, so hand-edited or
partially corrupt entries are repaired rather than rejected. Only a file
that is not JSON at all raises :class:`SnapshotError`.
"""

from __future__ import annotations

import json
import logging
import os
import random
import tempfile
from pathlib import Path

from flatstore.domain.models import StoreState
from flatstore.domain.normalize import DEFAULT_NOTE_LIMIT, normalize_state

logger = logging.getLogger(__name__)


class SnapshotError(Exception):
    """The snapshot file exists but cannot be read as JSON."""

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"Cannot read snapshot {path}: {reason}")
        self.path = path
        self.reason = reason


class SnapshotStore:
    """Load and save one snapshot file."""

    def __init__(
        self,
        path: Path,
        *,
        rng: random.Random | None = None,
        note_limit: int = DEFAULT_NOTE_LIMIT,
    ) -> None:
        self.path = path
        self._rng = rng or random.Random()
        self._note_limit = note_limit

    def exists(self) -> bool:
        return self.path.is_file()

    def load(self) -> StoreState:
        """Read and normalize the snapshot; a missing file yields a fresh state.

        Raises:
            SnapshotError: The file is unreadable or not valid JSON.
        """
        if not self.exists():
            logger.debug("No snapshot at %s, starting empty", self.path)
            return StoreState()
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError) as exc:
            raise SnapshotError(self.path, str(exc)) from exc
        except json.JSONDecodeError as exc:
            raise SnapshotError(self.path, f"invalid JSON ({exc.msg})") from exc
        if not isinstance(raw, dict):
            logger.warning("Snapshot %s is not an object, starting empty", self.path)
        return normalize_state(raw, rng=self._rng, note_limit=self._note_limit)

    def save(self, state: StoreState) -> None:
        """Write *state* atomically (temp file in the same directory, then replace)."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps(state.to_envelope(), indent=2, ensure_ascii=False)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent
        )
        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(payload)
                fh.write("\n")
            os.replace(tmp_path, self.path)
        except BaseException:
            tmp_path.unlink(missing_ok=True)
            raise
        logger.debug("Saved snapshot to %s", self.path)

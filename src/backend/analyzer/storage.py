"""Best-effort persistence of session snapshots in a directory-backed key-value store."""
import logging
import os
import threading
from pathlib import Path
from typing import Callable

import orjson
from dotenv import load_dotenv
from pydantic import BaseModel, ValidationError

from models import SessionSnapshot

load_dotenv()

logger = logging.getLogger(__name__)

# ── configurable via .env ──
SNAPSHOT_DIR = os.getenv("SNAPSHOT_DIR", ".snapshots")
AUTOSAVE_DELAY = float(os.getenv("AUTOSAVE_DELAY", "1.0"))

SNAPSHOT_KEY = "cyber-essentials-assessment"
SNAPSHOT_VERSION = "1.1"
SUPPORTED_VERSIONS = {"1.0", "1.1"}


def to_json(model: BaseModel) -> bytes:
    return orjson.dumps(model.model_dump(mode="json", by_alias=True), option=orjson.OPT_INDENT_2)


class SnapshotStore:
    def __init__(self, directory: str | Path = None, key: str = SNAPSHOT_KEY):
        self.directory = Path(directory or SNAPSHOT_DIR)
        self.key = key

    @property
    def path(self) -> Path:
        return self.directory / f"{self.key}.json"

    def save(self, snapshot: SessionSnapshot) -> bool:
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            tmp = self.path.with_suffix(".tmp")
            tmp.write_bytes(to_json(snapshot))
            tmp.replace(self.path)
            return True
        except OSError as e:
            logger.warning("Could not save snapshot %s: %s", self.path, e)
            return False

    def load(self) -> SessionSnapshot | None:
        """The saved snapshot, or None when it is missing, unreadable or from an unknown version."""
        try:
            raw = self.path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.warning("Could not read snapshot %s: %s", self.path, e)
            return None
        try:
            snapshot = SessionSnapshot.model_validate(orjson.loads(raw))
        except (orjson.JSONDecodeError, ValidationError) as e:
            logger.warning("Discarding corrupted snapshot %s: %s", self.path, str(e)[:200])
            return None
        if snapshot.version not in SUPPORTED_VERSIONS:
            logger.warning("Discarding snapshot with unknown version %s", snapshot.version)
            return None
        return snapshot

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)


class DebouncedSaver:
    """Runs a save after a quiet period; every schedule() call resets the timer."""

    def __init__(self, save: Callable[[], object], delay: float = None):
        self._save = save
        self.delay = AUTOSAVE_DELAY if delay is None else delay
        self._timer: threading.Timer | None = None
        self._lock = threading.Lock()

    @property
    def pending(self) -> bool:
        return self._timer is not None

    def schedule(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._timer = threading.Timer(self.delay, self._fire)
            self._timer.daemon = True
            self._timer.start()

    def _fire(self) -> None:
        with self._lock:
            self._timer = None
        try:
            self._save()
        except Exception:
            logger.exception("Autosave failed")

    def flush(self) -> None:
        """Commit a pending save now."""
        with self._lock:
            timer, self._timer = self._timer, None
        if timer is not None:
            timer.cancel()
            self._save()

    def cancel(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._timer = None

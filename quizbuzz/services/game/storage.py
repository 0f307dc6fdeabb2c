"""Best-effort persistence for the room code and hosts' saved batches.

Loads fall back to defaults; saves run in one transaction each so a failed
write leaves the previous value untouched. Failures are logged, never
raised to the game.
"""

import threading
from typing import Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError

from quizbuzz import db, socketio
from quizbuzz.models import RoomSetting, User


def load_room_code(app) -> Optional[str]:
    try:
        setting = RoomSetting.current()
        return setting.room_code if setting else None
    except SQLAlchemyError as exc:
        db.session.rollback()
        app.logger.warning(f"[persist-load] room code unavailable: {exc}")
        return None


def load_host_batches(app, username: str) -> List[Dict]:
    try:
        # Saves commit from other sessions; never trust a cached row here
        user = User.query.filter_by(username=username).populate_existing().first()
        return user.get_question_sets() if user else []
    except SQLAlchemyError as exc:
        db.session.rollback()
        app.logger.warning(f"[persist-load] batches for host={username} unavailable: {exc}")
        return []


def _write_room_code(code: Optional[str]) -> None:
    setting = RoomSetting.current()
    if setting is None:
        setting = RoomSetting(id=RoomSetting.SINGLETON_ID)
    setting.room_code = code
    db.session.add(setting)


def _write_host_batches(username: str, records: List[Dict]) -> None:
    user = User.query.filter_by(username=username).first()
    if user is None:
        return
    user.set_question_sets(records)
    db.session.add(user)


class StatePersister:
    """Runs saves as detached background tasks inside an app context.

    Background tasks may finish in any order, so every save carries the
    revision it was taken at. Writes are serialized and a save older than
    the last one committed for the same key is dropped.
    """

    def __init__(self, app):
        self.app = app
        self._write_lock = threading.Lock()
        self._committed: Dict[str, int] = {}

    def save_room_code(self, code: Optional[str], revision: int):
        return self._submit('room', revision, 'room code', _write_room_code, code)

    def save_host_batches(self, username: str, records: List[Dict], revision: int):
        return self._submit(f"host:{username}", revision, f"batches host={username}",
                            _write_host_batches, username, records)

    def _submit(self, key, revision, label, writer, *args):
        """Returns the background task, or None when the save ran inline."""
        if self.app.config.get('PERSIST_IN_BACKGROUND', True):
            return socketio.start_background_task(self._run, key, revision, label, writer, *args)
        self._run(key, revision, label, writer, *args)
        return None

    def _run(self, key, revision, label, writer, *args) -> None:
        with self._write_lock, self.app.app_context():
            if revision < self._committed.get(key, 0):
                self.app.logger.info(f"[persist-skip] stale {label} revision={revision}")
                return
            try:
                writer(*args)
                db.session.commit()
                self._committed[key] = revision
                self.app.logger.info(f"[persist] saved {label} revision={revision}")
            except SQLAlchemyError:
                db.session.rollback()
                self.app.logger.exception(f"[persist-fail] {label}")

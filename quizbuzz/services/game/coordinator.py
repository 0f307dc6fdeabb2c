import itertools
import logging
import random
import threading
from typing import Dict, List, Optional, Tuple

from .errors import InvalidPayload, PoolExhausted, UnknownBatch
from .pool import ORIGINS
from .room import generate_room_code
from .state import GameState


ROOM_OPENED_REASON = 'A new room has been opened'
FULL_RESET_REASON = 'The game has been fully reset'


class GameCoordinator:
    """Owns the game state and is the only path that mutates it.

    Every public mutation runs under ``self.lock`` together with the full
    ``state_update`` broadcast that follows it, so concurrent handlers are
    serialized and each connection sees snapshots in mutation order.
    Persistence is handed to the persister after the lock is released,
    stamped with a revision taken under the lock.
    """

    def __init__(self, broadcaster, persister=None, logger=None, rng: Optional[random.Random] = None,
                 default_names=('A', 'B'), code_range: Tuple[int, int] = (1000, 9999)):
        self.broadcaster = broadcaster
        self.persister = persister
        self.logger = logger or logging.getLogger(__name__)
        self.rng = rng or random.Random()
        self.code_range = code_range
        self.state = GameState(default_names=default_names, rng=self.rng)
        self.lock = threading.RLock()
        self._revisions = itertools.count(1)

    # ---- broadcast helpers (call with the lock held) ----

    def snapshot(self) -> Dict:
        with self.lock:
            return self.state.to_dict()

    def _broadcast_state(self) -> None:
        self.broadcaster.broadcast('state_update', self.state.to_dict())

    def _broadcast_room_status(self) -> None:
        self.broadcaster.broadcast('room_status', {'slots': self.state.room.occupancy()})

    def _announce_room_code(self) -> None:
        payload = {'code': self.state.room.code}
        self.broadcaster.to_role('display', 'room_code', payload)
        self.broadcaster.to_role('controller', 'room_code', payload)

    def _kick(self, sids: List[str], reason: str) -> None:
        for sid in sids:
            self.broadcaster.to_connection(sid, 'kicked', {'code': 'kicked', 'reason': reason})

    # ---- persistence helpers ----

    def _next_revision(self) -> int:
        # Taken with the lock held so revisions follow mutation order
        return next(self._revisions)

    def _persist_room_code(self, code: Optional[str], revision: int) -> None:
        if self.persister is not None:
            self.persister.save_room_code(code, revision)

    def _persist_batches(self, host: Optional[str], records: List[Dict], revision: int) -> None:
        if self.persister is not None and host:
            self.persister.save_host_batches(host, records, revision)

    # ---- connection lifecycle ----

    def restore_room_code(self, code: Optional[str]) -> None:
        with self.lock:
            self.state.room.restore(code)
        if code:
            self.logger.info(f"[room-restore] code={code}")

    def connect(self, sid: str) -> None:
        with self.lock:
            self.broadcaster.to_connection(sid, 'state_update', self.state.to_dict())
            self.broadcaster.to_connection(sid, 'room_status', {'slots': self.state.room.occupancy()})

    def send_room_code(self, sid: str) -> None:
        with self.lock:
            if self.state.room.is_open:
                self.broadcaster.to_connection(sid, 'room_code', {'code': self.state.room.code})

    def disconnect(self, sid: str) -> Optional[int]:
        with self.lock:
            slot = self.state.room.leave(sid)
            if slot is not None:
                self.logger.info(f"[slot-free] slot={slot} sid={sid}")
                self._broadcast_room_status()
                self._broadcast_state()
            return slot

    # ---- room / slots ----

    def open_room(self) -> str:
        with self.lock:
            low, high = self.code_range
            code = generate_room_code(self.rng, low, high, previous=self.state.room.code)
            evicted = self.state.room.open(code)
            self._kick(evicted, ROOM_OPENED_REASON)
            self.state.reset_players()
            self.logger.info(f"[room-open] code={code} evicted={len(evicted)}")
            self._announce_room_code()
            self._broadcast_room_status()
            self._broadcast_state()
            revision = self._next_revision()
        self._persist_room_code(code, revision)
        return code

    def join(self, sid: str, code, name) -> Tuple[int, str]:
        with self.lock:
            slot, clean_name = self.state.room.join(sid, code, name)
            self.state.players[slot].name = clean_name
            self.logger.info(f"[slot-join] slot={slot} name={clean_name} sid={sid}")
            self._broadcast_state()
            self._broadcast_room_status()
            return slot, clean_name

    def slot_of(self, sid: str) -> Optional[int]:
        with self.lock:
            return self.state.room.slot_of(sid)

    # ---- buzzer ----

    def signal(self, slot: int) -> bool:
        with self.lock:
            self.state.check_slot(slot)
            if not self.state.buzzer.signal(slot):
                return False
            # Name is captured now; later renames do not rewrite the announcement
            name = self.state.players[slot].name
            self.logger.info(f"[buzzer] winner slot={slot} name={name}")
            self._broadcast_state()
            self.broadcaster.broadcast('buzzer_winner', {'slot': slot, 'name': name})
            return True

    def clear_buzzer_winner(self) -> None:
        with self.lock:
            self.broadcaster.broadcast('clear_buzzer_winner', {})

    def start_countdown(self, seconds) -> int:
        if isinstance(seconds, bool) or not isinstance(seconds, int) or seconds <= 0:
            raise InvalidPayload('Countdown needs a positive number of seconds')
        with self.lock:
            self.broadcaster.broadcast('countdown', {'seconds': seconds})
        return seconds

    # ---- questions ----

    def draw_next(self) -> Optional[int]:
        with self.lock:
            try:
                index = self.state.draw_next()
            except PoolExhausted:
                self.logger.info("[draw-skip] question pool exhausted")
                return None
            self._broadcast_state()
            return index

    def import_batch(self, source: str, origin: str, questions: List[Dict[str, str]]):
        if origin not in ORIGINS:
            raise InvalidPayload(f"Unknown origin: {origin}")
        with self.lock:
            batch = self.state.add_batch(source, origin, questions)
            self.logger.info(f"[batch-add] id={batch.id} source={source} count={batch.count}")
            self._broadcast_state()
            host, records = self.state.host, self.state.pool.to_records()
            revision = self._next_revision()
        self._persist_batches(host, records, revision)
        return batch

    def delete_batch(self, batch_id) -> None:
        with self.lock:
            if not self.state.remove_batch(batch_id):
                raise UnknownBatch()
            self.logger.info(f"[batch-remove] id={batch_id}")
            self._broadcast_state()
            host, records = self.state.host, self.state.pool.to_records()
            revision = self._next_revision()
        self._persist_batches(host, records, revision)

    def list_batches(self) -> List[Dict]:
        with self.lock:
            return self.state.pool.summaries()

    def attach_host(self, username: str, records: List[Dict]) -> None:
        """Make ``username`` the session owner and load their saved batches."""
        with self.lock:
            self.state.host = username
            self.state.load_batches(records)
            self.logger.info(f"[host] attached host={username} batches={len(self.state.pool.batches)}")
            self._broadcast_state()

    # ---- host controls ----

    def rename_player(self, slot: int, name: str) -> str:
        with self.lock:
            clean = self.state.rename_player(slot, name)
            self._broadcast_state()
            return clean

    def adjust_score(self, slot: int, delta: int) -> int:
        if isinstance(delta, bool) or not isinstance(delta, int):
            raise InvalidPayload('Score delta must be an integer')
        with self.lock:
            score = self.state.adjust_score(slot, delta)
            self._broadcast_state()
            self.broadcaster.broadcast('score_changed', {'slot': slot, 'delta': delta})
            return score

    def toggle_answer(self) -> bool:
        with self.lock:
            visible = self.state.toggle_answer()
            self._broadcast_state()
            return visible

    def reset(self) -> None:
        with self.lock:
            self.state.reset_scores_and_progress()
            self.logger.info("[reset] scores and progress")
            self._broadcast_state()

    def full_reset(self) -> None:
        with self.lock:
            evicted = self.state.full_reset()
            self._kick(evicted, FULL_RESET_REASON)
            self.logger.info(f"[full-reset] evicted={len(evicted)} host={self.state.host}")
            self._broadcast_state()
            self._announce_room_code()
            self._broadcast_room_status()
            host = self.state.host
            revision = self._next_revision()
        self._persist_batches(host, [], revision)
        self._persist_room_code(None, revision)

import random
from typing import Dict, List, Optional, Tuple

from .buzzer import SLOTS
from .errors import EmptyName, RoomFull, RoomNotOpen, WrongCode


def generate_room_code(rng: random.Random, low: int = 1000, high: int = 9999,
                       previous: Optional[str] = None) -> str:
    """Generate a numeric room code in [low, high], never repeating ``previous``."""
    while True:
        code = str(rng.randint(low, high))
        if code != previous or low == high:
            return code


class RoomRegistry:
    """Binds transient connections to the two logical player slots.

    ``occupants`` and ``connection_to_slot`` are kept as mirror images of
    each other. Only the code outlives the process.
    """

    def __init__(self):
        self.code: Optional[str] = None
        self.occupants: List[Optional[str]] = [None for _ in SLOTS]
        self.connection_to_slot: Dict[str, int] = {}

    @property
    def is_open(self) -> bool:
        return self.code is not None

    def restore(self, code: Optional[str]) -> None:
        self.code = code or None

    def _evict_all(self) -> List[str]:
        evicted = [sid for sid in self.occupants if sid is not None]
        self.occupants = [None for _ in SLOTS]
        self.connection_to_slot.clear()
        return evicted

    def open(self, code: str) -> List[str]:
        """Start a new room under ``code``; returns the evicted connections."""
        evicted = self._evict_all()
        self.code = code
        return evicted

    def close(self) -> List[str]:
        evicted = self._evict_all()
        self.code = None
        return evicted

    def join(self, sid: str, code, name) -> Tuple[int, str]:
        if not self.is_open:
            raise RoomNotOpen()
        if str(code if code is not None else '').strip() != self.code:
            raise WrongCode()
        clean_name = (name or '').strip() if isinstance(name, str) else ''
        if not clean_name:
            raise EmptyName()

        # Same connection registering again is a rename of its binding
        if sid in self.connection_to_slot:
            return self.connection_to_slot[sid], clean_name

        for slot in SLOTS:
            if self.occupants[slot] is None:
                self.occupants[slot] = sid
                self.connection_to_slot[sid] = slot
                return slot, clean_name
        raise RoomFull()

    def leave(self, sid: str) -> Optional[int]:
        slot = self.connection_to_slot.pop(sid, None)
        if slot is not None:
            self.occupants[slot] = None
        return slot

    def slot_of(self, sid: str) -> Optional[int]:
        return self.connection_to_slot.get(sid)

    def occupancy(self) -> List[bool]:
        return [sid is not None for sid in self.occupants]

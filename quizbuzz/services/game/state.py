import random
from typing import Dict, List, Optional, Sequence

from .buzzer import SLOTS, Buzzer
from .errors import EmptyName, InvalidSlot
from .pool import QuestionBatch, QuestionPool
from .room import RoomRegistry


class PlayerState:
    def __init__(self, name: str, score: int = 0):
        self.name = name
        self.score = score

    def to_dict(self):
        return {'name': self.name, 'score': self.score}


class GameState:
    """The single source of truth for the running game.

    Composes the question pool, the buzzer and the room registry, and keeps
    the couplings between them: drawing a question arms the buzzer, any
    rebuild of the pool idles it, and both hide the answer.
    """

    def __init__(self, default_names: Sequence[str] = ('A', 'B'), rng: Optional[random.Random] = None):
        self.default_names = tuple(default_names)
        self.players: List[PlayerState] = [PlayerState(n) for n in self.default_names]
        self.pool = QuestionPool(rng=rng)
        self.buzzer = Buzzer()
        self.room = RoomRegistry()
        self.answer_visible = False
        self.host: Optional[str] = None

    # ---- pool ----

    def _after_rebuild(self) -> None:
        self.answer_visible = False
        self.buzzer.reset()

    def add_batch(self, source: str, origin: str, questions: List[Dict[str, str]]) -> QuestionBatch:
        batch = self.pool.add_batch(source, origin, questions)
        self._after_rebuild()
        return batch

    def remove_batch(self, batch_id: int) -> bool:
        removed = self.pool.remove_batch(batch_id)
        if removed:
            self._after_rebuild()
        return removed

    def load_batches(self, records: List[Dict]) -> None:
        self.pool.replace_batches(records)
        self._after_rebuild()

    def rebuild(self) -> None:
        self.pool.rebuild()
        self._after_rebuild()

    def draw_next(self) -> int:
        index = self.pool.draw_next()
        self.answer_visible = False
        self.buzzer.arm()
        return index

    # ---- players ----

    @staticmethod
    def check_slot(slot) -> int:
        if isinstance(slot, bool) or slot not in SLOTS:
            raise InvalidSlot()
        return slot

    def rename_player(self, slot: int, name: str) -> str:
        self.check_slot(slot)
        clean = name.strip() if isinstance(name, str) else ''
        if not clean:
            raise EmptyName()
        self.players[slot].name = clean
        return clean

    def adjust_score(self, slot: int, delta: int) -> int:
        self.check_slot(slot)
        self.players[slot].score += delta
        return self.players[slot].score

    def toggle_answer(self) -> bool:
        self.answer_visible = not self.answer_visible
        return self.answer_visible

    def _reset_round(self) -> None:
        self.pool.reset_progress()
        self.answer_visible = False
        self.buzzer.reset()

    def reset_scores_and_progress(self) -> None:
        for player in self.players:
            player.score = 0
        self._reset_round()

    def reset_players(self) -> None:
        self.players = [PlayerState(n) for n in self.default_names]
        self._reset_round()

    def full_reset(self) -> List[str]:
        """Back to process-start defaults except ``host``; returns evicted sids."""
        self.players = [PlayerState(n) for n in self.default_names]
        self.pool.clear()
        self.answer_visible = False
        self.buzzer.reset()
        return self.room.close()

    def to_dict(self) -> Dict:
        pool = self.pool
        return {
            'host': self.host,
            'players': [p.to_dict() for p in self.players],
            'question_sets': pool.summaries(),
            'total_questions': len(pool),
            'drawn': sorted(pool.drawn),
            'remaining': len(pool) - len(pool.drawn),
            'current_question_index': pool.current_index,
            'current_question': pool.current_question(),
            'questions_asked': pool.asked_count,
            'answer_visible': self.answer_visible,
            'buzzer': self.buzzer.to_dict(),
            'room_open': self.room.is_open,
            'slots': self.room.occupancy(),
        }

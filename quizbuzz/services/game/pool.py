import random
from typing import Dict, List, Optional, Set

from .errors import EmptyBatch, PoolExhausted


ORIGIN_UPLOAD = 'upload'
ORIGIN_SHEET = 'sheet'
ORIGINS = (ORIGIN_UPLOAD, ORIGIN_SHEET)


class QuestionBatch:
    """One imported set of questions, deletable on its own."""

    def __init__(self, batch_id: int, source: str, origin: str, questions: List[Dict[str, str]]):
        self.id = batch_id
        self.source = source
        self.origin = origin
        self.questions = list(questions)

    @property
    def count(self) -> int:
        return len(self.questions)

    def summary(self) -> Dict:
        return {
            'id': self.id,
            'source': self.source,
            'origin': self.origin,
            'count': self.count,
        }

    def to_record(self) -> Dict:
        record = self.summary()
        record['questions'] = [dict(q) for q in self.questions]
        return record

    @classmethod
    def from_record(cls, record: Dict) -> 'QuestionBatch':
        return cls(
            int(record['id']),
            record.get('source') or '',
            record.get('origin') or ORIGIN_UPLOAD,
            record.get('questions') or [],
        )


class QuestionPool:
    """Shuffled, non-repeating draw sequence merged from all batches.

    Any change to the batch list rebuilds the whole pool: previously drawn
    indices point into the old ordering and are discarded with it.
    """

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()
        self.batches: List[QuestionBatch] = []
        self.questions: List[Dict[str, str]] = []
        self.drawn: Set[int] = set()
        self.current_index = -1
        self.asked_count = 0
        self._next_batch_id = 1

    def __len__(self) -> int:
        return len(self.questions)

    def add_batch(self, source: str, origin: str, questions: List[Dict[str, str]]) -> QuestionBatch:
        if not questions:
            raise EmptyBatch()
        batch = QuestionBatch(self._next_batch_id, source, origin, questions)
        self._next_batch_id += 1
        self.batches.append(batch)
        self.rebuild()
        return batch

    def remove_batch(self, batch_id: int) -> bool:
        for idx, batch in enumerate(self.batches):
            if batch.id == batch_id:
                del self.batches[idx]
                self.rebuild()
                return True
        return False

    def replace_batches(self, records: List[Dict]) -> None:
        """Swap in previously saved batches, keeping ids unique going forward."""
        self.batches = [QuestionBatch.from_record(r) for r in records if r.get('questions')]
        if self.batches:
            self._next_batch_id = max(self._next_batch_id, max(b.id for b in self.batches) + 1)
        self.rebuild()

    def clear(self) -> None:
        self.batches = []
        self.rebuild()

    def rebuild(self) -> None:
        merged: List[Dict[str, str]] = []
        for batch in self.batches:
            merged.extend(batch.questions)
        self.rng.shuffle(merged)
        self.questions = merged
        self.drawn = set()
        self.current_index = -1
        self.asked_count = 0

    def remaining(self) -> List[int]:
        return [i for i in range(len(self.questions)) if i not in self.drawn]

    def draw_next(self) -> int:
        available = self.remaining()
        if not available:
            raise PoolExhausted()
        pick = self.rng.choice(available)
        self.drawn.add(pick)
        self.current_index = pick
        self.asked_count += 1
        return pick

    def reset_progress(self) -> None:
        # Drawn indices survive so a restarted match never repeats questions
        self.current_index = -1
        self.asked_count = 0

    def current_question(self) -> Optional[Dict[str, str]]:
        if self.current_index < 0:
            return None
        return self.questions[self.current_index]

    def summaries(self) -> List[Dict]:
        return [b.summary() for b in self.batches]

    def to_records(self) -> List[Dict]:
        return [b.to_record() for b in self.batches]

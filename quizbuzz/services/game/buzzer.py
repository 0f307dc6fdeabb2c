from .errors import InvalidSlot


SLOTS = (0, 1)


class Buzzer:
    """Two-way first-signal-wins arbitration.

    idle (disarmed, no winner) -> armed -> resolved (disarmed, winner set).
    Callers must serialize ``signal`` through a single lock.
    """

    def __init__(self):
        self.armed = False
        self.winner = -1

    def arm(self) -> None:
        self.armed = True
        self.winner = -1

    def reset(self) -> None:
        self.armed = False
        self.winner = -1

    def signal(self, slot: int) -> bool:
        if slot not in SLOTS:
            raise InvalidSlot()
        if not self.armed or self.winner != -1:
            return False
        self.winner = slot
        self.armed = False
        return True

    def to_dict(self):
        return {'armed': self.armed, 'winner': self.winner}

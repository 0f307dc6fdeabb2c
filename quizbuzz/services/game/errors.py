"""Rejections raised by the game core.

Each error carries a stable ``code`` that socket handlers forward to the
originating connection together with the human readable message.
"""


class GameError(Exception):
    code = 'game_error'
    message = 'Action rejected'

    def __init__(self, message=None):
        super().__init__(message or self.message)
        if message:
            self.message = message

    def to_dict(self):
        return {'code': self.code, 'message': self.message}


class EmptyBatch(GameError):
    code = 'empty_batch'
    message = 'A question batch needs at least one question'


class PoolExhausted(GameError):
    code = 'pool_exhausted'
    message = 'Every question has already been drawn'


class RoomNotOpen(GameError):
    code = 'room_not_open'
    message = 'No room is open yet'


class WrongCode(GameError):
    code = 'wrong_code'
    message = 'Room code is incorrect'


class EmptyName(GameError):
    code = 'empty_name'
    message = 'Please enter a name'


class RoomFull(GameError):
    code = 'room_full'
    message = 'Room is full (2/2 players)'


class InvalidSlot(GameError):
    code = 'invalid_slot'
    message = 'Slot must be 0 or 1'


class UnknownBatch(GameError):
    code = 'unknown_batch'
    message = 'Question batch not found'


class InvalidPayload(GameError):
    code = 'invalid_payload'
    message = 'Invalid payload'

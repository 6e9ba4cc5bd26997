"""Exceptions raised by room operations.

``GameError`` subclasses are validation rejections: the socket layer turns
them into an ``{'error': ...}`` acknowledgement for the caller only.
``IgnoredAction`` marks a late or stale action (unknown session, room
already torn down) and is dropped without a reply.
"""


class FlippinError(Exception):
    """Base class for all game exceptions."""


class IgnoredAction(FlippinError):
    """Action targets state that no longer exists."""


class GameError(FlippinError):
    """Action rejected by the game rules."""
    message = 'Action rejected'

    def __init__(self, message=None):
        super().__init__(message or self.message)


class RoomNotFound(GameError):
    def __init__(self, room_id):
        self.room_id = room_id
        super().__init__(f"Room {room_id} not found")


class RoomFull(GameError):
    message = 'Room full'


class AlreadyInRoom(GameError):
    message = 'Already seated in another room'


class NotEnoughPlayers(GameError):
    message = 'Waiting for an opponent'


class InvalidPlayerCount(GameError):
    message = 'Rematch needs exactly two players'


class NotYourTurn(GameError):
    message = 'Not your turn'


class FlipInProgress(GameError):
    message = 'Two cards already flipped'


class InvalidCard(GameError):
    message = 'Invalid card index'


class CardNotFlippable(GameError):
    message = 'Card already revealed'


class GameAlreadyOver(GameError):
    message = 'Game is over'


class NoQuestionsLeft(GameError):
    message = 'No questions left'


class InvalidMessage(GameError):
    message = 'Message text is required'

"""Errors raised by the game engine.

Every error is raised before any state is touched, so a rejected command
always leaves the game exactly as it was. ``code`` is stable and is what the
HTTP layer hands back to clients.
"""


class GameError(Exception):
    code = 'GameError'

    def __init__(self, message: str = ''):
        super().__init__(message or self.code)
        self.message = message or self.code

    def to_dict(self):
        return {'error': self.message, 'code': self.code}


class NotEnoughTeams(GameError):
    code = 'NotEnoughTeams'


class InvalidDraw(GameError):
    code = 'InvalidDraw'


class DeckExhausted(GameError):
    code = 'DeckExhausted'


class RoundInProgress(GameError):
    code = 'RoundInProgress'


class NoActiveDraw(GameError):
    code = 'NoActiveDraw'


class SlotOccupied(GameError):
    code = 'SlotOccupied'


class AlreadyPlacedThisRound(GameError):
    code = 'AlreadyPlacedThisRound'


class InvalidPhase(GameError):
    code = 'InvalidPhase'


class UnknownTeam(GameError):
    code = 'UnknownTeam'


class TeamNotActive(GameError):
    code = 'TeamNotActive'


class InvalidSlot(GameError):
    code = 'InvalidSlot'


class RosterFull(GameError):
    code = 'RosterFull'


class DuplicateMember(GameError):
    code = 'DuplicateMember'


class InvalidConfig(GameError):
    code = 'InvalidConfig'

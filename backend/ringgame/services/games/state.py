"""Round/phase state machine for one game instance.

LOBBY -> ACTIVE -> ENDED. While ACTIVE, ``waiting_for_placements`` tells
apart "idle, host may draw" from "card is out, teams are placing".

Every command validates completely before it changes anything, so a raised
``GameError`` always leaves the state as it was. Callers are expected to
serialize commands per game (see ``registry.GameRegistry``).
"""

import logging
import random
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional, Set

from . import deck as deck_mod
from .board import DEFAULT_BOARD_SIZE, Member, TeamBoard, place_value
from .deck import Card, Deck
from .errors import (
    InvalidConfig,
    InvalidPhase,
    NotEnoughTeams,
    RoundInProgress,
    TeamNotActive,
    UnknownTeam,
)
from .points import MAX_RUN_LENGTH
from .ranking import FinalRankingEntry, rank

logger = logging.getLogger(__name__)


class Phase(str, Enum):
    LOBBY = 'lobby'
    ACTIVE = 'active'
    ENDED = 'ended'


@dataclass(frozen=True)
class GameConfig:
    deck_multiplicity: Dict[int, int] = field(
        default_factory=lambda: deck_mod.parse_deck_spec(deck_mod.DEFAULT_DECK_SPEC)
    )
    board_size: int = DEFAULT_BOARD_SIZE
    max_rounds: int = 20
    max_team_members: int = 10

    def validate(self) -> None:
        if not 2 <= self.board_size <= MAX_RUN_LENGTH:
            raise InvalidConfig(f"Board size must be between 2 and {MAX_RUN_LENGTH}")
        if self.max_rounds < 1:
            raise InvalidConfig('Max rounds must be at least 1')
        if self.max_team_members < 1:
            raise InvalidConfig('Teams must allow at least one member')
        deck_size = sum(self.deck_multiplicity.values())
        if deck_size < self.max_rounds:
            raise InvalidConfig(f"Deck of {deck_size} cards cannot cover {self.max_rounds} rounds")

    @classmethod
    def from_app_config(cls, cfg) -> "GameConfig":
        return cls(
            deck_multiplicity=deck_mod.parse_deck_spec(cfg.get('DECK_SPEC', deck_mod.DEFAULT_DECK_SPEC)),
            board_size=int(cfg.get('BOARD_SIZE', DEFAULT_BOARD_SIZE)),
            max_rounds=int(cfg.get('MAX_ROUNDS', 20)),
            max_team_members=int(cfg.get('MAX_TEAM_MEMBERS', 10)),
        )

    def to_dict(self):
        return {
            'deck_multiplicity': {str(v): c for v, c in sorted(self.deck_multiplicity.items())},
            'board_size': self.board_size,
            'max_rounds': self.max_rounds,
            'max_team_members': self.max_team_members,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "GameConfig":
        return cls(
            deck_multiplicity={int(v): int(c) for v, c in data['deck_multiplicity'].items()},
            board_size=int(data['board_size']),
            max_rounds=int(data['max_rounds']),
            max_team_members=int(data['max_team_members']),
        )


@dataclass
class GameState:
    game_code: str
    title: str
    config: GameConfig
    teams: List[TeamBoard]
    deck: Deck = ()
    phase: Phase = Phase.LOBBY
    round: int = 0
    current_draw: Optional[Card] = None
    drawn: Set[int] = field(default_factory=set)
    draw_history: List[Card] = field(default_factory=list)
    waiting_for_placements: bool = False
    final_ranking: Optional[List[FinalRankingEntry]] = None
    created_at: str = ''

    def __post_init__(self):
        if not self.deck:
            self.deck = deck_mod.build_deck(self.config.deck_multiplicity)
        if not self.created_at:
            self.created_at = datetime.now(timezone.utc).isoformat()

    @classmethod
    def new(cls, game_code: str, title: str, team_count: int, config: Optional[GameConfig] = None,
            max_teams: int = 30) -> "GameState":
        config = config or GameConfig()
        config.validate()
        if not isinstance(team_count, int) or not 1 <= team_count <= max_teams:
            raise InvalidConfig(f"Team count must be between 1 and {max_teams}")
        teams = [TeamBoard(team_number=n, board_size=config.board_size) for n in range(1, team_count + 1)]
        return cls(game_code=game_code, title=title, config=config, teams=teams)

    # ---- queries ----

    @property
    def active_teams(self) -> List[TeamBoard]:
        return [t for t in self.teams if t.is_active]

    def team(self, team_number: int) -> TeamBoard:
        for t in self.teams:
            if t.team_number == team_number:
                return t
        raise UnknownTeam(f"No team {team_number} in game {self.game_code}")

    @property
    def current_value(self) -> Optional[int]:
        return self.current_draw.value if self.current_draw else None

    # ---- commands ----

    def add_member(self, team_number: int, name: str) -> Member:
        if self.phase != Phase.LOBBY:
            raise InvalidPhase('Teams can only be joined while the game is in the lobby')
        member = self.team(team_number).add_member(name, self.config.max_team_members)
        logger.info(f"[join] game={self.game_code} team={team_number} member={member.id}")
        return member

    def start(self) -> "GameState":
        if self.phase != Phase.LOBBY:
            raise InvalidPhase('Game has already started or is finished')
        if not self.active_teams:
            raise NotEnoughTeams('At least one team needs a member before starting')
        self.phase = Phase.ACTIVE
        self.round = 0
        self.current_draw = None
        self.waiting_for_placements = False
        logger.info(f"[start] game={self.game_code} active_teams={len(self.active_teams)}")
        return self

    def draw_card(self, index: Optional[int] = None, rng: Optional[random.Random] = None) -> Card:
        """Reveal a card for the next round, by explicit index or at random."""
        if self.phase != Phase.ACTIVE:
            raise RoundInProgress('Cards can only be drawn while the game is active')
        if self.waiting_for_placements:
            raise RoundInProgress('Wait for every team to place before drawing again')
        if index is None:
            index = deck_mod.random_undrawn_index(self.deck, self.drawn, rng)
        card = deck_mod.draw(self.deck, self.drawn, index)

        self.drawn.add(card.index)
        self.draw_history.append(card)
        self.current_draw = card
        for t in self.teams:
            t.reset_for_new_draw()
        self.round += 1
        self.waiting_for_placements = True
        logger.info(f"[draw] game={self.game_code} round={self.round} card={card.index} value={card.value}")
        return card

    def place_for_team(self, team_number: int, slot_index: int, placed_by: Optional[str] = None) -> TeamBoard:
        if self.phase == Phase.ENDED:
            raise InvalidPhase('Game is finished')
        board = self.team(team_number)
        if not board.is_active:
            raise TeamNotActive(f"Team {team_number} has no members")
        place_value(board, slot_index, self.current_value, placed_by)
        logger.info(
            f"[place] game={self.game_code} round={self.round} team={team_number} slot={slot_index} score={board.score}"
        )

        if self.waiting_for_placements and all(t.has_placed_this_round for t in self.active_teams):
            self.waiting_for_placements = False
            logger.info(f"[round-settled] game={self.game_code} round={self.round}")
            self._check_termination()
        return board

    def expire(self) -> "GameState":
        """Force a game that was left unfinished into ENDED."""
        if self.phase == Phase.ENDED:
            raise InvalidPhase('Game is already finished')
        self._finish(reason='expired')
        return self

    def _check_termination(self) -> None:
        if self.round >= self.config.max_rounds:
            self._finish(reason='max_rounds')
        elif all(t.is_full for t in self.active_teams):
            self._finish(reason='boards_full')

    def _finish(self, reason: str) -> None:
        self.phase = Phase.ENDED
        self.waiting_for_placements = False
        self.final_ranking = rank(self.active_teams)
        logger.info(f"[finish] game={self.game_code} round={self.round} reason={reason}")

    # ---- snapshots ----

    def to_dict(self):
        return {
            'game_code': self.game_code,
            'title': self.title,
            'phase': self.phase.value,
            'round': self.round,
            'max_rounds': self.config.max_rounds,
            'board_size': self.config.board_size,
            'config': self.config.to_dict(),
            'waiting_for_placements': self.waiting_for_placements,
            'current_draw': self.current_draw.to_dict() if self.current_draw else None,
            'drawn_indices': sorted(self.drawn),
            'draw_history': [c.to_dict() for c in self.draw_history],
            'teams': [t.to_dict() for t in self.teams],
            'final_ranking': [e.to_dict() for e in self.final_ranking] if self.final_ranking is not None else None,
            'created_at': self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "GameState":
        config = GameConfig.from_dict(data['config'])
        current = data.get('current_draw')
        ranking = data.get('final_ranking')
        return cls(
            game_code=data['game_code'],
            title=data.get('title') or '',
            config=config,
            teams=[TeamBoard.from_dict(t, config.board_size) for t in data['teams']],
            phase=Phase(data['phase']),
            round=int(data.get('round') or 0),
            current_draw=Card(**current) if current else None,
            drawn={int(i) for i in data.get('drawn_indices') or []},
            draw_history=[Card(**c) for c in data.get('draw_history') or []],
            waiting_for_placements=bool(data.get('waiting_for_placements')),
            final_ranking=[FinalRankingEntry.from_dict(e) for e in ranking] if ranking is not None else None,
            created_at=data.get('created_at') or '',
        )

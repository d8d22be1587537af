"""Per-team ring board and roster."""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional

from .errors import (
    AlreadyPlacedThisRound,
    DuplicateMember,
    InvalidSlot,
    NoActiveDraw,
    RosterFull,
    SlotOccupied,
)
from .scoring import compute_score, compute_scoring_groups

DEFAULT_BOARD_SIZE = 20


def generate_member_id() -> str:
    return f"m_{uuid.uuid4().hex[:12]}"


@dataclass
class Member:
    id: str
    name: str
    joined_at: str

    def to_dict(self):
        return {'id': self.id, 'name': self.name, 'joined_at': self.joined_at}

    @classmethod
    def from_dict(cls, data: dict) -> "Member":
        return cls(id=data['id'], name=data['name'], joined_at=data.get('joined_at') or '')


@dataclass
class TeamBoard:
    team_number: int
    board_size: int = DEFAULT_BOARD_SIZE
    slots: List[Optional[int]] = field(default_factory=list)
    members: List[Member] = field(default_factory=list)
    score: int = 0
    has_placed_this_round: bool = False
    last_placed_by: Optional[str] = None

    def __post_init__(self):
        # Always a full ring, never a missing or short list.
        if not self.slots:
            self.slots = [None] * self.board_size
        elif len(self.slots) != self.board_size:
            raise ValueError(f"team {self.team_number}: expected {self.board_size} slots, got {len(self.slots)}")
        self.score = compute_score(self.slots)

    @property
    def is_active(self) -> bool:
        return len(self.members) > 0

    @property
    def is_full(self) -> bool:
        return all(slot is not None for slot in self.slots)

    @property
    def open_slots(self) -> List[int]:
        return [i for i, slot in enumerate(self.slots) if slot is None]

    def add_member(self, name: str, capacity: int) -> Member:
        if len(self.members) >= capacity:
            raise RosterFull(f"Team {self.team_number} already has {capacity} members")
        if any(m.name == name for m in self.members):
            raise DuplicateMember(f"'{name}' is already on team {self.team_number}")
        member = Member(
            id=generate_member_id(),
            name=name,
            joined_at=datetime.now(timezone.utc).isoformat(),
        )
        self.members.append(member)
        return member

    def reset_for_new_draw(self) -> None:
        self.has_placed_this_round = False
        self.last_placed_by = None

    def to_dict(self):
        return {
            'team_number': self.team_number,
            'members': [m.to_dict() for m in self.members],
            'slots': list(self.slots),
            'score': self.score,
            'has_placed_this_round': self.has_placed_this_round,
            'last_placed_by': self.last_placed_by,
            'scoring_groups': {str(k): v for k, v in compute_scoring_groups(self.slots).items()},
        }

    @classmethod
    def from_dict(cls, data: dict, board_size: int = DEFAULT_BOARD_SIZE) -> "TeamBoard":
        # Score is recomputed in __post_init__; any stored score is ignored.
        return cls(
            team_number=int(data['team_number']),
            board_size=board_size,
            slots=list(data.get('slots') or []),
            members=[Member.from_dict(m) for m in data.get('members') or []],
            has_placed_this_round=bool(data.get('has_placed_this_round')),
            last_placed_by=data.get('last_placed_by'),
        )


def place_value(board: TeamBoard, slot_index: int, value: Optional[int], placed_by: Optional[str] = None) -> TeamBoard:
    """Put the current draw into one open slot and rescore the whole board.

    The only way a slot ever gets a value. All checks run first so a
    rejected placement leaves the board untouched.
    """
    if value is None:
        raise NoActiveDraw('No card has been drawn for this round')
    if not isinstance(slot_index, int) or isinstance(slot_index, bool) or not 0 <= slot_index < board.board_size:
        raise InvalidSlot(f"Slot must be between 0 and {board.board_size - 1}")
    if board.has_placed_this_round:
        raise AlreadyPlacedThisRound(f"Team {board.team_number} has already placed this round")
    if board.slots[slot_index] is not None:
        raise SlotOccupied(f"Slot {slot_index} is already filled on team {board.team_number}")

    board.slots[slot_index] = value
    board.has_placed_this_round = True
    board.last_placed_by = placed_by
    board.score = compute_score(board.slots)
    return board

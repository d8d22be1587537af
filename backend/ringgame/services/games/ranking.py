from dataclasses import dataclass
from typing import Iterable, List

from .board import TeamBoard


@dataclass(frozen=True)
class FinalRankingEntry:
    team_number: int
    score: int
    rank: int

    def to_dict(self):
        return {'team_number': self.team_number, 'score': self.score, 'rank': self.rank}

    @classmethod
    def from_dict(cls, data: dict) -> "FinalRankingEntry":
        return cls(team_number=int(data['team_number']), score=int(data['score']), rank=int(data['rank']))


def rank(teams: Iterable[TeamBoard]) -> List[FinalRankingEntry]:
    """Highest score first; equal scores fall back to the lower team number."""
    ordered = sorted(teams, key=lambda t: (-t.score, t.team_number))
    return [
        FinalRankingEntry(team_number=t.team_number, score=t.score, rank=position)
        for position, t in enumerate(ordered, start=1)
    ]

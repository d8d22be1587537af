"""Deck construction and draw bookkeeping.

A deck is a fixed, indexable tuple of cards. Values may repeat across
indices; indices never do. Which indices have been drawn is tracked by the
owning game as a plain set, never by the deck itself.
"""

import random
from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Tuple

from .errors import DeckExhausted, InvalidConfig, InvalidDraw

DEFAULT_DECK_SPEC = '1-10:1,11-20:2,21-30:1'


@dataclass(frozen=True)
class Card:
    index: int
    value: int

    def to_dict(self):
        return {'index': self.index, 'value': self.value}


Deck = Tuple[Card, ...]


def parse_deck_spec(spec: str) -> Dict[int, int]:
    """Parse ``"1-10:1,11-20:2"`` style text into ``{value: multiplicity}``.

    Entries are either ``lo-hi:count`` or ``value:count``. A value listed
    twice is an error rather than being silently summed.
    """
    multiplicity: Dict[int, int] = {}
    for raw in (spec or '').split(','):
        entry = raw.strip()
        if not entry:
            continue
        try:
            values_part, count_part = entry.split(':')
            count = int(count_part)
            if '-' in values_part:
                lo, hi = (int(v) for v in values_part.split('-', 1))
            else:
                lo = hi = int(values_part)
        except ValueError:
            raise InvalidConfig(f'Malformed deck entry {entry!r}')
        if count < 1 or lo > hi:
            raise InvalidConfig(f'Malformed deck entry {entry!r}')
        for value in range(lo, hi + 1):
            if value in multiplicity:
                raise InvalidConfig(f'Deck value {value} listed more than once')
            multiplicity[value] = count
    if not multiplicity:
        raise InvalidConfig('Deck spec is empty')
    return multiplicity


def build_deck(multiplicity: Dict[int, int]) -> Deck:
    """Deterministic: ascending value, each repeated ``count`` times in a row."""
    cards = []
    for value in sorted(multiplicity):
        for _ in range(multiplicity[value]):
            cards.append(Card(index=len(cards), value=value))
    if not cards:
        raise InvalidConfig('Deck must contain at least one card')
    return tuple(cards)


def draw(deck: Deck, drawn: Iterable[int], index: int) -> Card:
    """Return the card at ``index`` if it may be drawn.

    Does not record the draw; the game registers the index in the same
    step that it sets the current draw.
    """
    if not isinstance(index, int) or isinstance(index, bool):
        raise InvalidDraw(f'Card index must be an integer, got {index!r}')
    if index < 0 or index >= len(deck):
        raise InvalidDraw(f'Card index {index} is outside 0..{len(deck) - 1}')
    if index in drawn:
        raise InvalidDraw(f'Card {index} has already been drawn')
    return deck[index]


def undrawn_indices(deck: Deck, drawn: Iterable[int]):
    drawn = set(drawn)
    return [card.index for card in deck if card.index not in drawn]


def random_undrawn_index(deck: Deck, drawn: Iterable[int], rng: Optional[random.Random] = None) -> int:
    """Uniformly random index among those not yet drawn."""
    remaining = undrawn_indices(deck, drawn)
    if not remaining:
        raise DeckExhausted('Every card in the deck has been drawn')
    return (rng or random).choice(remaining)

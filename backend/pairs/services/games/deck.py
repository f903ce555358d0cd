import random
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional

PAIR_MULTIPLICITY = 2


@dataclass
class Card:
    id: int
    value: Any
    revealed: bool = False
    matched: bool = False

    def to_dict(self, hide_value: bool = False):
        face_up = self.revealed or self.matched
        return {
            'id': self.id,
            'value': None if (hide_value and not face_up) else self.value,
            'revealed': self.revealed,
            'matched': self.matched,
        }


def deal_deck(symbols: Iterable[Any], rng: Optional[random.Random] = None) -> List[Card]:
    """Deal a shuffled deck in which every distinct symbol appears exactly twice.

    ``rng`` only needs a ``shuffle`` method; pass ``random.Random(seed)``
    for reproducible deals. Card ids are positions in the dealt sequence.
    """
    distinct = list(dict.fromkeys(symbols))
    values = [s for s in distinct for _ in range(PAIR_MULTIPLICITY)]
    (rng or random.Random()).shuffle(values)
    return [Card(id=idx, value=value) for idx, value in enumerate(values)]

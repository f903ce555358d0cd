"""Ranked top-K score ledger with an owner-drained reward pool.

A single ``RankingLedger`` is shared by every session in the process, so
all reads and writes go through one lock. Entries are ordered by score
descending; ties keep submission order (earlier submissions rank higher).
"""

import itertools
import logging
import threading
import time
from typing import Any, Callable, Dict, List, NamedTuple, Optional, Tuple

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 10


class LedgerError(Exception):
    """Base class for ledger failures; the ledger is unchanged when raised."""


class UnauthorizedError(LedgerError):
    pass


class PreconditionError(LedgerError):
    pass


class InvalidAmountError(PreconditionError):
    pass


class EmptyPoolError(PreconditionError):
    pass


class NoEntriesError(PreconditionError):
    pass


class ScoreRecord(NamedTuple):
    player: Any
    score: int
    submitted_at: float

    def to_dict(self):
        return {'player': self.player, 'score': self.score, 'submitted_at': self.submitted_at}


class Payout(NamedTuple):
    recipient: Any
    amount: Any

    def to_dict(self):
        return {'recipient': self.recipient, 'amount': self.amount}


class RankingLedger:
    def __init__(
        self,
        owner: Any,
        capacity: int = DEFAULT_CAPACITY,
        transfer: Optional[Callable[[Payout], None]] = None,
        clock: Callable[[], float] = time.time,
    ):
        if capacity < 1:
            raise ValueError('capacity must be at least 1')
        self.owner = owner
        self.capacity = int(capacity)
        self._transfer = transfer
        self._clock = clock
        self._entries: List[Tuple[int, ScoreRecord]] = []
        self._reward_pool = 0
        self._payouts: List[Payout] = []
        self._seq = itertools.count()
        self._lock = threading.RLock()

    # ---- snapshots ----

    @property
    def entries(self) -> Tuple[ScoreRecord, ...]:
        with self._lock:
            return tuple(record for _, record in self._entries)

    @property
    def reward_pool(self):
        with self._lock:
            return self._reward_pool

    @property
    def payouts(self) -> Tuple[Payout, ...]:
        with self._lock:
            return tuple(self._payouts)

    def to_dict(self) -> Dict[str, Any]:
        with self._lock:
            return {
                'entries': [
                    dict(record.to_dict(), rank=idx + 1) for idx, (_, record) in enumerate(self._entries)
                ],
                'reward_pool': self._reward_pool,
                'capacity': self.capacity,
                'owner': self.owner,
            }

    # ---- mutations ----

    def submit_score(self, player: Any, score: int) -> None:
        if isinstance(score, bool) or not isinstance(score, int) or score < 0:
            raise InvalidAmountError(f'score must be a non-negative integer, got {score!r}')
        with self._lock:
            record = ScoreRecord(player=player, score=score, submitted_at=self._clock())
            if len(self._entries) < self.capacity:
                self._entries.append((next(self._seq), record))
            elif score > self._entries[-1][1].score:
                self._entries[-1] = (next(self._seq), record)
            else:
                logger.info(f"[submit-skip] player={player} score={score} min={self._entries[-1][1].score}")
                return
            self._entries.sort(key=lambda item: (-item[1].score, item[0]))
            logger.info(f"[submit] player={player} score={score} size={len(self._entries)}")

    def fund(self, amount) -> None:
        if isinstance(amount, bool) or not isinstance(amount, (int, float)) or not amount > 0:
            raise InvalidAmountError(f'amount must be positive, got {amount!r}')
        with self._lock:
            self._reward_pool += amount
            logger.info(f"[fund] amount={amount} pool={self._reward_pool}")

    def award(self, caller: Any) -> Payout:
        """Send the whole pool to the current top scorer.

        The pool is zeroed before the transfer runs, so a reentrant award
        from inside the transfer finds nothing to pay. If the transfer
        raises, the pool is restored and the error propagates.
        """
        with self._lock:
            if caller != self.owner:
                raise UnauthorizedError('only the ledger owner may award the pool')
            if not self._reward_pool > 0:
                raise EmptyPoolError('reward pool is empty')
            if not self._entries:
                raise NoEntriesError('no scores have been submitted')

            amount = self._reward_pool
            payout = Payout(recipient=self._entries[0][1].player, amount=amount)
            self._reward_pool = 0
            if self._transfer is not None:
                try:
                    self._transfer(payout)
                except BaseException:
                    self._reward_pool = amount + self._reward_pool
                    logger.warning(f"[award-failed] recipient={payout.recipient} amount={amount} pool restored")
                    raise
            self._payouts.append(payout)
            logger.info(f"[award] recipient={payout.recipient} amount={amount}")
            return payout

    # ---- queries ----

    def get_best_score(self, player: Any) -> Tuple[int, int]:
        with self._lock:
            for idx, (_, record) in enumerate(self._entries):
                if record.player == player:
                    return record.score, idx + 1
            return 0, 0

import logging
import threading
from dataclasses import replace
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional

from .deck import Card, deal_deck
from .scoring import MATCH_REWARD, final_score

logger = logging.getLogger(__name__)

MATCH_CONFIRM_DELAY = 0.5
MISMATCH_REVERT_DELAY = 1.0
TICK_INTERVAL = 1.0

DEFAULT_SYMBOLS = ('apple', 'banana', 'cherry', 'grape', 'kiwi', 'lemon', 'mango', 'pear')


class SessionState(str, Enum):
    IDLE = 'idle'
    PLAYING = 'playing'
    PAUSED = 'paused'
    COMPLETED = 'completed'


Listener = Callable[[str, 'GameSession'], None]


class GameSession:
    """A single pairs-matching session driven by an injected scheduler.

    Every public operation is total: an illegal move returns False and
    leaves the session untouched. Pair resolution and the elapsed-time
    ticker run as scheduler callbacks; each callback carries the epoch it
    was scheduled under and becomes inert once the session is reset or
    restarted.
    """

    def __init__(self, scheduler, symbols: Iterable[Any] = DEFAULT_SYMBOLS, rng=None, code: Optional[str] = None,
                 player: Optional[str] = None):
        self.scheduler = scheduler
        self.symbols = tuple(symbols)
        self.rng = rng
        self.code = code
        self.player = player
        self.state = SessionState.IDLE
        self._cards: List[Card] = []
        self.elapsed = 0
        self.move_count = 0
        self.score = 0
        self.breakdown: Optional[Dict[str, int]] = None
        self._pending: List[int] = []
        self._epoch = 0
        self._ticker = None
        self._resolution = None
        self._listeners: List[Listener] = []
        self._lock = threading.RLock()

    # ---- read-only snapshots ----

    @property
    def cards(self) -> List[Card]:
        with self._lock:
            return [replace(c) for c in self._cards]

    @property
    def pending(self) -> List[int]:
        with self._lock:
            return list(self._pending)

    @property
    def epoch(self) -> int:
        return self._epoch

    @property
    def lock(self):
        return self._lock

    def to_dict(self, reveal_all: bool = False) -> Dict[str, Any]:
        with self._lock:
            return {
                'game_code': self.code,
                'player': self.player,
                'state': self.state.value,
                'cards': [c.to_dict(hide_value=not reveal_all) for c in self._cards],
                'elapsed': self.elapsed,
                'move_count': self.move_count,
                'score': self.score,
                'pending': list(self._pending),
                'breakdown': dict(self.breakdown) if self.breakdown else None,
            }

    # ---- listeners ----

    def add_listener(self, callback: Listener) -> None:
        self._listeners.append(callback)

    def _notify(self, event: str) -> None:
        for callback in list(self._listeners):
            try:
                callback(event, self)
            except Exception:
                logger.exception(f"[listener-error] game={self.code} event={event}")

    # ---- lifecycle ----

    def start_game(self) -> bool:
        with self._lock:
            if self.state not in (SessionState.IDLE, SessionState.COMPLETED):
                logger.info(f"[start-skip] game={self.code} state={self.state.value}")
                return False
            self._cancel_timers()
            self._epoch += 1
            self._cards = deal_deck(self.symbols, self.rng)
            self.elapsed = 0
            self.move_count = 0
            self.score = 0
            self.breakdown = None
            self._pending = []
            self.state = SessionState.PLAYING
            logger.info(f"[start] game={self.code} epoch={self._epoch} cards={len(self._cards)}")
            self._notify('started')
            if not self._cards:
                self._complete()
            else:
                self._start_ticker()
            return True

    def pause_game(self) -> bool:
        with self._lock:
            if self.state != SessionState.PLAYING:
                return False
            self._stop_ticker()
            self.state = SessionState.PAUSED
            logger.info(f"[pause] game={self.code} elapsed={self.elapsed}")
            self._notify('paused')
            return True

    def resume_game(self) -> bool:
        with self._lock:
            if self.state != SessionState.PAUSED:
                return False
            self.state = SessionState.PLAYING
            self._start_ticker()
            logger.info(f"[resume] game={self.code} elapsed={self.elapsed}")
            self._notify('resumed')
            return True

    def reset_game(self) -> bool:
        with self._lock:
            self._cancel_timers()
            self._epoch += 1
            self.state = SessionState.IDLE
            self._cards = []
            self._pending = []
            self.elapsed = 0
            self.move_count = 0
            self.score = 0
            self.breakdown = None
            logger.info(f"[reset] game={self.code} epoch={self._epoch}")
            self._notify('reset')
            return True

    # ---- moves ----

    def reveal_card(self, card_id) -> bool:
        with self._lock:
            if self.state != SessionState.PLAYING:
                return False
            if len(self._pending) >= 2:
                return False
            if isinstance(card_id, bool) or not isinstance(card_id, int):
                return False
            if card_id < 0 or card_id >= len(self._cards):
                return False
            card = self._cards[card_id]
            if card.revealed or card.matched:
                return False

            card.revealed = True
            self.move_count += 1
            self._pending.append(card_id)
            logger.info(f"[reveal] game={self.code} card={card_id} moves={self.move_count}")
            self._notify('revealed')

            if len(self._pending) == 2:
                first, second = (self._cards[i] for i in self._pending)
                delay = MATCH_CONFIRM_DELAY if first.value == second.value else MISMATCH_REVERT_DELAY
                pair = tuple(self._pending)
                epoch = self._epoch
                self._resolution = self.scheduler.call_later(delay, lambda: self._resolve(epoch, pair))
                logger.info(f"[timer-set] game={self.code} pair={pair} delay={delay}s")
            return True

    # ---- scheduled callbacks ----

    def _resolve(self, epoch: int, pair) -> None:
        with self._lock:
            logger.info(f"[timer-fire] game={self.code} pair={pair} epoch={epoch} current_epoch={self._epoch}")
            if epoch != self._epoch or tuple(self._pending) != pair:
                logger.info(f"[timer-abort] game={self.code} stale resolution pair={pair}")
                return
            self._resolution = None
            first, second = (self._cards[i] for i in pair)
            self._pending = []
            if first.value == second.value:
                first.matched = True
                second.matched = True
                self.score += MATCH_REWARD
                self._notify('matched')
                if all(c.matched for c in self._cards):
                    self._complete()
            else:
                first.revealed = False
                second.revealed = False
                self._notify('mismatched')

    def _tick(self, epoch: int) -> None:
        with self._lock:
            if epoch != self._epoch or self.state != SessionState.PLAYING:
                return
            self.elapsed += 1
            self._notify('tick')

    def _complete(self) -> None:
        self._stop_ticker()
        self.breakdown = final_score(self.score, self.elapsed, self.move_count)
        self.score = self.breakdown['total']
        self.state = SessionState.COMPLETED
        logger.info(
            f"[complete] game={self.code} score={self.score} elapsed={self.elapsed} moves={self.move_count}"
        )
        self._notify('completed')

    # ---- timers ----

    def _start_ticker(self) -> None:
        if self._ticker is not None:
            return
        epoch = self._epoch
        self._ticker = self.scheduler.call_every(TICK_INTERVAL, lambda: self._tick(epoch))

    def _stop_ticker(self) -> None:
        if self._ticker is not None:
            self._ticker.cancel()
            self._ticker = None

    def _cancel_timers(self) -> None:
        self._stop_ticker()
        if self._resolution is not None:
            self._resolution.cancel()
            self._resolution = None

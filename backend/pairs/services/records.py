"""Database sinks for the game and ledger services.

Both sinks run outside a request (scheduler callbacks, ledger transfers),
so they push their own app context.
"""

from pairs import db
from pairs.models import GameRecord, Payout


def record_completed_session(app, session, player=None) -> None:
    """Store ``{score, elapsed, move_count}`` for a completed session."""
    with app.app_context():
        try:
            row = GameRecord(
                game_code=session.code,
                player=player,
                score=session.score,
                elapsed=session.elapsed,
                move_count=session.move_count,
            )
            db.session.add(row)
            db.session.commit()
            app.logger.info(f"[history] game={session.code} score={session.score} record={row.id}")
        except Exception:
            db.session.rollback()
            app.logger.exception(f"[history-failed] game={session.code}")


def record_payout(app, payout) -> None:
    """Transfer sink for ``RankingLedger.award``; errors propagate so the pool is restored."""
    with app.app_context():
        try:
            db.session.add(Payout(recipient=str(payout.recipient), amount=float(payout.amount)))
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise
        app.logger.info(f"[payout] recipient={payout.recipient} amount={payout.amount}")

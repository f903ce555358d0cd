from typing import Dict

MATCH_REWARD = 100

TIME_BONUS_BASE = 1000
TIME_PENALTY_PER_SEC = 10
MOVE_BONUS_BASE = 500
MOVE_PENALTY_PER_MOVE = 10


def time_bonus(elapsed: int) -> int:
    return max(0, TIME_BONUS_BASE - int(elapsed) * TIME_PENALTY_PER_SEC)


def move_bonus(move_count: int) -> int:
    return max(0, MOVE_BONUS_BASE - int(move_count) * MOVE_PENALTY_PER_MOVE)


def final_score(match_points: int, elapsed: int, move_count: int) -> Dict[str, int]:
    """Compute the final score for a completed session.

    The per-match points must already include the completing pair; both
    bonuses floor at 0 so the total is never below ``match_points``.
    """
    tb = time_bonus(elapsed)
    mb = move_bonus(move_count)
    return {
        'match_points': int(match_points),
        'time_bonus': tb,
        'move_bonus': mb,
        'total': int(match_points) + tb + mb,
    }

import os


def _symbols(raw):
    return tuple(s.strip() for s in raw.split(',') if s.strip())


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///pairs.db'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    # Symbols dealt when a session is created without its own list
    DECK_SYMBOLS = _symbols(os.environ.get('DECK_SYMBOLS', 'apple,banana,cherry,grape,kiwi,lemon,mango,pear'))
    # Ranking ledger: owner username allowed to award the pool, and top-K size
    LEDGER_OWNER = os.environ.get('LEDGER_OWNER', 'admin')
    LEDGER_CAPACITY = int(os.environ.get('LEDGER_CAPACITY', '10'))
    # Drive session timers from a VirtualScheduler instead of Socket.IO background tasks
    USE_VIRTUAL_CLOCK = os.environ.get('USE_VIRTUAL_CLOCK', '0') == '1'
    # Upper bound on games held in memory; idle or already-submitted games are evicted first
    MAX_LIVE_SESSIONS = int(os.environ.get('MAX_LIVE_SESSIONS', '1000'))
    # Optional: heartbeat interval for timer worker logs (sec). 0 disables.
    TIMER_HEARTBEAT_SEC = int(os.environ.get('TIMER_HEARTBEAT_SEC', '0'))

from flask import Blueprint, jsonify, request, current_app, abort
from flask_login import login_required, current_user
from pairs import socketio
from pairs.models import GameRecord
from pairs.services.games.session import GameSession, SessionState
from pairs.services.ledger import LedgerError
from pairs.services.records import record_completed_session
import random
import string


games = Blueprint('games', __name__)

MAX_SYMBOLS = 32
CODE_ATTEMPTS = 100


def _sessions() -> dict:
    return current_app.extensions['pairs_sessions']


def _submitted() -> set:
    return current_app.extensions['pairs_submitted']


def _ledger():
    return current_app.extensions['pairs_ledger']


def _json_object() -> dict:
    """Request body as a dict; None when it is missing or not a JSON object."""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    return data if isinstance(data, dict) else None


def generate_game_code(length=4):
    """Generate a short game code not used by any live session, or None."""
    sessions = _sessions()
    for _ in range(CODE_ATTEMPTS):
        code = ''.join(random.choices(string.ascii_uppercase + string.digits, k=length))
        if code not in sessions:
            return code
    return None


def _get_session_or_404(game_code: str) -> GameSession:
    session = _sessions().get(game_code.upper())
    if session is None:
        abort(404)
    return session


def _discard_session(code: str) -> None:
    session = _sessions().pop(code, None)
    if session is None:
        return
    session.reset_game()
    submitted = _submitted()
    for key in [k for k in submitted if k[0] == code]:
        submitted.discard(key)


def _is_evictable(session: GameSession) -> bool:
    if session.state == SessionState.IDLE:
        return True
    return session.state == SessionState.COMPLETED and (session.code, session.epoch) in _submitted()


def _evict_stale_sessions() -> int:
    stale = [code for code, s in _sessions().items() if _is_evictable(s)]
    for code in stale:
        _discard_session(code)
    return len(stale)


def _make_listener(app):
    def _on_event(event: str, session: GameSession) -> None:
        if event == 'tick':
            return
        if event == 'completed':
            record_completed_session(app, session, player=session.player)
        socketio.emit(
            'state_update',
            {'game_code': session.code, 'event': event},
            to=f"game:{session.code}",
            namespace='/ws',
        )
    return _on_event


def _respond(session: GameSession, applied: bool):
    payload = session.to_dict()
    payload['applied'] = applied
    return jsonify(payload)


@games.route('/create', methods=['POST'])
def create_game():
    data = _json_object()
    if data is None:
        return jsonify({'error': 'Request body must be a JSON object'}), 400
    symbols = data.get('symbols')
    if symbols is None:
        symbols = current_app.config.get('DECK_SYMBOLS')
    elif not isinstance(symbols, list) or len(symbols) > MAX_SYMBOLS or not all(isinstance(s, str) for s in symbols):
        return jsonify({'error': f'symbols must be a list of at most {MAX_SYMBOLS} strings'}), 400

    app = current_app._get_current_object()
    limit = int(app.config.get('MAX_LIVE_SESSIONS', 1000))
    if len(_sessions()) >= limit:
        evicted = _evict_stale_sessions()
        app.logger.info(f"[evict] sessions={evicted} remaining={len(_sessions())}")
    code = generate_game_code() if len(_sessions()) < limit else None
    if code is None:
        return jsonify({'error': 'Too many live games, try again later'}), 503

    player = current_user.username if current_user.is_authenticated else None
    session = GameSession(app.extensions['pairs_scheduler'], symbols=symbols, code=code, player=player)
    session.add_listener(_make_listener(app))
    _sessions()[code] = session
    app.logger.info(f"[create] game={code} player={player} symbols={len(session.symbols)}")
    return jsonify({
        'message': 'New game created!',
        'game_code': code,
    }), 201


@games.route('/<string:game_code>', methods=['DELETE'])
def delete_game(game_code):
    session = _get_session_or_404(game_code)
    if session.player is not None and (
        not current_user.is_authenticated or current_user.username != session.player
    ):
        return jsonify({'error': 'Only the player who created this game may delete it'}), 403
    _discard_session(session.code)
    current_app.logger.info(f"[delete] game={session.code}")
    return jsonify({'message': f'Game {session.code} deleted'})


@games.route('/<string:game_code>/state', methods=['GET'])
def get_game_state(game_code):
    return jsonify(_get_session_or_404(game_code).to_dict())


@games.route('/<string:game_code>/start', methods=['POST'])
def start_game(game_code):
    session = _get_session_or_404(game_code)
    return _respond(session, session.start_game())


@games.route('/<string:game_code>/pause', methods=['POST'])
def pause_game(game_code):
    session = _get_session_or_404(game_code)
    return _respond(session, session.pause_game())


@games.route('/<string:game_code>/resume', methods=['POST'])
def resume_game(game_code):
    session = _get_session_or_404(game_code)
    return _respond(session, session.resume_game())


@games.route('/<string:game_code>/reset', methods=['POST'])
def reset_game(game_code):
    session = _get_session_or_404(game_code)
    return _respond(session, session.reset_game())


@games.route('/<string:game_code>/reveal', methods=['POST'])
def reveal_card(game_code):
    session = _get_session_or_404(game_code)
    data = _json_object() or {}
    return _respond(session, session.reveal_card(data.get('card_id')))


@games.route('/<string:game_code>/submit', methods=['POST'])
@login_required
def submit_score(game_code):
    session = _get_session_or_404(game_code)
    if session.player is None:
        return jsonify({'error': 'Games started without logging in cannot be submitted'}), 403
    if current_user.username != session.player:
        return jsonify({'error': 'Only the player who created this game may submit it'}), 403

    ledger = _ledger()
    submitted = _submitted()
    with session.lock:
        if session.state != SessionState.COMPLETED:
            return jsonify({'error': 'Only a completed game can be submitted'}), 400
        key = (session.code, session.epoch)
        if key in submitted:
            return jsonify({'error': 'This game has already been submitted'}), 409
        score = session.score
        try:
            ledger.submit_score(session.player, score)
        except LedgerError as exc:
            return jsonify({'error': str(exc)}), 400
        submitted.add(key)

    best, rank = ledger.get_best_score(session.player)
    current_app.logger.info(f"[submit] game={session.code} player={session.player} score={score} rank={rank}")
    socketio.emit('ledger_update', ledger.to_dict(), to='ledger', namespace='/ws')
    return jsonify({'score': score, 'best_score': best, 'rank': rank})


@games.route('/history', methods=['GET'])
def game_history():
    query = GameRecord.query
    player = request.args.get('player')
    if player:
        query = query.filter_by(player=player)
    rows = query.order_by(GameRecord.created_at.desc(), GameRecord.id.desc()).limit(50).all()
    return jsonify([r.to_dict() for r in rows])

from flask import Blueprint, jsonify, request, current_app
from flask_login import login_required, current_user
from pairs import socketio
from pairs.services.ledger import PreconditionError, UnauthorizedError


ledger = Blueprint('ledger', __name__)


def _ledger():
    return current_app.extensions['pairs_ledger']


def _broadcast(state: dict) -> None:
    socketio.emit('ledger_update', state, to='ledger', namespace='/ws')


@ledger.route('/', methods=['GET'])
def get_ledger():
    return jsonify(_ledger().to_dict())


@ledger.route('/fund', methods=['POST'])
def fund_pool():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({'error': 'Request body must be a JSON object with an amount'}), 400
    book = _ledger()
    try:
        book.fund(data.get('amount'))
    except PreconditionError as exc:
        return jsonify({'error': str(exc)}), 400
    state = book.to_dict()
    _broadcast(state)
    return jsonify(state)


@ledger.route('/award', methods=['POST'])
@login_required
def award_pool():
    book = _ledger()
    try:
        payout = book.award(current_user.username)
    except UnauthorizedError as exc:
        current_app.logger.info(f"[award-denied] caller={current_user.username}")
        return jsonify({'error': str(exc)}), 403
    except PreconditionError as exc:
        return jsonify({'error': str(exc)}), 400
    _broadcast(book.to_dict())
    return jsonify(payout.to_dict())


@ledger.route('/best/<string:player>', methods=['GET'])
def best_score(player):
    score, rank = _ledger().get_best_score(player)
    return jsonify({'player': player, 'score': score, 'rank': rank})

from flask import Blueprint, request, jsonify
from flask_login import login_user, logout_user, login_required, current_user
from pairs import db
from pairs.models import User

main = Blueprint('main', __name__)


@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the Pairs game server!'})


@main.route('/users/add', methods=['POST'])
def add_user():
    data = request.get_json(silent=True)
    if not isinstance(data, dict) or not 'username' in data or not 'password' in data:
        return jsonify({'error': 'Missing username or password'}), 400
    if not isinstance(data['username'], str) or not isinstance(data['password'], str):
        return jsonify({'error': 'Username and password must be strings'}), 400

    if User.query.filter_by(username=data['username']).first():
        return jsonify({'error': 'Username already exists'}), 400

    user = User(username=data['username'])
    user.set_password(data['password'])
    db.session.add(user)
    db.session.commit()

    return jsonify({'message': 'User created successfully'}), 201


@main.route('/login', methods=['POST'])
def login():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        data = {}
    username, password = data.get('username'), data.get('password')
    if not isinstance(username, str) or not isinstance(password, str):
        return jsonify({'error': 'Invalid username or password'}), 401
    user = User.query.filter_by(username=username).first()
    if user and user.check_password(password):
        login_user(user, remember=True)
        return jsonify({'message': 'Logged in successfully.', 'user': user.to_dict()})
    return jsonify({'error': 'Invalid username or password'}), 401


@main.route('/check_login')
@login_required
def check_login():
    return jsonify({'success': True, 'user': current_user.to_dict()})


@main.route('/logout')
@login_required
def logout():
    logout_user()
    return jsonify({'message': 'Logged out successfully.'})

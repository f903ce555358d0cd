from pairs import db, bcrypt
from flask_login import UserMixin
import time


class User(UserMixin, db.Model):
    __tablename__ = 'user'
    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(64), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(256), nullable=False)

    def set_password(self, password):
        self.password_hash = bcrypt.generate_password_hash(password).decode('utf-8')

    def check_password(self, password):
        return bcrypt.check_password_hash(self.password_hash, password)

    def to_dict(self):
        return {
            'id': self.id,
            'username': self.username,
        }


class GameRecord(db.Model):
    """History row written when a session reaches the completed state."""
    __tablename__ = 'game_record'
    id = db.Column(db.Integer, primary_key=True)
    game_code = db.Column(db.String(8), nullable=False, index=True)
    player = db.Column(db.String(64), nullable=True)
    score = db.Column(db.Integer, nullable=False)
    elapsed = db.Column(db.Integer, nullable=False)
    move_count = db.Column(db.Integer, nullable=False)
    created_at = db.Column(db.Float, nullable=False, default=time.time)

    def to_dict(self):
        return {
            'id': self.id,
            'game_code': self.game_code,
            'player': self.player,
            'score': self.score,
            'elapsed': self.elapsed,
            'move_count': self.move_count,
            'created_at': self.created_at,
        }


class Payout(db.Model):
    __tablename__ = 'payout'
    id = db.Column(db.Integer, primary_key=True)
    recipient = db.Column(db.String(64), nullable=False, index=True)
    amount = db.Column(db.Float, nullable=False)
    created_at = db.Column(db.Float, nullable=False, default=time.time)

    def to_dict(self):
        return {
            'id': self.id,
            'recipient': self.recipient,
            'amount': self.amount,
            'created_at': self.created_at,
        }

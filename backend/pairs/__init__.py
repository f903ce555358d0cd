from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_bcrypt import Bcrypt
from flask_login import LoginManager
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
from functools import partial
import click
from config import Config

db = SQLAlchemy()
bcrypt = Bcrypt()
login_manager = LoginManager()
migrate = Migrate()
allowed_origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "http://localhost:5174",
    "http://127.0.0.1:5174",
]
socketio = SocketIO(cors_allowed_origins=allowed_origins, async_mode=None)


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    db.init_app(flask_app)
    bcrypt.init_app(flask_app)
    login_manager.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # Game services shared by every request: one scheduler, one ledger, and
    # the registry of live sessions keyed by game code
    from pairs.services.games.scheduler import SocketIOScheduler, VirtualScheduler
    from pairs.services.ledger import RankingLedger
    from pairs.services.records import record_payout

    if flask_app.config.get('USE_VIRTUAL_CLOCK'):
        scheduler = VirtualScheduler()
    else:
        scheduler = SocketIOScheduler(socketio, heartbeat_sec=int(flask_app.config.get('TIMER_HEARTBEAT_SEC', 0)))
    flask_app.extensions['pairs_scheduler'] = scheduler
    flask_app.extensions['pairs_ledger'] = RankingLedger(
        owner=flask_app.config.get('LEDGER_OWNER', 'admin'),
        capacity=int(flask_app.config.get('LEDGER_CAPACITY', 10)),
        transfer=partial(record_payout, flask_app),
    )
    flask_app.extensions['pairs_sessions'] = {}
    flask_app.extensions['pairs_submitted'] = set()

    from pairs.routes import main
    flask_app.register_blueprint(main)

    from pairs.api.games import games
    flask_app.register_blueprint(games, url_prefix='/api/games')

    from pairs.api.ledger import ledger
    flask_app.register_blueprint(ledger, url_prefix='/api/ledger')

    from pairs.socketio_events import register_socketio_handlers
    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    from pairs.models import User

    @login_manager.user_loader
    def load_user(user_id):
        return db.session.get(User, int(user_id))

    @click.command('db-reset')
    def db_reset_command():
        """Drops, recreates, and seeds the database."""
        with flask_app.app_context():
            db.drop_all()
            db.create_all()

            users = ['testuser1', 'testuser2', 'testuser3', flask_app.config.get('LEDGER_OWNER', 'admin')]
            for u in dict.fromkeys(users):
                user = User(username=u)
                user.set_password('password')
                db.session.add(user)

            db.session.commit()
            click.echo('Database has been reset and seeded!')

    flask_app.cli.add_command(db_reset_command)

    return flask_app

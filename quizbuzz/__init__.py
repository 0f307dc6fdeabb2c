from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_bcrypt import Bcrypt
from flask_login import LoginManager
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import click
from config import Config

db = SQLAlchemy()
bcrypt = Bcrypt()
login_manager = LoginManager()
migrate = Migrate()
socketio = SocketIO(async_mode=None)

def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    allowed_origins = flask_app.config.get('CORS_ORIGINS') or []

    db.init_app(flask_app)
    bcrypt.init_app(flask_app)
    login_manager.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # Import and register blueprints here
    from quizbuzz.main import main
    flask_app.register_blueprint(main)

    from quizbuzz.api.game import game
    flask_app.register_blueprint(game, url_prefix='/api/game')

    # One game per process; handlers reach it through the app, never a module global
    from quizbuzz.services.game.broadcast import SocketIOBroadcaster
    from quizbuzz.services.game.coordinator import GameCoordinator
    from quizbuzz.services.game.storage import StatePersister, load_room_code
    namespace = flask_app.config.get('SOCKETIO_NAMESPACE', '/ws')
    coordinator = GameCoordinator(
        SocketIOBroadcaster(socketio, namespace=namespace),
        persister=StatePersister(flask_app),
        logger=flask_app.logger,
        default_names=flask_app.config.get('DEFAULT_PLAYER_NAMES', ('A', 'B')),
        code_range=(flask_app.config.get('ROOM_CODE_MIN', 1000), flask_app.config.get('ROOM_CODE_MAX', 9999)),
    )
    flask_app.extensions['quizbuzz'] = coordinator

    from quizbuzz.socketio_events import register_socketio_handlers
    register_socketio_handlers(socketio, namespace=namespace)

    # Room code survives restarts; slot bindings never do
    with flask_app.app_context():
        coordinator.restore_room_code(load_room_code(flask_app))

    # Flask-Login user loader
    from quizbuzz.models import User

    @login_manager.user_loader
    def load_user(user_id):
        return db.session.get(User, int(user_id))

    @click.command('db-reset')
    @click.option('--host', 'host_name', default=None, help='Seed a host account with this username.')
    @click.option('--password', default='password', show_default=True, help='Password for the seeded host.')
    def db_reset_command(host_name, password):
        """Drops, recreates, and optionally seeds the database."""
        with flask_app.app_context():
            db.drop_all()
            db.create_all()

            if host_name:
                user = User(username=host_name)
                user.set_password(password)
                db.session.add(user)
                db.session.commit()
                click.echo(f'Seeded host account {host_name}.')

            click.echo('Database has been reset!')

    flask_app.cli.add_command(db_reset_command)

    return flask_app

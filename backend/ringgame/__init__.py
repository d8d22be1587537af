from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
from datetime import timedelta
import click
from config import Config

db = SQLAlchemy()
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
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # One registry per app; live games are restored from stored snapshots on demand
    from ringgame.services.games import GameRegistry
    from ringgame.models import load_game_snapshot
    flask_app.extensions['game_registry'] = GameRegistry(loader=load_game_snapshot)

    # Import and register blueprints here
    from ringgame.routes import main
    flask_app.register_blueprint(main)

    from ringgame.api.games import games
    # Mount game routes under /api to match frontend API client
    flask_app.register_blueprint(games, url_prefix='/api/games')

    # Register Socket.IO event handlers
    from ringgame.socketio_events import register_socketio_handlers
    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    @click.command('db-reset')
    def db_reset_command():
        """Drops and recreates the database."""
        with flask_app.app_context():
            db.drop_all()
            db.create_all()
            flask_app.extensions['game_registry'].clear()
            print('Database has been reset!')

    @click.command('games-sweep')
    def games_sweep_command():
        """Ends stale games and deletes games past retention."""
        from ringgame.api.games import sweep_games
        with flask_app.app_context():
            ended, deleted = sweep_games(
                auto_end_after=timedelta(hours=flask_app.config.get('GAME_AUTO_END_HOURS', 24)),
                retain_for=timedelta(hours=flask_app.config.get('GAME_RETENTION_HOURS', 168)),
            )
            print(f'Ended {len(ended)} stale game(s), deleted {len(deleted)} old game(s).')

    flask_app.cli.add_command(db_reset_command)
    flask_app.cli.add_command(games_sweep_command)

    return flask_app

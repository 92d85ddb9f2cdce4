from flask import Flask, jsonify
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
    flask_app.logger.setLevel(flask_app.config.get('LOG_LEVEL', 'INFO'))

    allowed_origins = flask_app.config.get('CORS_ORIGINS', [])
    db.init_app(flask_app)
    bcrypt.init_app(flask_app)
    login_manager.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # One listener registry per app; handlers reach it through get_broadcaster()
    from sudoku_dash.services.broadcaster import EXTENSION_KEY, LeaderboardBroadcaster
    flask_app.extensions[EXTENSION_KEY] = LeaderboardBroadcaster()

    from sudoku_dash.errors import register_error_handlers
    register_error_handlers(flask_app)

    from sudoku_dash.routes import main
    flask_app.register_blueprint(main)

    from sudoku_dash.api.puzzles import puzzles
    flask_app.register_blueprint(puzzles, url_prefix='/api')

    from sudoku_dash.api.runs import runs
    flask_app.register_blueprint(runs, url_prefix='/api/runs')

    from sudoku_dash.api.leaderboard import leaderboard
    flask_app.register_blueprint(leaderboard, url_prefix='/api/leaderboard')

    from sudoku_dash.api.admin import admin
    flask_app.register_blueprint(admin, url_prefix='/api/admin')

    from sudoku_dash.socketio_events import register_socketio_handlers
    register_socketio_handlers()

    from sudoku_dash.models import AdminUser

    @login_manager.user_loader
    def load_user(user_id):
        return db.session.get(AdminUser, int(user_id))

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({'message': 'Admin login required'}), 401

    from sudoku_dash.services.catalog import seed_puzzles

    if flask_app.config.get('AUTO_INIT_DB'):
        with flask_app.app_context():
            db.create_all()
            seed_puzzles()

    @click.command('db-reset')
    def db_reset_command():
        """Drops, recreates, and seeds the database."""
        with flask_app.app_context():
            db.drop_all()
            db.create_all()
            inserted = seed_puzzles()
            click.echo(f'Database has been reset and seeded with {inserted} puzzles!')

    @click.command('seed-puzzles')
    def seed_puzzles_command():
        """Inserts any missing catalog puzzles."""
        with flask_app.app_context():
            inserted = seed_puzzles()
            click.echo(f'Seeded {inserted} new puzzles.')

    @click.command('create-admin')
    @click.argument('username')
    @click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True)
    def create_admin_command(username, password):
        """Creates an admin account, or resets its password."""
        with flask_app.app_context():
            user = AdminUser.query.filter_by(username=username).first()
            if user is None:
                user = AdminUser(username=username)
            user.set_password(password)
            db.session.add(user)
            db.session.commit()
            click.echo(f'Admin {username} saved.')

    flask_app.cli.add_command(db_reset_command)
    flask_app.cli.add_command(seed_puzzles_command)
    flask_app.cli.add_command(create_admin_command)

    return flask_app

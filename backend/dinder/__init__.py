from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO
import click
from config import Config
from dinder.store import redis_store

# Handlers for one connection run in arrival order; connections run concurrently
socketio = SocketIO(async_mode=None, async_handlers=False)


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    flask_app.logger.setLevel(flask_app.config.get('LOG_LEVEL', 'INFO'))

    allowed_origins = flask_app.config.get('CORS_ORIGINS') or []
    redis_store.init_app(flask_app)
    CORS(flask_app, origins=allowed_origins)

    # Catalog is fetched per session from this provider; a bad one is fatal at boot
    from dinder.catalog import StaticCatalog, validate_catalog
    catalog = flask_app.config.get('CATALOG_PROVIDER') or StaticCatalog()
    validate_catalog(catalog.list_options())
    flask_app.extensions['catalog'] = catalog

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    from dinder.main import main
    flask_app.register_blueprint(main)

    from dinder.api.sessions import sessions
    flask_app.register_blueprint(sessions, url_prefix='/api/sessions')

    from dinder.api.options import options
    flask_app.register_blueprint(options, url_prefix='/api/options')

    # Importing here ensures the handlers bind to the initialized socketio instance
    from dinder.socketio_events import register_socketio_handlers
    register_socketio_handlers()

    from dinder.expiry import init_expiry_notifier
    init_expiry_notifier(flask_app)

    @click.command('expire-session')
    @click.argument('session_code')
    def expire_session_command(session_code):
        """Expire a session now and tell its connected clients."""
        from dinder.expiry import notify_session_expired
        from dinder.services.sessions import expire_session

        code = session_code.upper()
        with flask_app.app_context():
            if not expire_session(code):
                raise click.ClickException(f"Session {code} not found")
            notify_session_expired(code, reason='manual')
        click.echo(f"Session {code} expired")

    flask_app.cli.add_command(expire_session_command)

    return flask_app

import sys

from dinder import create_app, socketio
from dinder.store import redis_store

app = create_app()

if __name__ == '__main__':
    # The store is the only source of truth; refuse to serve without it
    with app.app_context():
        if not redis_store.ping():
            app.logger.critical(f"Redis unreachable at {app.config['REDIS_URL']}; aborting")
            sys.exit(1)
    # Use SocketIO server to enable websockets in dev
    socketio.run(app, debug=True)

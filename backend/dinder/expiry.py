"""Tell connected clients when the store expires their session.

Redis publishes the name of every expired key on
``__keyevent@<db>__:expired`` once ``notify-keyspace-events`` includes
``Ex``. We listen on a dedicated connection in a Socket.IO background task
and broadcast ``session:expired`` to the matching room. Nothing is deleted
here; the store already did that.
"""

import re
from typing import Any, Dict, Optional

import redis
from flask import current_app

from dinder import keys, socketio
from dinder.socketio_events import ServerEvent, broadcast

_SESSION_CODE_RE = re.compile(r'^[A-Z0-9]{6}$')


def parse_session_code(key: str) -> Optional[str]:
    """Session code for a top-level ``session:{code}`` key, else None.

    Sub-keys (``session:{code}:participants`` ...) expire alongside the
    session hash and are not reported separately.
    """
    if not key.startswith(keys.SESSION_PREFIX):
        return None
    rest = key[len(keys.SESSION_PREFIX):]
    if ':' in rest:
        return None
    return rest


class SessionExpiryNotifier:
    def __init__(self, app, client: Optional[redis.Redis] = None):
        self.app = app
        if client is None:
            client = redis.Redis.from_url(app.config['REDIS_URL'], decode_responses=True)
        self.client = client
        db = client.connection_pool.connection_kwargs.get('db', 0)
        self.channel = f"__keyevent@{db}__:expired"
        self._pubsub = None
        self._running = False

    def start(self) -> None:
        """Enable keyspace events, subscribe and listen in the background."""
        if self._running:
            return
        try:
            self.client.config_set('notify-keyspace-events', 'Ex')
            self.app.logger.info('[expiry] keyspace notifications enabled')
        except redis.ResponseError as exc:
            # Managed Redis often disables CONFIG; the server may already be set up
            self.app.logger.warning(f"[expiry] could not enable keyspace notifications: {exc}")
        self._pubsub = self.client.pubsub(ignore_subscribe_messages=True)
        self._pubsub.subscribe(self.channel)
        self._running = True
        socketio.start_background_task(self._listen)
        self.app.logger.info(f"[expiry] notifier listening on {self.channel}")

    def stop(self) -> None:
        self._running = False
        if self._pubsub is not None:
            self._pubsub.close()
            self._pubsub = None

    def _listen(self) -> None:
        pubsub = self._pubsub
        while self._running and pubsub is not None:
            try:
                message = pubsub.get_message(timeout=1.0)
            except redis.RedisError:
                self.app.logger.exception('[expiry] subscriber error')
                socketio.sleep(1.0)
                continue
            if message:
                self.process_message(message)
            else:
                socketio.sleep(0)

    def process_message(self, message: Dict[str, Any]) -> Optional[str]:
        if message.get('type') != 'message' or message.get('channel') != self.channel:
            return None
        return self.handle_expired_key(message.get('data') or '')

    def handle_expired_key(self, key: str, reason: str = 'inactivity') -> Optional[str]:
        """Broadcast ``session:expired`` for a session key. Returns the code."""
        code = parse_session_code(key)
        if code is None:
            return None
        if not _SESSION_CODE_RE.match(code):
            self.app.logger.warning(f"[expiry] ignoring malformed session key {key!r}")
            return None
        with self.app.app_context():
            notify_session_expired(code, reason)
        return code


def notify_session_expired(code: str, reason: str = 'inactivity') -> None:
    message = (
        'Session has expired due to inactivity' if reason == 'inactivity'
        else 'Session has been closed'
    )
    broadcast(ServerEvent.SESSION_EXPIRED, {
        'sessionCode': code,
        'reason': reason,
        'message': message,
    }, code)
    current_app.logger.info(f"[expiry] session={code} reason={reason}")


def init_expiry_notifier(app) -> Optional[SessionExpiryNotifier]:
    if app.config.get('TESTING') or not app.config.get('EXPIRY_NOTIFIER_ENABLED', True):
        return None
    notifier = SessionExpiryNotifier(app)
    notifier.start()
    app.extensions['expiry_notifier'] = notifier
    return notifier

import pytest

from dinder.expiry import SessionExpiryNotifier, parse_session_code

NS = '/ws'


@pytest.fixture()
def notifier(flask_app, redis_client):
    return SessionExpiryNotifier(flask_app, client=redis_client)


def _expired_events(sio):
    return [pkt['args'][0] for pkt in sio.get_received(NS) if pkt['name'] == 'session:expired']


def test_parse_session_code():
    assert parse_session_code('session:ABC123') == 'ABC123'
    assert parse_session_code('session:ABC123:participants') is None
    assert parse_session_code('session:ABC123:p1:selections') is None
    assert parse_session_code('participant:xyz') is None


def test_notifier_listens_on_expired_channel(notifier):
    assert notifier.channel == '__keyevent@0__:expired'


def test_expired_key_is_broadcast_to_room(notifier, sio_client, session_code):
    sio_client.emit('session:join', {'sessionCode': session_code, 'displayName': 'Alice'},
                    namespace=NS, callback=True)
    sio_client.get_received(NS)

    assert notifier.handle_expired_key(f'session:{session_code}') == session_code
    assert _expired_events(sio_client) == [{
        'sessionCode': session_code,
        'reason': 'inactivity',
        'message': 'Session has expired due to inactivity',
    }]


def test_sub_keys_and_malformed_codes_are_ignored(notifier, sio_client, session_code):
    sio_client.emit('session:join', {'sessionCode': session_code, 'displayName': 'Alice'},
                    namespace=NS, callback=True)
    sio_client.get_received(NS)

    assert notifier.handle_expired_key(f'session:{session_code}:participants') is None
    assert notifier.handle_expired_key('session:lower!') is None
    assert _expired_events(sio_client) == []


def test_process_message_filters_channel(notifier):
    assert notifier.process_message({'type': 'subscribe', 'channel': notifier.channel, 'data': 1}) is None
    assert notifier.process_message({'type': 'message', 'channel': 'other', 'data': 'session:ABC123'}) is None
    assert notifier.process_message(
        {'type': 'message', 'channel': notifier.channel, 'data': 'session:ABC123'}
    ) == 'ABC123'


def test_start_subscribes_and_stop_closes(notifier, monkeypatch):
    from dinder import socketio

    started = []
    monkeypatch.setattr(socketio, 'start_background_task', lambda target: started.append(target))
    notifier.start()
    assert started == [notifier._listen]
    assert notifier._running is True

    # A second start is a no-op
    notifier.start()
    assert len(started) == 1

    notifier.stop()
    assert notifier._running is False
    assert notifier._pubsub is None


def test_notifier_disabled_under_testing(flask_app):
    assert 'expiry_notifier' not in flask_app.extensions


def test_expire_session_command(flask_app, redis_client, sio_client, session_code):
    sio_client.emit('session:join', {'sessionCode': session_code, 'displayName': 'Alice'},
                    namespace=NS, callback=True)
    sio_client.get_received(NS)

    runner = flask_app.test_cli_runner()
    result = runner.invoke(args=['expire-session', session_code.lower()])
    assert result.exit_code == 0
    assert f'Session {session_code} expired' in result.output
    assert redis_client.exists(f'session:{session_code}') == 0
    assert _expired_events(sio_client) == [{
        'sessionCode': session_code,
        'reason': 'manual',
        'message': 'Session has been closed',
    }]


def test_expire_session_command_unknown(flask_app):
    result = flask_app.test_cli_runner().invoke(args=['expire-session', 'ZZZZZZ'])
    assert result.exit_code != 0
    assert 'not found' in result.output

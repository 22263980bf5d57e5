import pytest

from livecollab.extensions import socketio


def names(messages):
    return [m['name'] for m in messages]


def payloads(messages, name):
    return [m['args'][0] for m in messages if m['name'] == name]


@pytest.fixture
def alice(app):
    client = socketio.test_client(app)
    client.emit('join', {'session': 'room', 'userName': 'alice'})
    return client


@pytest.fixture
def bob(app, alice):
    client = socketio.test_client(app)
    client.emit('join', {'sessionId': 'room', 'userName': 'bob'})
    return client


def test_join_sends_init_and_announces(alice, bob):
    init = payloads(bob.get_received(), 'session:init')
    assert init == [{'files': {}, 'users': ['alice', 'bob']}]
    assert payloads(alice.get_received(), 'user:join') == [{'userName': 'bob'}]


def test_update_reaches_others_only(alice, bob, store):
    alice.get_received()
    bob.get_received()

    alice.emit('file:update', {'session': 'room', 'filename': 'main.py', 'content': 'print(2)'})

    assert alice.get_received() == []
    assert payloads(bob.get_received(), 'file:updated') == [
        {'session': 'room', 'filename': 'main.py', 'content': 'print(2)'}
    ]
    assert store.get_files('room') == {'main.py': 'print(2)'}


def test_create_and_delete_reach_everyone(alice, bob):
    alice.get_received()
    bob.get_received()

    bob.emit('file:create', {'session': 'room', 'filename': 'util.py'})
    bob.emit('file:delete', {'session': 'room', 'filename': 'util.py'})

    for client in (alice, bob):
        assert names(client.get_received()) == ['file:created', 'file:deleted']


def test_chat_relayed_to_room(alice, bob):
    alice.get_received()
    bob.get_received()

    alice.emit('chat:message', {'session': 'room', 'userName': 'alice', 'text': 'hi'})
    alice.emit('chat:message', {'session': 'room', 'userName': 'alice', 'text': ''})

    message = payloads(bob.get_received(), 'chat:message')
    assert len(message) == 1
    assert message[0]['userName'] == 'alice'
    assert message[0]['text'] == 'hi'
    assert 'time' in message[0]


def test_malformed_payloads_are_dropped(alice, bob):
    alice.get_received()
    bob.get_received()

    alice.emit('file:update', 'not-an-object')
    alice.emit('file:update', {'session': 'room', 'content': 'no filename'})
    alice.emit('join')

    assert bob.get_received() == []
    assert alice.is_connected()


def test_disconnect_announces_departure(alice, bob, store):
    alice.get_received()

    bob.disconnect()

    assert payloads(alice.get_received(), 'user:left') == [{'userName': 'bob'}]
    assert store.list_users('room') == ['alice']


def test_session_defaults_when_missing(app, store):
    client = socketio.test_client(app)
    client.emit('join', {'userName': 'carol'})

    assert store.list_users('default') == ['carol']


def test_non_string_fields_are_dropped(app, alice, store):
    alice.get_received()
    mallory = socketio.test_client(app)

    mallory.emit('join', {'session': 'room', 'userName': 5})
    alice.emit('file:update', {'session': 'room', 'filename': ['main.py'], 'content': 'x'})
    alice.emit('chat:message', {'session': 'room', 'text': {'html': '<b>'}})

    assert store.list_users('room') == ['alice']
    assert store.get_files('room') == {}
    assert alice.get_received() == []

    carol = socketio.test_client(app)
    carol.emit('join', {'session': 'room', 'userName': 'carol'})
    assert store.list_users('room') == ['alice', 'carol']

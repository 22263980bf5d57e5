import pytest
import redis

from livecollab.errors import StoreUnavailableError
from livecollab.models.workspace_store import (
    MemoryWorkspaceStore,
    RedisWorkspaceStore,
    create_store,
    files_key,
    presence_key,
    users_key,
)


def test_key_layout():
    assert files_key('abc') == 'session:abc:files'
    assert users_key('abc') == 'session:abc:users'
    assert presence_key('abc') == 'session:abc:presence'


def test_memory_store_files_are_whole_overwrites():
    store = MemoryWorkspaceStore()
    store.set_file('s', 'a.py', 'one')
    store.set_file('s', 'a.py', 'two')
    store.set_file('s', 'b.py', '')

    assert store.get_files('s') == {'a.py': 'two', 'b.py': ''}
    store.delete_file('s', 'a.py')
    store.delete_file('s', 'missing.py')
    assert store.get_files('s') == {'b.py': ''}


def test_memory_store_snapshot_is_a_copy():
    store = MemoryWorkspaceStore()
    store.set_file('s', 'a.py', 'one')
    snapshot = store.get_files('s')
    snapshot['a.py'] = 'tampered'

    assert store.get_files('s') == {'a.py': 'one'}


def test_memory_store_presence_counts_connections_per_name():
    store = MemoryWorkspaceStore()
    assert store.add_presence('s', 'alice') == 1
    assert store.add_presence('s', 'alice') == 2
    store.add_presence('s', 'bob')

    assert store.remove_presence('s', 'alice') is False
    assert store.list_users('s') == ['alice', 'bob']
    assert store.remove_presence('s', 'alice') is True
    assert store.list_users('s') == ['bob']


@pytest.fixture
def redis_client(mocker):
    client = mocker.MagicMock()
    client.register_script.side_effect = lambda source: mocker.MagicMock(name='script')
    return client


def test_redis_store_file_operations(redis_client):
    redis_client.hgetall.return_value = {'main.py': 'print(1)'}
    store = RedisWorkspaceStore(redis_client)

    assert store.get_files('s1') == {'main.py': 'print(1)'}
    store.set_file('s1', 'main.py', 'print(2)')
    store.delete_file('s1', 'old.py')

    redis_client.hgetall.assert_called_once_with('session:s1:files')
    redis_client.hset.assert_called_once_with('session:s1:files', 'main.py', 'print(2)')
    redis_client.hdel.assert_called_once_with('session:s1:files', 'old.py')


def test_redis_store_presence_runs_atomic_scripts(redis_client):
    store = RedisWorkspaceStore(redis_client)
    store._join.return_value = 2
    store._leave.return_value = 1
    redis_client.smembers.return_value = {'bob', 'alice'}

    assert store.add_presence('s1', 'alice') == 2
    assert store.remove_presence('s1', 'alice') is True
    assert store.list_users('s1') == ['alice', 'bob']

    keys = ['session:s1:presence', 'session:s1:users']
    store._join.assert_called_once_with(keys=keys, args=['alice'])
    store._leave.assert_called_once_with(keys=keys, args=['alice'])


def test_redis_errors_become_store_unavailable(redis_client):
    redis_client.hgetall.side_effect = redis.ConnectionError('refused')
    store = RedisWorkspaceStore(redis_client)

    with pytest.raises(StoreUnavailableError):
        store.get_files('s1')


def test_create_store_from_config(mocker):
    from_url = mocker.patch('livecollab.models.workspace_store.redis.Redis.from_url')
    from_url.return_value.register_script.return_value = mocker.MagicMock()

    assert isinstance(create_store({'WORKSPACE_STORE': 'memory'}), MemoryWorkspaceStore)
    store = create_store({'WORKSPACE_STORE': 'redis', 'REDIS_URL': 'redis://cache:6379/0', 'REDIS_SOCKET_TIMEOUT': 2})

    assert isinstance(store, RedisWorkspaceStore)
    from_url.assert_called_once_with(
        'redis://cache:6379/0', decode_responses=True, socket_timeout=2, socket_connect_timeout=2
    )
    with pytest.raises(ValueError):
        create_store({'WORKSPACE_STORE': 'sqlite'})

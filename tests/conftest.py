"""Shared test fixtures."""
import pytest
from unittest.mock import patch, MagicMock
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from sizzle.database import Base, make_engine
from sizzle.services.store import RecordStore


class FakeRedis:
    """Minimal in-memory Redis fake for circuit breaker tests."""

    def __init__(self):
        self.get_store = {}
        self.hash_store = {}

    def get(self, key):
        return self.get_store.get(key)

    def set(self, key, value):
        self.get_store[key] = value

    def incr(self, key):
        val = int(self.get_store.get(key, 0)) + 1
        self.get_store[key] = str(val)
        return val

    def delete(self, *keys):
        for k in keys:
            self.get_store.pop(k, None)
            self.hash_store.pop(k, None)

    def hset(self, key, field, value):
        self.hash_store.setdefault(key, {})[field] = value

    def hincrby(self, key, field, amount):
        h = self.hash_store.setdefault(key, {})
        h[field] = str(int(h.get(field, 0)) + amount)

    def hgetall(self, key):
        return dict(self.hash_store.get(key, {}))

    def pipeline(self):
        return FakePipeline(self)


class FakePipeline:
    """Fake Redis pipeline that executes on execute()."""

    def __init__(self, redis):
        self._redis = redis
        self._ops = []

    def set(self, key, value):
        self._ops.append(('set', key, value))
        return self

    def delete(self, *keys):
        self._ops.append(('delete', keys))
        return self

    def hincrby(self, key, field, amount):
        self._ops.append(('hincrby', key, field, amount))
        return self

    def hset(self, key, field, value):
        self._ops.append(('hset', key, field, value))
        return self

    def execute(self):
        for op in self._ops:
            if op[0] == 'set':
                self._redis.set(op[1], op[2])
            elif op[0] == 'delete':
                self._redis.delete(*op[1])
            elif op[0] == 'hincrby':
                self._redis.hincrby(op[1], op[2], op[3])
            elif op[0] == 'hset':
                self._redis.hset(op[1], op[2], op[3])
        self._ops = []


@pytest.fixture
def db_engine():
    """In-memory SQLite engine with schema created, shared across sessions."""
    engine = make_engine('sqlite://', poolclass=StaticPool)
    import sizzle.models.profile
    import sizzle.models.pipeline_entry
    import sizzle.models.call_attempt
    import sizzle.models.performance_metric
    import sizzle.models.sales_credit
    import sizzle.models.assignment
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return sessionmaker(bind=db_engine)


@pytest.fixture(autouse=True)
def patch_get_session(session_factory):
    """Route all get_session() calls to the in-memory database."""
    with patch('sizzle.database.get_session', side_effect=session_factory):
        yield


@pytest.fixture
def store(session_factory):
    """RecordStore over the in-memory database."""
    return RecordStore(session_factory=session_factory)


@pytest.fixture
def fake_redis():
    """In-memory Redis fake with dict-backed storage."""
    return FakeRedis()


@pytest.fixture(autouse=True)
def patch_redis(fake_redis):
    """Keep circuit breakers off the real Redis."""
    from sizzle.services import circuit_breaker
    with patch('sizzle.extensions.redis_client', fake_redis):
        yield fake_redis
    circuit_breaker._registry.clear()


@pytest.fixture
def ghl_client():
    """MagicMock standing in for GHLClient."""
    return MagicMock()


@pytest.fixture
def app(store, ghl_client):
    """Flask test app with the in-memory store and a mocked GoHighLevel client."""
    from sizzle import create_app
    with patch('sizzle.config.DASHBOARD_PASSWORD', None):
        app = create_app(store=store, ghl_client=ghl_client)
    app.config['TESTING'] = True
    yield app


@pytest.fixture
def client(app):
    """Flask test client."""
    with app.test_client() as c:
        yield c


@pytest.fixture
def make_entry(store):
    """Factory fixture — inserts a pipeline entry and returns its row."""
    def _make(**overrides):
        row = dict(user_id='user-1', name='Acme Corp', value=1000.0, stage='LEADS', status='OPEN')
        row.update(overrides)
        return store.insert('pipeline_entries', row)
    return _make


@pytest.fixture
def make_attempt(store):
    """Factory fixture — inserts a call attempt for an entry."""
    def _make(entry, attempt_date, status='COMPLETED', next_follow_up=None, **overrides):
        row = dict(
            pipeline_entry_id=entry['id'],
            user_id=entry['user_id'],
            status=status,
            attempt_date=attempt_date,
            next_follow_up=next_follow_up,
        )
        row.update(overrides)
        return store.insert('call_attempts', row)
    return _make

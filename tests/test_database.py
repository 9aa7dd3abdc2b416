# tests/test_database.py
from sqlalchemy.pool import QueuePool, StaticPool

from salestrend.database import make_engine


def test_server_engine_has_bounded_pool():
    # create_engine does not connect, so no server is needed
    engine = make_engine("mysql+pymysql://u:p@h/db")
    try:
        assert isinstance(engine.pool, QueuePool)
        assert engine.pool.size() == 10
        assert engine.pool._max_overflow == 0
        assert engine.pool.timeout() == 30
    finally:
        engine.dispose()

def test_pool_settings_can_be_overridden():
    engine = make_engine("mysql+pymysql://u:p@h/db", pool_size=3, pool_timeout=5)
    try:
        assert engine.pool.size() == 3
        assert engine.pool.timeout() == 5
    finally:
        engine.dispose()

def test_in_memory_sqlite_shares_one_connection():
    engine = make_engine("sqlite://")
    try:
        assert isinstance(engine.pool, StaticPool)
    finally:
        engine.dispose()

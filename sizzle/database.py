"""
SQLAlchemy engine, declarative Base and session factory.

DATABASE_URL defaults to a local SQLite file; hosted Postgres URLs using the
legacy postgres:// scheme are accepted. SQLite connections get foreign key
enforcement switched on so both backends reject the same orphan rows.
"""
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, DeclarativeBase

from sizzle.config import DATABASE_URL


class Base(DeclarativeBase):
    pass


def normalize_url(raw_url):
    """SQLAlchemy 2.x only understands postgresql://."""
    if raw_url.startswith('postgres://'):
        return 'postgresql://' + raw_url[len('postgres://'):]
    return raw_url


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute('PRAGMA foreign_keys=ON')
    cursor.close()


def make_engine(db_url, **kwargs):
    if db_url.startswith('sqlite'):
        kwargs.setdefault('connect_args', {'check_same_thread': False})
        sqlite_engine = create_engine(db_url, **kwargs)
        event.listen(sqlite_engine, 'connect', _enable_sqlite_foreign_keys)
        return sqlite_engine
    kwargs.setdefault('pool_pre_ping', True)
    kwargs.setdefault('pool_size', 5)
    kwargs.setdefault('max_overflow', 10)
    return create_engine(db_url, **kwargs)


url = normalize_url(DATABASE_URL)
engine = make_engine(url)
SessionLocal = sessionmaker(bind=engine)


def get_session():
    """New session on the application engine; callers close it."""
    return SessionLocal()

"""
Database primitives used by the database capabilities.

Migrations run through Flask-Migrate when the application has a migrations
directory and fall back to ``db.create_all()`` when it does not, so small
applications without Alembic can still use every database capability.

Test transactions follow the Flask-SQLAlchemy 3 recipe of replacing entries of
``db.engines`` with connections that hold an open transaction. Every session
created while the swap is active joins that transaction, and rolling it back
discards whatever the test wrote, including explicit commits.
"""

import logging
import os
from typing import Any, Iterable, List, Optional, Tuple

import flask_migrate
from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import MetaData
from sqlalchemy.engine import Connection

from flask_testbench.exceptions import DatabaseSetupError

logger = logging.getLogger(__name__)


class RefreshDatabaseState:
    """Process-wide record of whether the test database was rebuilt."""

    migrated = False

    @classmethod
    def reset(cls) -> None:
        cls.migrated = False


def get_database(app: Flask) -> SQLAlchemy:
    """
    Return the Flask-SQLAlchemy extension registered on ``app``.

    Raises:
        DatabaseSetupError: If the application does not use Flask-SQLAlchemy
    """
    db = app.extensions.get('sqlalchemy')
    if db is None:
        raise DatabaseSetupError(
            "Application has no Flask-SQLAlchemy extension registered",
            details={'app': app.name},
        )
    return db


def using_in_memory_database(app: Flask) -> bool:
    """True when the default bind is an in-memory SQLite database."""
    url = get_database(app).engine.url
    return url.get_backend_name() == 'sqlite' and url.database in (None, '', ':memory:')


def migrations_directory(app: Flask) -> Optional[str]:
    """Return the Flask-Migrate directory if one is configured and exists."""
    config = app.extensions.get('migrate')
    directory = getattr(config, 'directory', None)
    if directory and os.path.isdir(directory):
        return directory
    return None


def migrate(app: Flask, directory: Optional[str] = None) -> None:
    """Bring the schema up to date."""
    directory = directory or migrations_directory(app)
    if directory:
        logger.debug("Upgrading database from %s", directory)
        flask_migrate.upgrade(directory=directory)
    else:
        get_database(app).create_all()


def drop_all_tables(app: Flask) -> None:
    """Drop every table on every bind, including ones unknown to the models."""
    db = get_database(app)
    db.session.remove()
    for engine in db.engines.values():
        metadata = MetaData()
        metadata.reflect(bind=engine)
        metadata.drop_all(bind=engine)


def migrate_fresh(app: Flask, directory: Optional[str] = None) -> None:
    """Drop all tables and migrate from scratch."""
    drop_all_tables(app)
    migrate(app, directory)


def migrate_rollback(app: Flask, directory: Optional[str] = None) -> None:
    """Undo the schema created by ``migrate``."""
    directory = directory or migrations_directory(app)
    if directory:
        flask_migrate.downgrade(directory=directory, revision='base')
    else:
        db = get_database(app)
        db.session.remove()
        db.drop_all()


class DatabaseTransaction:
    """
    Open transactions on a set of binds and roll them back later.

    Args:
        app: Application whose Flask-SQLAlchemy extension is used
        bind_keys: Bind keys to transact; ``None`` is the default bind
    """

    def __init__(self, app: Flask, bind_keys: Iterable[Optional[str]] = (None,)) -> None:
        self.db = get_database(app)
        self.bind_keys = list(bind_keys)
        self._active: List[Tuple[Optional[str], Any, Any, Any]] = []

    @property
    def active(self) -> bool:
        return bool(self._active)

    def begin(self) -> 'DatabaseTransaction':
        self.db.session.remove()
        engines = self.db.engines
        for key in self.bind_keys:
            engine = engines[key]
            if isinstance(engine, Connection):
                # bind already swapped by an outer test transaction
                self._active.append((key, engine, None, engine.begin_nested()))
                continue
            connection = engine.connect()
            transaction = connection.begin()
            engines[key] = connection
            self._active.append((key, engine, connection, transaction))
        return self

    def rollback(self) -> None:
        self.db.session.remove()
        engines = self.db.engines
        while self._active:
            key, engine, connection, transaction = self._active.pop()
            try:
                if transaction.is_active:
                    transaction.rollback()
            finally:
                if connection is not None:
                    connection.close()
                    engines[key] = engine

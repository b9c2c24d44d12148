"""
Database capability hooks.

These are the methods the ``REFRESH_DATABASE``, ``DATABASE_MIGRATIONS`` and
``DATABASE_TRANSACTIONS`` capabilities call during ``setUp``. Each registers
its own cleanup as a before-destroyed callback, so cleanup runs while the
application and its engines are still alive.
"""

from typing import List, Optional

from flask_testbench.database import (
    DatabaseTransaction,
    RefreshDatabaseState,
    migrate,
    migrate_fresh,
    migrate_rollback,
    using_in_memory_database,
)
from flask_testbench.logging import get_logger

log = get_logger(__name__)


class ManagesDatabase:

    # bind keys wrapped in a transaction; None is the default bind
    connections_to_transact: List[Optional[str]] = [None]

    def refresh_database(self) -> None:
        """Start the test from a migrated, empty database."""
        if using_in_memory_database(self.app.flask_app):
            self.refresh_in_memory_database()
        else:
            self.refresh_test_database()

    def refresh_in_memory_database(self) -> None:
        migrate(self.app.flask_app)

    def refresh_test_database(self) -> None:
        # rebuild once per process, then isolate each test in a transaction
        if not RefreshDatabaseState.migrated:
            migrate_fresh(self.app.flask_app)
            RefreshDatabaseState.migrated = True
            log.debug("database.migrated_fresh")

        self.begin_database_transaction()

    def run_database_migrations(self) -> None:
        """Migrate from scratch now and roll the schema back at teardown."""
        flask_app = self.app.flask_app
        migrate_fresh(flask_app)

        def rollback() -> None:
            migrate_rollback(flask_app)
            RefreshDatabaseState.migrated = False

        self.before_application_destroyed(rollback)

    def begin_database_transaction(self) -> None:
        """Wrap the test in transactions that are rolled back at teardown."""
        transaction = DatabaseTransaction(self.app.flask_app, self.connections_to_transact).begin()
        self.before_application_destroyed(transaction.rollback)

    def load_migrations_from(self, directory: str) -> None:
        """Run migrations from ``directory`` and downgrade them at teardown."""
        flask_app = self.app.flask_app
        migrate(flask_app, directory)
        self.before_application_destroyed(lambda: migrate_rollback(flask_app, directory))

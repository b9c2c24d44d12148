"""
Database assertions and seeding.

Queries run on the application's scoped session, so rows the test added but
has not committed yet are visible, and rows inside an open test transaction are
counted.
"""

from typing import Any, Callable, Mapping, Optional, Union

from sqlalchemy import MetaData, Table, func, select

from flask_testbench.database import get_database

Seeder = Union[str, Callable[..., Any], type]


class InteractsWithDatabase:

    def _table(self, table: str, bind_key: Optional[str]) -> Table:
        db = get_database(self.app.flask_app)
        metadata = db.metadatas.get(bind_key)
        if metadata is not None and table in metadata.tables:
            return metadata.tables[table]
        return Table(table, MetaData(), autoload_with=db.engines[bind_key])

    def count_database_rows(self, table: str, data: Optional[Mapping[str, Any]] = None,
                            bind_key: Optional[str] = None) -> int:
        db = get_database(self.app.flask_app)
        table_obj = self._table(table, bind_key)
        statement = select(func.count()).select_from(table_obj)
        for column, value in (data or {}).items():
            statement = statement.where(table_obj.c[column] == value)
        return db.session.execute(
            statement, bind_arguments={'bind': db.engines[bind_key]}
        ).scalar_one()

    def see_in_database(self, table: str, data: Mapping[str, Any],
                        bind_key: Optional[str] = None) -> 'InteractsWithDatabase':
        """Assert that a row matching ``data`` exists in ``table``."""
        count = self.count_database_rows(table, data, bind_key)
        assert count > 0, (
            f"Unable to find row in database table [{table}] that matched attributes {dict(data)!r}."
        )
        return self

    def dont_see_in_database(self, table: str, data: Mapping[str, Any],
                             bind_key: Optional[str] = None) -> 'InteractsWithDatabase':
        count = self.count_database_rows(table, data, bind_key)
        assert count == 0, (
            f"Found unexpected records in database table [{table}] that matched attributes {dict(data)!r}."
        )
        return self

    def missing_from_database(self, table: str, data: Mapping[str, Any],
                              bind_key: Optional[str] = None) -> 'InteractsWithDatabase':
        return self.dont_see_in_database(table, data, bind_key)

    def assert_database_count(self, table: str, count: int,
                              bind_key: Optional[str] = None) -> 'InteractsWithDatabase':
        actual = self.count_database_rows(table, bind_key=bind_key)
        assert actual == count, f"Expected {count} rows in table [{table}], found {actual}."
        return self

    def seed(self, *seeders: Seeder) -> 'InteractsWithDatabase':
        """
        Seed the database.

        A string runs the CLI command of that name; a class is instantiated and
        its ``run(db)`` called; any other callable is called with ``db``.
        """
        db = get_database(self.app.flask_app)
        for seeder in seeders:
            if isinstance(seeder, str):
                self.run_command(seeder)
            elif isinstance(seeder, type):
                seeder().run(db)
            else:
                seeder(db)
        return self

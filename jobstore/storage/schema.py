"""
Metastore schema lifecycle.

Two tables back the metastore:
- a root table registering each job (name, creation order, storage version)
- a sessions table holding the job's encoded property rows

Table names default to ``jobstore_root`` / ``jobstore_sessions`` and can be
overridden per descriptor.
"""

from typing import Optional

from sqlalchemy import (
    Column,
    DateTime,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    inspect,
)
from sqlalchemy.engine import Connection
from sqlalchemy.exc import DBAPIError

from jobstore.errors import SchemaError
from jobstore.logging import get_logger


logger = get_logger(__name__)


DEFAULT_ROOT_TABLE = "jobstore_root"
DEFAULT_SESSIONS_TABLE = "jobstore_sessions"

# Version written into every root row by this release
STORAGE_VERSION = 1


class JobSchema:
    """
    Table definitions plus create/validate/drop for one metastore.

    ensure() is idempotent and tolerates losing a creation race against
    another process; drop() removes only the two metastore tables.
    """

    def __init__(
        self,
        root_table: str = DEFAULT_ROOT_TABLE,
        sessions_table: str = DEFAULT_SESSIONS_TABLE,
        schema: Optional[str] = None,
    ):
        self.schema = schema
        self.metadata = MetaData(schema=schema)

        self.root = Table(
            root_table,
            self.metadata,
            Column("job_id", Integer, primary_key=True, autoincrement=True),
            Column("job_name", String(255), nullable=False, unique=True),
            Column("storage_version", Integer, nullable=False),
            Column("created_at", DateTime(timezone=True), nullable=False),
            Column("updated_at", DateTime(timezone=True), nullable=False),
        )

        self.sessions = Table(
            sessions_table,
            self.metadata,
            Column("job_name", String(255), nullable=False),
            Column("prop_name", String(255), nullable=False),
            Column("prop_val", Text, nullable=True),
            Column("prop_class", String(32), nullable=False),
            Column("prop_index", Integer, nullable=True),
            Index(f"ix_{sessions_table}_job_name", "job_name"),
        )

    @property
    def tables(self) -> tuple[Table, Table]:
        return (self.root, self.sessions)

    def _live_tables(self, conn: Connection) -> dict[str, str]:
        """Map lower-cased live table names to their actual spelling."""
        names = inspect(conn).get_table_names(schema=self.schema)
        return {name.lower(): name for name in names}

    def missing_tables(self, conn: Connection) -> list[Table]:
        live = self._live_tables(conn)
        return [table for table in self.tables if table.name.lower() not in live]

    def ensure(self, conn: Connection) -> bool:
        """
        Create missing tables and validate existing ones.

        Runs its own transactions; conn must not be inside one.

        Returns:
            True if any table was created by this call
        """
        created = False
        try:
            with conn.begin():
                missing = self.missing_tables(conn)
                if missing:
                    self.metadata.create_all(conn, tables=missing, checkfirst=True)
                    created = True
                    logger.info(
                        "Metastore tables created",
                        tables=[table.name for table in missing],
                    )
        except DBAPIError:
            # Another process may have created them between our check
            # and our CREATE; only fail if they are still absent.
            with conn.begin():
                if self.missing_tables(conn):
                    raise
            logger.info("Metastore tables created concurrently by another session")

        with conn.begin():
            self.validate(conn)
        return created

    def validate(self, conn: Connection) -> None:
        """Check that every expected column exists on the live tables."""
        live = self._live_tables(conn)
        inspector = inspect(conn)

        for table in self.tables:
            actual_name = live.get(table.name.lower())
            if actual_name is None:
                raise SchemaError(f"Metastore table {table.name!r} does not exist")

            columns = {
                column["name"].lower()
                for column in inspector.get_columns(actual_name, schema=self.schema)
            }
            expected = {column.name.lower() for column in table.columns}
            missing = sorted(expected - columns)
            if missing:
                raise SchemaError(
                    f"Metastore table {actual_name!r} is missing columns: {', '.join(missing)}"
                )

    def drop(self, conn: Connection) -> list[str]:
        """
        Drop the metastore tables by their exact names.

        Returns:
            Names of the tables that were dropped
        """
        dropped = []
        with conn.begin():
            live = self._live_tables(conn)
            # Detail table first
            for table in reversed(self.tables):
                if table.name.lower() in live:
                    table.drop(conn, checkfirst=False)
                    dropped.append(table.name)

        if dropped:
            logger.info("Metastore tables dropped", tables=dropped)
        return dropped

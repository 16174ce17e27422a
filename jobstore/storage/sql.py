"""
Relational storage backend implementation.

Uses SQLAlchemy Core over a single synchronous connection. The connect
string is either ``mem:<name>`` for a named process-local database (kept
for the life of the process, like an embedded database's memory catalog)
or any SQLAlchemy URL. The descriptor's driver key picks the DBAPI driver for
URLs that do not name one.
"""

import itertools
import tempfile
import threading
from collections.abc import Mapping
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from sqlalchemy import create_engine, select
from sqlalchemy.engine import URL, Connection, Engine, make_url
from sqlalchemy.exc import ArgumentError, DBAPIError, IntegrityError
from sqlalchemy.pool import NullPool

from jobstore.descriptor import (
    META_CONNECT_KEY,
    META_DRIVER_KEY,
    META_PASSWORD_KEY,
    META_ROOT_TABLE_KEY,
    META_SCHEMA_KEY,
    META_SESSIONS_TABLE_KEY,
    META_USERNAME_KEY,
    freeze_descriptor,
    get_value,
)
from jobstore.errors import (
    CorruptRecordError,
    JobExistsError,
    JobNotFoundError,
    MetastoreConnectionError,
    NotOpenError,
    SchemaError,
)
from jobstore.logging import get_logger
from jobstore.models import JobRecord
from jobstore.storage.base import BaseJobStorage, check_job_name
from jobstore.storage.codec import PropertyRow, decode_job, encode_job
from jobstore.storage.schema import (
    DEFAULT_ROOT_TABLE,
    DEFAULT_SESSIONS_TABLE,
    STORAGE_VERSION,
    JobSchema,
)


logger = get_logger(__name__)


MEMORY_PREFIX = "mem:"

# Named process-local databases live as SQLite files in a private scratch
# directory removed at interpreter exit. Every storage still opens its own
# DBAPI connection, so transactions stay isolated between instances.
_memory_root: Optional[tempfile.TemporaryDirectory] = None
_memory_databases: dict[str, Path] = {}
_memory_ids = itertools.count()
_memory_lock = threading.Lock()


def _memory_url(name: str) -> URL:
    """Get the URL of the process-local database called name."""
    global _memory_root
    with _memory_lock:
        if _memory_root is None:
            _memory_root = tempfile.TemporaryDirectory(prefix="jobstore-mem-")
        path = _memory_databases.get(name)
        if path is None:
            # Names are free-form; the file name is not derived from them
            path = Path(_memory_root.name) / f"db{next(_memory_ids)}.sqlite"
            _memory_databases[name] = path
    return URL.create("sqlite", database=str(path))


def dispose_memory_database(name: str) -> bool:
    """
    Discard a named process-local database and everything stored in it.

    Storages still open on it must be closed first.

    Returns True if the database existed.
    """
    with _memory_lock:
        path = _memory_databases.pop(name, None)
    if path is None:
        return False
    for leftover in (path, path.with_name(path.name + "-journal")):
        leftover.unlink(missing_ok=True)
    return True


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SqlJobStorage(BaseJobStorage):
    """
    Job storage in a relational database.

    Accepts any descriptor carrying a connect string. Each instance owns
    exactly one connection between open() and close(); every operation
    runs in its own transaction and is rolled back on error.
    """

    name = "sql"

    def __init__(self):
        self._descriptor: Optional[Mapping[str, str]] = None
        self._engine: Optional[Engine] = None
        self._conn: Optional[Connection] = None
        self._schema: Optional[JobSchema] = None

    @classmethod
    def can_accept(cls, descriptor: Mapping[str, str]) -> bool:
        return META_CONNECT_KEY in descriptor

    def _connect_string(self, descriptor: Mapping[str, str]) -> str:
        connect = get_value(descriptor, META_CONNECT_KEY)
        if connect is None:
            raise MetastoreConnectionError("No metastore connect string configured")
        return connect

    def _database_url(self, connect: str, descriptor: Mapping[str, str]) -> URL:
        """Turn the connect string plus descriptor keys into a SQLAlchemy URL."""
        try:
            url = make_url(connect)
        except ArgumentError as exc:
            raise MetastoreConnectionError(f"Invalid connect string: {connect!r}") from exc

        backend = url.get_backend_name()
        driver = get_value(descriptor, META_DRIVER_KEY)
        if driver and "+" not in url.drivername and driver != backend:
            url = url.set(drivername=f"{backend}+{driver}")

        # SQLite has no notion of users
        if backend != "sqlite":
            username = get_value(descriptor, META_USERNAME_KEY)
            password = get_value(descriptor, META_PASSWORD_KEY)
            if url.username is None and username:
                url = url.set(username=username)
            if url.password is None and password:
                url = url.set(password=password)

        return url

    def _create_engine(self, descriptor: Mapping[str, str]) -> Engine:
        """Build an engine that hands out one fresh connection per connect()."""
        connect = self._connect_string(descriptor)

        if connect.startswith(MEMORY_PREFIX):
            name = connect[len(MEMORY_PREFIX):]
            if not name:
                raise MetastoreConnectionError(f"In-memory database needs a name: {connect!r}")
            url = _memory_url(name)
        else:
            url = self._database_url(connect, descriptor)

        try:
            return create_engine(url, poolclass=NullPool)
        except (ArgumentError, ImportError) as exc:
            raise MetastoreConnectionError(
                f"Cannot load database driver {url.drivername!r}: {exc}"
            ) from exc

    def _schema_for(self, descriptor: Mapping[str, str], engine: Engine) -> JobSchema:
        schema = get_value(descriptor, META_SCHEMA_KEY)
        # SQLite only knows attached databases, not schemas
        if schema is not None and engine.dialect.name == "sqlite":
            logger.warning("Ignoring metastore schema on SQLite", schema=schema)
            schema = None

        return JobSchema(
            root_table=get_value(descriptor, META_ROOT_TABLE_KEY) or DEFAULT_ROOT_TABLE,
            sessions_table=get_value(descriptor, META_SESSIONS_TABLE_KEY) or DEFAULT_SESSIONS_TABLE,
            schema=schema,
        )

    def _connect(self, descriptor: Mapping[str, str]) -> tuple[Engine, Connection]:
        engine = self._create_engine(descriptor)
        try:
            conn = engine.connect()
        except DBAPIError as exc:
            engine.dispose()
            raise MetastoreConnectionError(
                f"Cannot connect to metastore: {exc.orig or exc}"
            ) from exc
        return engine, conn

    def open(self, descriptor: Mapping[str, str]) -> None:
        """Connect and create or validate the metastore tables."""
        if self._conn is not None:
            raise RuntimeError("Storage already open. Call close() first.")

        descriptor = freeze_descriptor(descriptor)
        engine, conn = self._connect(descriptor)
        schema = self._schema_for(descriptor, engine)

        try:
            schema.ensure(conn)
        except DBAPIError as exc:
            conn.close()
            engine.dispose()
            raise SchemaError(f"Cannot prepare metastore tables: {exc.orig or exc}") from exc
        except Exception:
            conn.close()
            engine.dispose()
            raise

        self._descriptor = descriptor
        self._engine = engine
        self._conn = conn
        self._schema = schema

        logger.info(
            "Job storage opened",
            backend=self.name,
            database=engine.url.render_as_string(hide_password=True),
        )

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    def close(self) -> None:
        """Close the connection and dispose of its engine."""
        if self._conn is None:
            return

        self._conn.close()
        if self._engine is not None:
            self._engine.dispose()

        self._conn = None
        self._engine = None
        self._schema = None
        self._descriptor = None
        logger.info("Job storage closed", backend=self.name)

    def _connection(self) -> tuple[Connection, JobSchema]:
        if self._conn is None or self._schema is None:
            raise NotOpenError("Storage not open. Call open() first.")
        return self._conn, self._schema

    def _job_id(self, conn: Connection, schema: JobSchema, job_name: str) -> Optional[int]:
        root = schema.root
        return conn.execute(
            select(root.c.job_id).where(root.c.job_name == job_name)
        ).scalar_one_or_none()

    def _insert_rows(self, conn: Connection, schema: JobSchema, rows: list[PropertyRow]) -> None:
        conn.execute(schema.sessions.insert(), [row._asdict() for row in rows])

    def _delete_rows(self, conn: Connection, schema: JobSchema, job_name: str) -> None:
        sessions = schema.sessions
        conn.execute(sessions.delete().where(sessions.c.job_name == job_name))

    def create(self, job_name: str, record: JobRecord) -> None:
        """Insert the registry row and all property rows in one transaction."""
        check_job_name(job_name)
        conn, schema = self._connection()
        rows = encode_job(job_name, record)
        now = _utcnow()

        try:
            with conn.begin():
                if self._job_id(conn, schema, job_name) is not None:
                    raise JobExistsError(job_name)
                conn.execute(
                    schema.root.insert().values(
                        job_name=job_name,
                        storage_version=STORAGE_VERSION,
                        created_at=now,
                        updated_at=now,
                    )
                )
                # Property rows only ever exist for registered jobs
                self._delete_rows(conn, schema, job_name)
                self._insert_rows(conn, schema, rows)
        except IntegrityError as exc:
            # Lost a race against another session creating the same name
            raise JobExistsError(job_name) from exc

        logger.info("Job created", job_name=job_name, tool=record.tool)

    def read(self, job_name: str) -> JobRecord:
        """Load and decode every property row for the job."""
        check_job_name(job_name)
        conn, schema = self._connection()
        root, sessions = schema.root, schema.sessions

        with conn.begin():
            version = conn.execute(
                select(root.c.storage_version).where(root.c.job_name == job_name)
            ).first()
            if version is None:
                raise JobNotFoundError(job_name)
            result = conn.execute(
                select(
                    sessions.c.job_name,
                    sessions.c.prop_name,
                    sessions.c.prop_val,
                    sessions.c.prop_class,
                    sessions.c.prop_index,
                ).where(sessions.c.job_name == job_name)
            )
            rows = [PropertyRow(*row) for row in result]

        if version.storage_version != STORAGE_VERSION:
            raise CorruptRecordError(
                job_name, f"unsupported storage version {version.storage_version}"
            )
        return decode_job(job_name, rows)

    def update(self, job_name: str, record: JobRecord) -> None:
        """Replace every property row for the job; creation order is kept."""
        check_job_name(job_name)
        conn, schema = self._connection()
        rows = encode_job(job_name, record)
        root = schema.root

        with conn.begin():
            job_id = self._job_id(conn, schema, job_name)
            if job_id is None:
                raise JobNotFoundError(job_name)
            self._delete_rows(conn, schema, job_name)
            self._insert_rows(conn, schema, rows)
            conn.execute(
                root.update()
                .where(root.c.job_id == job_id)
                .values(storage_version=STORAGE_VERSION, updated_at=_utcnow())
            )

        logger.info("Job updated", job_name=job_name, tool=record.tool)

    def delete(self, job_name: str) -> None:
        check_job_name(job_name)
        conn, schema = self._connection()
        root = schema.root

        with conn.begin():
            job_id = self._job_id(conn, schema, job_name)
            if job_id is None:
                raise JobNotFoundError(job_name)
            self._delete_rows(conn, schema, job_name)
            conn.execute(root.delete().where(root.c.job_id == job_id))

        logger.info("Job deleted", job_name=job_name)

    def list_jobs(self) -> list[str]:
        conn, schema = self._connection()
        root = schema.root

        with conn.begin():
            result = conn.execute(select(root.c.job_name).order_by(root.c.job_id))
            return list(result.scalars())

    def reset_schema(self) -> None:
        """Drop and recreate both tables on the open connection."""
        conn, schema = self._connection()
        schema.drop(conn)
        schema.ensure(conn)

    def drop_schema(self, descriptor: Mapping[str, str]) -> list[str]:
        """
        Drop the metastore tables named by the descriptor.

        Uses a short-lived connection of its own, so the storage does not
        need to be open. Intended for test harnesses and resets.
        """
        descriptor = freeze_descriptor(descriptor)
        engine, conn = self._connect(descriptor)
        try:
            return self._schema_for(descriptor, engine).drop(conn)
        finally:
            conn.close()
            engine.dispose()

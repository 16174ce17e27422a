"""
Auto-connect storage backend.

A private, per-user metastore that needs no connect string: jobs are kept
in a SQLite file under the user's home directory unless the descriptor
points somewhere else.
"""

from collections.abc import Mapping
from pathlib import Path

from jobstore.descriptor import AUTO_CONNECT_KEY, AUTO_CONNECT_URL_KEY, get_value
from jobstore.errors import MetastoreConnectionError
from jobstore.logging import get_logger
from jobstore.storage.sql import SqlJobStorage


logger = get_logger(__name__)


DEFAULT_AUTO_CONNECT_PATH = "~/.jobstore/metastore.db"


class AutoJobStorage(SqlJobStorage):
    """
    Job storage in a local database chosen automatically.

    Accepts descriptors carrying the auto-connect key unless it is
    explicitly set to ``false``. Ranked after SqlJobStorage, so an
    explicit connect string always wins.
    """

    name = "auto"

    @classmethod
    def can_accept(cls, descriptor: Mapping[str, str]) -> bool:
        value = descriptor.get(AUTO_CONNECT_KEY)
        return value is not None and value.strip().lower() != "false"

    def _connect_string(self, descriptor: Mapping[str, str]) -> str:
        url = get_value(descriptor, AUTO_CONNECT_URL_KEY)
        if url is not None:
            return url

        path = Path(DEFAULT_AUTO_CONNECT_PATH).expanduser()
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise MetastoreConnectionError(
                f"Cannot create metastore directory {path.parent}: {exc}"
            ) from exc

        logger.debug("Using default auto-connect metastore", path=str(path))
        return f"sqlite:///{path}"

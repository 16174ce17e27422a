"""
Storage abstraction layer.

Provides pluggable backends for persisting named job definitions.

Supported backends (in selection order):
- SQL: any SQLAlchemy-supported database, or a named in-memory database
- Auto: private per-user SQLite metastore
"""

from jobstore.storage.auto import AutoJobStorage
from jobstore.storage.base import BaseJobStorage
from jobstore.storage.factory import (
    JOB_STORAGE_BACKENDS,
    create_job_storage,
    drop_schema,
    get_job_storage,
    get_storage_backend,
)
from jobstore.storage.sql import SqlJobStorage, dispose_memory_database


__all__ = [
    "AutoJobStorage",
    "BaseJobStorage",
    "JOB_STORAGE_BACKENDS",
    "SqlJobStorage",
    "create_job_storage",
    "dispose_memory_database",
    "drop_schema",
    "get_job_storage",
    "get_storage_backend",
]

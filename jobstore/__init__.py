# jobstore - persistent store for named, reusable job definitions
#
# Modules:
# - config: Application settings
# - logging: Structured logging
# - descriptor: Configuration descriptor keys and helpers
# - models: Job records and their option bags
# - errors: Metastore error taxonomy
# - storage: Pluggable job storage backends

from jobstore.errors import (
    CorruptRecordError,
    JobExistsError,
    JobNotFoundError,
    MetastoreConnectionError,
    MetastoreError,
    NoBackendFoundError,
    NotOpenError,
    SchemaError,
)
from jobstore.models import FieldKind, JobOptions, JobRecord, OptionField

__all__ = [
    "CorruptRecordError",
    "FieldKind",
    "JobExistsError",
    "JobNotFoundError",
    "JobOptions",
    "JobRecord",
    "MetastoreConnectionError",
    "MetastoreError",
    "NoBackendFoundError",
    "NotOpenError",
    "OptionField",
    "SchemaError",
]

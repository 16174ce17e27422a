"""
Metastore error taxonomy.

Every failure the metastore reports is a distinct, catchable subclass of
MetastoreError so callers can tell "does not exist" from "already exists"
from "storage unreachable".
"""


class MetastoreError(Exception):
    """Base class for all metastore errors."""


class NoBackendFoundError(MetastoreError):
    """No registered storage backend accepts the given descriptor."""


class MetastoreConnectionError(MetastoreError):
    """The backing database could not be reached or authenticated against."""


class SchemaError(MetastoreError):
    """Existing metastore tables are not structurally compatible."""


class NotOpenError(MetastoreError, RuntimeError):
    """An operation was attempted on a storage that is not open."""


class JobExistsError(MetastoreError):
    """A job with the requested name is already stored."""

    def __init__(self, job_name: str):
        super().__init__(f"Job already exists: {job_name!r}")
        self.job_name = job_name


class JobNotFoundError(MetastoreError, LookupError):
    """No job with the requested name is stored."""

    def __init__(self, job_name: str):
        super().__init__(f"No such job: {job_name!r}")
        self.job_name = job_name


class CorruptRecordError(MetastoreError):
    """Stored rows for a job cannot be decoded into a record."""

    def __init__(self, job_name: str, reason: str):
        super().__init__(f"Corrupt record for job {job_name!r}: {reason}")
        self.job_name = job_name
        self.reason = reason

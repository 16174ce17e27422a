"""
Abstract base class for job storage backends.

This module defines the contract that all storage implementations must
follow, enabling the factory to pick a backend from a descriptor at runtime.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterator, Mapping
from contextlib import contextmanager

from jobstore.models import JobRecord


def check_job_name(job_name: str) -> None:
    """Reject names that cannot identify a job."""
    if not isinstance(job_name, str) or not job_name:
        raise ValueError(f"Job name must be a non-empty string: {job_name!r}")


class BaseJobStorage(ABC):
    """
    Abstract base class for job storage.

    Lifecycle: instances start closed; open() binds one connection and
    ensures the schema exists; close() releases it. A closed storage may be
    opened again and behaves as a fresh session.

    Instances are not safe for concurrent use; use one storage per worker.
    """

    # Short identifier used in logs
    name: str = "base"

    @classmethod
    @abstractmethod
    def can_accept(cls, descriptor: Mapping[str, str]) -> bool:
        """
        Whether this backend can handle the descriptor.

        Inspects keys only; never opens a connection or validates values.
        """
        pass

    @abstractmethod
    def open(self, descriptor: Mapping[str, str]) -> None:
        """
        Connect and make sure the metastore schema exists.

        Raises:
            MetastoreConnectionError: if the database cannot be reached
            SchemaError: if existing tables are incompatible
        """
        pass

    @property
    @abstractmethod
    def is_open(self) -> bool:
        pass

    @abstractmethod
    def close(self) -> None:
        """Release the connection. Safe to call on a closed storage."""
        pass

    @abstractmethod
    def create(self, job_name: str, record: JobRecord) -> None:
        """
        Store a new job.

        Raises:
            JobExistsError: if a job with this name is already stored
        """
        pass

    @abstractmethod
    def read(self, job_name: str) -> JobRecord:
        """
        Load a job.

        Raises:
            JobNotFoundError: if no such job is stored
            CorruptRecordError: if the stored rows cannot be decoded
        """
        pass

    @abstractmethod
    def update(self, job_name: str, record: JobRecord) -> None:
        """
        Replace a stored job with a new full snapshot.

        Raises:
            JobNotFoundError: if no such job is stored
        """
        pass

    @abstractmethod
    def delete(self, job_name: str) -> None:
        """
        Remove a stored job.

        Raises:
            JobNotFoundError: if no such job is stored
        """
        pass

    @abstractmethod
    def list_jobs(self) -> list[str]:
        """Names of all stored jobs, in creation order."""
        pass

    @abstractmethod
    def reset_schema(self) -> None:
        """Drop and recreate the metastore tables, discarding every job."""
        pass

    @abstractmethod
    def drop_schema(self, descriptor: Mapping[str, str]) -> list[str]:
        """Drop the metastore tables using a connection of its own."""
        pass

    @contextmanager
    def session(self, descriptor: Mapping[str, str]) -> Iterator["BaseJobStorage"]:
        """
        Open for the duration of a with-block.

        Usage:
            with get_job_storage(descriptor).session(descriptor) as storage:
                storage.create("nightly", record)
        """
        self.open(descriptor)
        try:
            yield self
        finally:
            self.close()

"""
Storage factory for creating job storage instances.

Backends are tried in a fixed priority order; the first one whose
can_accept() approves the descriptor is instantiated and returned
unopened.
"""

from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING

from jobstore.errors import NoBackendFoundError
from jobstore.logging import get_logger
from jobstore.storage.auto import AutoJobStorage
from jobstore.storage.base import BaseJobStorage
from jobstore.storage.sql import SqlJobStorage


if TYPE_CHECKING:
    from jobstore.config import Settings


logger = get_logger(__name__)


# Priority order: first match wins
JOB_STORAGE_BACKENDS: tuple[type[BaseJobStorage], ...] = (
    SqlJobStorage,
    AutoJobStorage,
)


def get_storage_backend(
    descriptor: Mapping[str, str],
    backends: Sequence[type[BaseJobStorage]] = JOB_STORAGE_BACKENDS,
) -> type[BaseJobStorage]:
    """
    Determine which storage backend handles a descriptor.
    
    Args:
        descriptor: Configuration descriptor
        backends: Candidate backends in priority order
        
    Returns:
        The first backend class that accepts the descriptor
    """
    for backend in backends:
        if backend.can_accept(descriptor):
            return backend
    
    raise NoBackendFoundError(
        f"No job storage backend accepts descriptor with keys {sorted(descriptor)}. "
        f"Supported backends: {[b.name for b in backends]}"
    )


def get_job_storage(
    descriptor: Mapping[str, str],
    backends: Sequence[type[BaseJobStorage]] = JOB_STORAGE_BACKENDS,
) -> BaseJobStorage:
    """
    Create a job storage instance for a descriptor.
    
    Args:
        descriptor: Configuration descriptor
        backends: Candidate backends in priority order
        
    Returns:
        Storage instance (not yet opened)
    """
    backend = get_storage_backend(descriptor, backends)
    logger.info("Creating job storage", backend=backend.name)
    return backend()


def create_job_storage(settings: "Settings") -> BaseJobStorage:
    """Create a job storage instance from application settings."""
    return get_job_storage(settings.to_descriptor())


def drop_schema(descriptor: Mapping[str, str]) -> list[str]:
    """
    Drop the metastore tables a descriptor points at.
    
    Test and reset support only; never called implicitly.
    
    Returns:
        Names of the dropped tables
    """
    storage = get_job_storage(descriptor)
    return storage.drop_schema(descriptor)

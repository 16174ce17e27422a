"""
Metastore setup script.

Creates the metastore tables for the configured backend.
Run this once before pointing schedulers at a shared metastore.

Usage:
    python -m scripts.setup_metastore [--reset]

--reset drops the existing metastore tables (and every stored job) first.
"""

import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from jobstore.config import settings
from jobstore.descriptor import redacted
from jobstore.logging import configure_logging, get_logger
from jobstore.storage import drop_schema, get_job_storage


logger = get_logger(__name__)


def setup_metastore(reset: bool = False) -> list[str]:
    """Create (optionally recreate) the metastore tables and list stored jobs."""
    descriptor = settings.to_descriptor()
    logger.info("Setting up metastore", descriptor=redacted(descriptor))
    
    if reset:
        dropped = drop_schema(descriptor)
        logger.info("Metastore reset", dropped=dropped)
    
    storage = get_job_storage(descriptor)
    with storage.session(descriptor):
        jobs = storage.list_jobs()
    
    logger.info("Metastore setup complete", jobs=len(jobs))
    return jobs


if __name__ == "__main__":
    configure_logging()
    setup_metastore(reset="--reset" in sys.argv[1:])

"""
Pytest configuration and fixtures.
"""

import os
import sys
import uuid
from pathlib import Path

import pytest

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

# Set test environment
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("METASTORE_AUTOCONNECT", "false")

from jobstore.descriptor import build_descriptor  # noqa: E402
from jobstore.models import JobOptions, JobRecord  # noqa: E402
from jobstore.storage import dispose_memory_database, drop_schema, get_job_storage  # noqa: E402


@pytest.fixture
def memory_descriptor():
    """Descriptor for a private in-memory database, discarded after the test."""
    name = f"test-{uuid.uuid4().hex}"
    yield build_descriptor(f"mem:{name}", username="SA", password="", driver="x")
    dispose_memory_database(name)


@pytest.fixture
def file_descriptor(tmp_path):
    """Descriptor for a SQLite file database."""
    return build_descriptor(
        f"sqlite:///{tmp_path / 'metastore.db'}",
        username="SA",
        password="",
        driver="pysqlite",
    )


@pytest.fixture(params=["memory", "file"])
def descriptor(request):
    """Run a test against both the in-memory and the file-backed database."""
    return request.getfixturevalue(f"{request.param}_descriptor")


@pytest.fixture
def storage(descriptor):
    """An open storage over a freshly reset metastore."""
    drop_schema(descriptor)
    job_storage = get_job_storage(descriptor)
    job_storage.open(descriptor)
    yield job_storage
    job_storage.close()


def make_job(table: str = "abcd", tool: str = "import") -> JobRecord:
    """A typical import job for the given table."""
    options = JobOptions()
    options.set_string("table", table)
    options.set_string("connect", "postgresql://db.example.com/sales")
    options.set_int("num_mappers", 4)
    options.set_bool("direct", False)
    options.set_array("extra_args", ["-schema", "test"])
    return JobRecord(tool=tool, options=options)

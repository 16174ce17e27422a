"""
Configuration Descriptor keys and helpers.

A descriptor is a plain mapping of string keys to string values that fully
parameterizes one storage backend. Keys outside the ones below are
backend-specific extensions and are tolerated.
"""

from collections.abc import Mapping
from types import MappingProxyType
from typing import Optional


META_CONNECT_KEY = "metastore.connect.string"
META_USERNAME_KEY = "metastore.username"
META_PASSWORD_KEY = "metastore.password"
META_DRIVER_KEY = "metastore.driver"

# Extension keys
META_SCHEMA_KEY = "metastore.schema"
META_ROOT_TABLE_KEY = "metastore.root.table"
META_SESSIONS_TABLE_KEY = "metastore.sessions.table"

AUTO_CONNECT_KEY = "metastore.autoconnect.enable"
AUTO_CONNECT_URL_KEY = "metastore.autoconnect.url"

# Values that must never reach a log line
SECRET_KEYS = frozenset({META_PASSWORD_KEY})


def build_descriptor(
    connect: str,
    username: str = "",
    password: str = "",
    driver: str = "",
    **extensions: str,
) -> dict[str, str]:
    """
    Build a descriptor for the relational backend.
    
    Extension keys are passed with dots replaced by double underscores,
    e.g. ``metastore__schema="jobs"``.
    """
    descriptor = {
        META_CONNECT_KEY: connect,
        META_USERNAME_KEY: username,
        META_PASSWORD_KEY: password,
        META_DRIVER_KEY: driver,
    }
    for key, value in extensions.items():
        descriptor[key.replace("__", ".")] = value
    return descriptor


def freeze_descriptor(descriptor: Mapping[str, str]) -> Mapping[str, str]:
    """Validate a descriptor and return a read-only copy of it."""
    if not isinstance(descriptor, Mapping):
        raise TypeError(f"Descriptor must be a mapping, got {type(descriptor).__name__}")
    for key, value in descriptor.items():
        if not isinstance(key, str) or not isinstance(value, str):
            raise TypeError(f"Descriptor entries must be strings: {key!r}={value!r}")
    return MappingProxyType(dict(descriptor))


def get_value(descriptor: Mapping[str, str], key: str) -> Optional[str]:
    """Return the value for key, treating empty strings as absent."""
    value = descriptor.get(key)
    return value if value else None


def redacted(descriptor: Mapping[str, str]) -> dict[str, str]:
    """Copy of the descriptor that is safe to log."""
    return {
        key: ("***" if key in SECRET_KEYS else value)
        for key, value in descriptor.items()
    }

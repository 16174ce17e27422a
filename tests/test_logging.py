"""
Tests for logging setup and credential masking.
"""

import pytest
import structlog

from jobstore.descriptor import META_CONNECT_KEY, META_PASSWORD_KEY, build_descriptor
from jobstore.logging import MASK, configure_logging, get_logger, redact_secrets


@pytest.fixture
def reset_structlog():
    yield
    structlog.reset_defaults()


def test_top_level_password_is_masked():
    event = redact_secrets(None, "info", {"event": "connect", "password": "hunter2", "user": "SA"})
    assert event == {"event": "connect", "password": MASK, "user": "SA"}


def test_descriptor_password_is_masked():
    descriptor = build_descriptor("postgresql://db/jobs", username="SA", password="hunter2")
    event = redact_secrets(None, "info", {"event": "opening", "descriptor": descriptor})

    assert event["descriptor"][META_PASSWORD_KEY] == MASK
    assert event["descriptor"][META_CONNECT_KEY] == "postgresql://db/jobs"
    assert descriptor[META_PASSWORD_KEY] == "hunter2"


def test_empty_password_is_left_alone():
    """An empty password is not a secret; masking it would hide a config mistake."""
    event = redact_secrets(None, "info", {"event": "connect", META_PASSWORD_KEY: ""})
    assert event[META_PASSWORD_KEY] == ""


def test_configured_output_never_shows_password(capsys, reset_structlog):
    configure_logging("INFO")
    get_logger("jobstore.test", job_name="nightly").info("Connecting", password="hunter2")

    err = capsys.readouterr().err
    assert "Connecting" in err
    assert "nightly" in err
    assert "hunter2" not in err


def test_level_filters_events(capsys, reset_structlog):
    configure_logging("WARNING")
    logger = get_logger("jobstore.test")
    logger.info("quiet")
    logger.warning("loud")

    err = capsys.readouterr().err
    assert "quiet" not in err
    assert "loud" in err

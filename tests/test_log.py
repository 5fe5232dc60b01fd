"""Tests for structlog configuration."""

import pytest
import structlog

from lendtrack.log import configure_logging


@pytest.fixture(autouse=True)
def restore_structlog():
    yield
    structlog.reset_defaults()


def test_events_below_level_are_dropped(capsys):
    configure_logging("WARNING")
    logger = structlog.get_logger("lendtrack.test")

    logger.info("loan.borrowed", loan_id=1)
    logger.warning("transaction.retries_exhausted", attempts=3)

    err = capsys.readouterr().err
    assert "loan.borrowed" not in err
    assert "transaction.retries_exhausted" in err
    assert "attempts=3" in err


def test_unknown_level_falls_back_to_warning(capsys):
    configure_logging("chatty")
    logger = structlog.get_logger("lendtrack.test")

    logger.info("loan.returned")
    logger.error("transaction.conflict")

    err = capsys.readouterr().err
    assert "loan.returned" not in err
    assert "transaction.conflict" in err

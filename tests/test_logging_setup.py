import io
import logging

import pytest

from ovni_import import logging_setup
from ovni_import.logging_setup import (
    LOG_LEVEL_ENV_VAR,
    PACKAGE_LOGGER_NAME,
    configure_logging,
    parse_level,
)


@pytest.fixture
def package_logger(monkeypatch):
    """Give configure_logging a fresh start and restore the logger afterwards."""
    logger = logging.getLogger(PACKAGE_LOGGER_NAME)
    saved = (list(logger.handlers), logger.level, logger.propagate)
    monkeypatch.setattr(logging_setup, "_configured", False)
    yield logger
    logger.handlers[:] = saved[0]
    logger.setLevel(saved[1])
    logger.propagate = saved[2]


@pytest.mark.parametrize(
    "value, expected",
    [("info", logging.INFO), ("WARNING", logging.WARNING), (" debug ", logging.DEBUG), ("15", 15), (40, 40)],
)
def test_parse_level(value, expected):
    assert parse_level(value) == expected


def test_parse_level_from_environment(monkeypatch):
    monkeypatch.setenv(LOG_LEVEL_ENV_VAR, "debug")
    assert parse_level(None) == logging.DEBUG


def test_parse_level_default(monkeypatch):
    monkeypatch.delenv(LOG_LEVEL_ENV_VAR, raising=False)
    assert parse_level(None) == logging.WARNING


def test_parse_level_unknown():
    with pytest.raises(ValueError):
        parse_level("bavard")


def test_configure_logging_attaches_one_handler(package_logger):
    stream = io.StringIO()
    configure_logging("INFO", stream=stream)
    configure_logging("DEBUG", stream=stream)

    stream_handlers = [
        h for h in package_logger.handlers if isinstance(h, logging.StreamHandler)
    ]
    assert len(stream_handlers) == 1
    assert package_logger.level == logging.INFO

    logging.getLogger("ovni_import.pipeline").info("Ignored: %s", "asbl.html")
    logging.getLogger("ovni_import.pipeline").debug("not shown")
    assert stream.getvalue() == "INFO ovni_import.pipeline: Ignored: asbl.html\n"

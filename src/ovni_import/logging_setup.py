# O.V.N.I Import - HTML ledger import pipeline for O.V.N.I ASBL bookkeeping
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Centralized logging configuration for the ``ovni_import`` package.

Library modules only call ``logging.getLogger(__name__)`` and never attach
handlers. Entry points (the CLI) call ``configure_logging`` once at startup
to attach a single stream handler to the package logger.
"""

import logging
import os
import sys
from typing import IO, Optional, Union

PACKAGE_LOGGER_NAME = "ovni_import"
LOG_LEVEL_ENV_VAR = "OVNI_IMPORT_LOG_LEVEL"

_configured = False

logging.getLogger(PACKAGE_LOGGER_NAME).addHandler(logging.NullHandler())


def parse_level(level: Union[int, str, None]) -> int:
    """
    Resolve a logging level.

    Accepts an int, a level name ("info", "WARNING") or a numeric string.
    When `level` is None, the ``OVNI_IMPORT_LOG_LEVEL`` environment variable
    is used, then WARNING.
    """
    if isinstance(level, int):
        return level
    if isinstance(level, str) and level.strip():
        name = level.strip().upper()
        if name.isdigit():
            return int(name)
        numeric = logging.getLevelName(name)
        if isinstance(numeric, int):
            return numeric
        raise ValueError(f"Unknown log level: {level!r}")
    env_val = os.getenv(LOG_LEVEL_ENV_VAR)
    if env_val:
        return parse_level(env_val)
    return logging.WARNING


def configure_logging(
    level: Union[int, str, None] = None,
    *,
    fmt: Optional[str] = None,
    stream: IO[str] = sys.stderr,
) -> None:
    """Attach one StreamHandler to the package logger (first call only)."""
    global _configured
    if _configured:
        return

    logger = logging.getLogger(PACKAGE_LOGGER_NAME)
    for h in list(logger.handlers):
        if isinstance(h, logging.NullHandler):
            logger.removeHandler(h)

    resolved = parse_level(level)
    handler = logging.StreamHandler(stream)
    handler.setLevel(resolved)
    handler.setFormatter(logging.Formatter(fmt or "%(levelname)s %(name)s: %(message)s"))

    logger.setLevel(resolved)
    logger.addHandler(handler)
    logger.propagate = False

    _configured = True

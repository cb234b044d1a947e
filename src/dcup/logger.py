"""structlog logger shared by every dcup module.

The level is taken from the environment at import time
(``DCUP_LOGGING__LEVEL``, then ``LOG_LEVEL``) so a broken config.toml can
still be reported. Once Settings load, the CLI calls :func:`set_level` with
``[logging].level``. Output goes to stderr; stdout stays free for the
addresses the console editor prints.
"""

from __future__ import annotations

import logging
import os
import sys

import structlog


def _initial_level() -> int:
    name = os.environ.get("DCUP_LOGGING__LEVEL") or os.environ.get("LOG_LEVEL", "INFO")
    return getattr(logging, name.upper(), logging.INFO)


def _setup_logging() -> structlog.stdlib.BoundLogger:
    # Root logger first so filter_by_level sees the level
    logging.basicConfig(level=_initial_level(), format="%(message)s", stream=sys.stderr)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    return structlog.get_logger("dcup")


logger = _setup_logging()


def set_level(level_name: str) -> None:
    """Switch to ``[logging].level``; unknown names leave the level alone."""
    level = getattr(logging, level_name.upper(), None)
    if isinstance(level, int):
        logging.getLogger().setLevel(level)


def _uncaught_exception_handler(
    exc_type: type[BaseException],
    exc_value: BaseException,
    exc_tb: object,
) -> None:
    if issubclass(exc_type, KeyboardInterrupt):
        sys.__excepthook__(exc_type, exc_value, exc_tb)  # type: ignore[arg-type]
        return
    logger.critical("dcup crashed", exc_info=(exc_type, exc_value, exc_tb))
    sys.exit(1)


sys.excepthook = _uncaught_exception_handler

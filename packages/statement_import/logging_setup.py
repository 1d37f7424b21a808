"""Logging for ``statement_import``: one configurable handler on the package logger.

Library modules call ``get_logger("statement_import.<module>")`` and never add
handlers; until an entrypoint calls :func:`configure_logging`, records go to a
``NullHandler``. The CLI configures once at startup. The level comes from the
argument, then ``STATEMENT_IMPORT_LOG_LEVEL``, then ``INFO``.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import IO

PACKAGE_LOGGER = "statement_import"
LEVEL_ENV_VAR = "STATEMENT_IMPORT_LOG_LEVEL"
DEFAULT_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"

_handler: logging.Handler | None = None


def _parse_level(level: int | str | None) -> int:
    """Resolve an int, a level name or a numeric string; unknown names mean INFO."""

    if level is None:
        level = os.getenv(LEVEL_ENV_VAR) or logging.INFO
    if isinstance(level, int):
        return level
    name = level.strip().upper()
    if name.isdigit():
        return int(name)
    return logging.getLevelNamesMapping().get(name, logging.INFO)


def configure_logging(
    level: int | str | None = None,
    *,
    fmt: str | None = None,
    stream: IO[str] | None = None,
    force: bool = False,
) -> logging.Logger:
    """Attach a ``StreamHandler`` to the package logger.

    Repeated calls are no-ops unless ``force`` is set, in which case the
    previous handler is replaced. ``stream`` defaults to the current
    ``sys.stderr``. Propagation to the root logger is turned off so host
    applications do not see each record twice.
    """

    global _handler
    pkg = logging.getLogger(PACKAGE_LOGGER)
    if _handler is not None and not force:
        return pkg

    for h in list(pkg.handlers):
        if h is _handler or isinstance(h, logging.NullHandler):
            pkg.removeHandler(h)

    resolved = _parse_level(level)
    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(logging.Formatter(fmt or DEFAULT_FORMAT))
    handler.setLevel(resolved)
    pkg.addHandler(handler)
    pkg.setLevel(resolved)
    pkg.propagate = False
    _handler = handler
    return pkg


def get_logger(name: str) -> logging.Logger:
    pkg = logging.getLogger(PACKAGE_LOGGER)
    if _handler is None and not pkg.handlers:
        pkg.addHandler(logging.NullHandler())
    return logging.getLogger(name)


__all__ = ["configure_logging", "get_logger"]

"""Root logger setup."""

from __future__ import annotations

import logging

from gallery.core.config import Settings


def configure_logging(settings: Settings) -> None:
    level = logging.DEBUG if settings.debug else logging.getLevelName(settings.logging.level.upper())
    if not isinstance(level, int):
        level = logging.INFO
    logging.basicConfig(level=level, format=settings.logging.format)
    # SQL echo is controlled by the database settings
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


__all__ = ["configure_logging"]

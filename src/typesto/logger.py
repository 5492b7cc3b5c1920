"""Logging setup."""

from __future__ import annotations

import logging
from pathlib import Path

from .config import LoggingSettings


def configure_logging(settings: LoggingSettings | None = None) -> None:
    """Configure root logging from settings; safe to call more than once."""
    settings = settings or LoggingSettings()
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if settings.file:
        Path(settings.file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(settings.file))

    logging.basicConfig(
        level=settings.level.upper(),
        format=settings.format,
        handlers=handlers,
        force=True,
    )

"""structlog setup for the API server and command-line use."""

from __future__ import annotations

import logging

import structlog


def configure_logging(level: int | str = logging.INFO, json_output: bool = False) -> None:
    """Configure structlog processors and the minimum level.

    Args:
        level: A logging level number or name such as "DEBUG"
        json_output: Render events as JSON lines instead of console output
    """
    if isinstance(level, str):
        level = logging.getLevelNamesMapping()[level.upper()]
    renderer = (
        structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
    )


__all__ = ["configure_logging"]

"""
bonding_sim.utils.logger - Structured Logging

Configures loguru sinks for the CLI: colour-coded stderr plus an
optional rotating file (JSON when requested). Library modules only
emit through ``loguru.logger`` and never add sinks themselves.

Every record carries ``chart`` and ``seed`` extras. ChartAssembler
binds them with ``logger.contextualize`` while a chart is generated;
outside a chart they read ``-``.

Dependencies: loguru
"""

from __future__ import annotations

import sys
from typing import Optional

from loguru import logger


def get_logger(
    name: str = "bonding_sim",
    level: str = "INFO",
    log_file: Optional[str] = None,
    json_format: bool = False,
    rotation: str = "10 MB",
    retention: str = "7 days",
) -> "logger":
    """
    Configure and return the loguru logger.

    Parameters
    ----------
    name : str
        Shown in the log prefix.
    level : str
        Minimum level: DEBUG, INFO, WARNING, ERROR, CRITICAL.
    log_file : str, optional
        Also log to this file when given.
    json_format : bool
        Serialize file records as JSON.
    rotation : str
        File rotation policy.
    retention : str
        How long rotated files are kept.

    Returns
    -------
    loguru.Logger
    """
    logger.remove()
    logger.configure(extra={"chart": "-", "seed": "-"})

    fmt = (
        "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
        "<level>{level: <8}</level> | "
        "<magenta>{extra[chart]}</magenta> seed={extra[seed]} | "
        f"<cyan>{name}</cyan>:<cyan>{{function}}</cyan>:<cyan>{{line}}</cyan> | "
        "<level>{message}</level>"
    )
    logger.add(sys.stderr, format=fmt, level=level, colorize=True)

    if log_file:
        if json_format:
            logger.add(
                log_file,
                serialize=True,
                rotation=rotation,
                retention=retention,
                level=level,
            )
        else:
            logger.add(
                log_file,
                format=fmt,
                rotation=rotation,
                retention=retention,
                level=level,
            )

    return logger

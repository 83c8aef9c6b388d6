"""
Structured logging for openrapid.

Every event is a structlog key/value record. While a program is generated
the module and robot names are bound as context variables, so warnings
raised deep in the solvers (unreachable targets, axis values outside their
limits) name the program they belong to without passing it around.

Usage::

    from openrapid.core.logging import configure_logging, get_logger

    configure_logging(json_output=True)
    logger = get_logger(__name__)
    with generation_context("MainModule", "IRB2600-12/1.85"):
        logger.warning("target_not_reachable", target="p1")
"""

import logging
import sys
from contextlib import contextmanager
from typing import Iterator, Optional

import structlog

# Libraries that log mesh loading and geometry details at INFO.
NOISY_LOGGERS = ("trimesh", "compas")


def configure_logging(
    level: str = "INFO",
    json_output: bool = False,
    log_file: Optional[str] = None,
) -> None:
    """
    Route structlog events through the standard library root logger.

    Args:
        level: Minimum level of openrapid events
        json_output: One JSON object per line instead of the console renderer
        log_file: Also append the events to this file
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(format="%(message)s", level=log_level, handlers=handlers, force=True)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    renderer: structlog.types.Processor = (
        structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer()
    )
    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
    )
    for handler in logging.root.handlers:
        handler.setFormatter(formatter)


@contextmanager
def generation_context(module: str, robot: str) -> Iterator[None]:
    """Bind the program module and robot name to every event logged inside the block."""
    with structlog.contextvars.bound_contextvars(module=module, robot=robot):
        yield


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)

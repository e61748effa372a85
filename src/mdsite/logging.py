"""Log output for mdsite: stdlib loggers rendered by structlog on stderr.

Modules log through `logging.getLogger(__name__)`; the handler installed
here formats those records as console lines, or JSON lines with --log-json.
"""

import logging
import sys

import structlog


PACKAGE_LOGGER = "mdsite"


def configure_logging(*, verbose: bool = False, log_json: bool = False) -> None:
    """Route stdlib log records through a structlog ProcessorFormatter.

    Args:
        verbose: DEBUG for mdsite loggers; otherwise WARNING, which still shows per-document failures.
        log_json: JSON lines instead of the console renderer.
    """
    pre_chain: list[structlog.types.Processor] = [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    if log_json:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=pre_chain,
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
    ))

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(logging.WARNING)

    logging.getLogger(PACKAGE_LOGGER).setLevel(logging.DEBUG if verbose else logging.WARNING)

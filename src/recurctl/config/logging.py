"""structlog setup shared by every recurctl entry point.

All records, from structlog loggers and plain ``logging`` loggers alike,
go through one stderr handler. The renderer is either a console renderer
(colored on a TTY) or JSON lines (``--log-json``).

``watch`` runs for hours and logs its lifecycle events at INFO; one-shot
commands stay at WARNING unless ``--verbose`` is given.
"""

from __future__ import annotations

import logging
import sys

import structlog

# Third-party loggers that are noisy at DEBUG.
QUIET_LOGGERS = ("watchdog",)


def _pre_chain() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]


def _renderer(log_json: bool) -> structlog.types.Processor:
    if log_json:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())


def configure_logging(
    *,
    verbose: bool = False,
    log_json: bool = False,
    level: int | None = None,
) -> None:
    """(Re)configure logging. Safe to call more than once.

    Args:
        verbose: DEBUG for ``recurctl.*`` loggers instead of WARNING.
        log_json: Emit JSON lines instead of console text.
        level: Explicit ``recurctl`` level; takes precedence over *verbose*.
    """
    if level is None:
        level = logging.DEBUG if verbose else logging.WARNING

    pre_chain = _pre_chain()
    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(log_json),
            ],
        )
    )

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(logging.WARNING)

    logging.getLogger("recurctl").setLevel(level)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

"""structlog setup for assistant runs: console in dev, JSON lines in prod."""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager

import structlog

from loco_assistant.config import get_settings

_SHARED_PROCESSORS: tuple[structlog.types.Processor, ...] = (
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.StackInfoRenderer(),
)


def _renderer(json_output: bool) -> structlog.types.Processor:
    if json_output:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer()


def configure_logging(level: str, json_output: bool | None = None) -> None:
    """Route stdlib and structlog records through one stderr handler.

    ``json_output=None`` picks JSON when ``APP_ENV`` is ``prod``. Run-scoped
    context bound with :func:`run_context` is merged into every record.
    """
    if json_output is None:
        json_output = get_settings().app_env == "prod"

    structlog.configure(
        processors=[*_SHARED_PROCESSORS, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=list(_SHARED_PROCESSORS),
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(json_output),
            ],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))


@contextmanager
def run_context(**kwargs: object) -> Iterator[None]:
    """Bind key-value pairs to every log line emitted inside one assistant run."""
    with structlog.contextvars.bound_contextvars(**kwargs):
        yield

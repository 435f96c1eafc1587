"""
Structured logging configuration.
Designed for tracing the analytics pipeline without dumping sample arrays.
"""
import logging
import sys
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, Generator, Optional

import structlog
from structlog.types import Processor

from trainlab.core.config import settings


_HANDLER_NAME = "trainlab"


def setup_logging(level: Optional[str] = None, log_format: Optional[str] = None) -> None:
    """
    Route structlog through stdlib logging.

    Args:
        level: Root log level, defaults to settings.LOG_LEVEL
        log_format: "json" or "console", defaults to settings.LOG_FORMAT

    Calling it again replaces the handler installed by the previous call.
    """
    level = (level or settings.LOG_LEVEL).upper()
    log_format = log_format or settings.LOG_FORMAT

    pre_chain: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    renderer: Processor
    if log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(processor=renderer, foreign_pre_chain=pre_chain)
    )

    root = logging.getLogger()
    for existing in [h for h in root.handlers if h.get_name() == _HANDLER_NAME]:
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(getattr(logging, level, logging.INFO))


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)


# ========================================
# Pipeline Stage Tracking
# ========================================

@dataclass
class StageLog:
    """Log entry for a single pipeline stage."""
    stage: str
    context: Dict[str, Any] = field(default_factory=dict)

    start_time: float = 0.0
    end_time: float = 0.0
    duration_ms: float = 0.0

    success: bool = True
    error_type: Optional[str] = None
    error_message: Optional[str] = None


class StageTracker:
    """Tracker for a single pipeline stage."""

    def __init__(
        self,
        logger: structlog.stdlib.BoundLogger,
        enabled: bool,
        stage: str,
        context: Dict[str, Any],
    ):
        self.logger = logger
        self.enabled = enabled
        self.log = StageLog(stage=stage, context=dict(context))

    def start(self) -> None:
        """Mark the start of the stage."""
        self.log.start_time = time.perf_counter()

        if self.enabled:
            self.logger.debug("Stage started", stage=self.log.stage, **self.log.context)

    def note(self, **values: Any) -> None:
        """Attach result details (counts, sizes) to the stage summary."""
        self.log.context.update(values)

    def set_error(self, error_type: str, error_message: str) -> None:
        """Set error information."""
        self.log.success = False
        self.log.error_type = error_type
        self.log.error_message = error_message

    def finish(self) -> None:
        """Mark the end of the stage and log summary."""
        self.log.end_time = time.perf_counter()
        self.log.duration_ms = (self.log.end_time - self.log.start_time) * 1000

        if not self.log.success:
            self.logger.error(
                "Stage failed",
                stage=self.log.stage,
                duration_ms=round(self.log.duration_ms, 2),
                error_type=self.log.error_type,
                error_message=self.log.error_message,
                **self.log.context,
            )
        elif self.enabled:
            self.logger.debug(
                "Stage completed",
                stage=self.log.stage,
                duration_ms=round(self.log.duration_ms, 2),
                **self.log.context,
            )


@contextmanager
def track_computation(
    logger: structlog.stdlib.BoundLogger,
    stage: str,
    **context: Any
) -> Generator[StageTracker, None, None]:
    """
    Time an analytics stage and log its outcome.

    Usage:
        with track_computation(logger, "smoothing", window=11) as stage:
            channels = smooth_channels(records, metrics, 11)
            stage.note(channels=len(channels))
    """
    tracker = StageTracker(
        logger=logger,
        enabled=settings.ANALYTICS_DEBUG_LOG,
        stage=stage,
        context=context,
    )
    tracker.start()
    try:
        yield tracker
    except Exception as e:
        tracker.set_error(type(e).__name__, str(e))
        raise
    finally:
        tracker.finish()

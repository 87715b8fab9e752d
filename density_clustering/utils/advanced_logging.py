"""
Advanced Logging Module

Provides structured logging with:
- structlog configuration (JSON or console rendering, optional rotating file)
- Performance timing context manager
- Clustering progress logging
- Exception logging context manager
"""

import contextlib
import logging
import logging.handlers
import time
from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional

import structlog
from structlog.types import EventDict, Processor

if TYPE_CHECKING:
    from density_clustering.core.progress import Progress


# =============================================================================
# Structured Logging Configuration
# =============================================================================


def configure_logging(
    log_level: str = "INFO",
    log_format: str = "json",
    log_file: Optional[str] = None,
    service_name: str = "density-clustering",
) -> None:
    """
    Configure structured logging with structlog.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Output format ("json" or "console")
        log_file: Optional log file path
        service_name: Service name for log context
    """
    level = getattr(logging, log_level.upper())

    # Configure stdlib logging
    logging.basicConfig(
        format="%(message)s",
        level=level,
    )
    logging.root.setLevel(level)

    # Add file handler if specified
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=100 * 1024 * 1024,  # 100MB
            backupCount=5,
        )
        file_handler.setLevel(level)
        logging.root.addHandler(file_handler)

    processors: list[Processor] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        add_service_context(service_name),
    ]

    if log_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def add_service_context(service_name: str) -> Processor:
    """
    Add service-level context to all log events.

    Args:
        service_name: Service name

    Returns:
        Processor function
    """

    def processor(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
        event_dict["service"] = service_name
        return event_dict

    return processor


def get_logger(name: str) -> structlog.BoundLogger:
    """
    Get a structlog logger.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Bound logger instance
    """
    return structlog.get_logger(name)


# =============================================================================
# Performance Logger
# =============================================================================


class PerformanceLogger:
    """
    Context manager for automatic performance timing and logging.

    Tracks execution time and optional throughput metrics.
    """

    def __init__(
        self,
        operation: str,
        logger: Optional[structlog.BoundLogger] = None,
        log_level: str = "info",
        item_count: Optional[int] = None,
        **extra_context: Any,
    ):
        """
        Initialize performance logger.

        Args:
            operation: Operation name for logging
            logger: Logger instance (creates new if None)
            log_level: Log level for output
            item_count: Number of items processed (for throughput)
            **extra_context: Additional context fields
        """
        self.operation = operation
        self.logger = logger or get_logger(__name__)
        self.log_level = log_level
        self.item_count = item_count
        self.extra_context = extra_context
        self.start_time: Optional[float] = None
        self.end_time: Optional[float] = None

    def __enter__(self) -> "PerformanceLogger":
        """Start timing."""
        self.start_time = time.time()
        self.logger.debug(
            "operation_started",
            operation=self.operation,
            **self.extra_context,
        )
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Stop timing and log results."""
        self.end_time = time.time()
        duration = self.end_time - self.start_time

        log_data = {
            "operation": self.operation,
            "duration_seconds": round(duration, 3),
            **self.extra_context,
        }

        if self.item_count is not None and self.item_count > 0 and duration > 0:
            log_data["item_count"] = self.item_count
            log_data["items_per_second"] = round(self.item_count / duration, 2)

        if exc_type is not None:
            log_data["error"] = str(exc_val)
            log_data["error_type"] = exc_type.__name__
            self.logger.error("operation_failed", **log_data)
        else:
            getattr(self.logger, self.log_level)("operation_completed", **log_data)

    @property
    def elapsed_time(self) -> float:
        """Get elapsed time (even if context not exited)."""
        if self.start_time is None:
            return 0.0
        end = self.end_time or time.time()
        return end - self.start_time


# =============================================================================
# Progress Logger
# =============================================================================


class ProgressLogger:
    """
    Progress callback that logs clustering progress.

    Reduces log spam by only logging every ``log_interval`` processed objects
    while always logging the final update of a run.
    """

    def __init__(
        self,
        log_interval: int = 100,
        logger: Optional[structlog.BoundLogger] = None,
        log_level: str = "info",
    ):
        """
        Initialize progress logger.

        Args:
            log_interval: Log progress every N processed objects
            logger: Logger instance
            log_level: Log level for progress events
        """
        self.log_interval = max(1, log_interval)
        self.logger = logger or get_logger(__name__)
        self.log_level = log_level

        self.start_time = time.time()
        self.last_logged = 0
        self.updates = 0
        self.last_progress: Optional["Progress"] = None

    def __call__(self, progress: "Progress") -> None:
        """Record a progress update from the clustering engine."""
        self.updates += 1
        self.last_progress = progress

        due = progress.processed - self.last_logged >= self.log_interval
        # Final update is logged once even when several updates report it
        finished = progress.processed >= progress.total > self.last_logged

        if due or finished:
            self._log_progress(progress)
            self.last_logged = progress.processed

    def _log_progress(self, progress: "Progress") -> None:
        """Log current progress."""
        elapsed = time.time() - self.start_time
        objects_per_sec = progress.processed / elapsed if elapsed > 0 else 0

        getattr(self.logger, self.log_level)(
            "clustering_progress",
            task=progress.task,
            processed=progress.processed,
            total=progress.total,
            progress_pct=round(progress.percentage, 1),
            clusters=progress.clusters,
            objects_per_second=round(objects_per_sec, 2),
            elapsed_seconds=round(elapsed, 1),
        )


# =============================================================================
# Utility Functions
# =============================================================================


@contextlib.contextmanager
def log_exceptions(
    logger: Optional[structlog.BoundLogger] = None,
    operation: Optional[str] = None,
    reraise: bool = True,
):
    """
    Context manager to automatically log exceptions.

    Args:
        logger: Logger instance
        operation: Operation name for context
        reraise: Whether to reraise exception after logging

    Example:
        with log_exceptions(operation="load_vectors"):
            VectorDatabase.from_file(path)
    """
    log = logger or get_logger(__name__)
    try:
        yield
    except Exception as e:
        log_data = {
            "error": str(e),
            "error_type": type(e).__name__,
        }
        if operation:
            log_data["operation"] = operation

        log.error("exception_caught", **log_data, exc_info=True)

        if reraise:
            raise

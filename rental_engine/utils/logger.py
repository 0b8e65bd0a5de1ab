"""
Logging for the rental availability engine.

Every component logs through ``rental_engine.<component>``; ``setup_logger``
configures the ``rental_engine`` parent once for console (colorized) and
optional file output, and the component loggers propagate to it.
"""
import logging
import sys
from typing import Optional
from colorama import Fore, Style, init
import structlog

# Initialize colorama for cross-platform colored output
init(autoreset=True)

ROOT_LOGGER = "rental_engine"
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def logger_name(component: Optional[str] = None) -> str:
    """Qualified stdlib logger name for a component."""
    if not component or component == ROOT_LOGGER:
        return ROOT_LOGGER
    return f"{ROOT_LOGGER}.{component}"


class ColorizedFormatter(logging.Formatter):
    """Colors the level name; warnings and errors also color the message.

    Formats a copy of the record so handlers later in the chain (the log
    file) still receive plain text.
    """

    LEVEL_COLORS = {
        logging.DEBUG: Fore.CYAN,
        logging.INFO: Fore.GREEN,
        logging.WARNING: Fore.YELLOW,
        logging.ERROR: Fore.RED,
        logging.CRITICAL: Fore.MAGENTA + Style.BRIGHT,
    }

    def format(self, record):
        record = logging.makeLogRecord(record.__dict__)
        color = self.LEVEL_COLORS.get(record.levelno)
        if color:
            record.levelname = f"{color}{record.levelname}{Style.RESET_ALL}"
        if record.levelno >= logging.WARNING:
            record.msg = f"{Fore.RED}{record.getMessage()}{Style.RESET_ALL}"
            record.args = None
        return super().format(record)


def _configure_structlog(json_output: bool):
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer(colors=False),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def setup_logger(
    component: Optional[str] = None,
    level: str = "INFO",
    log_file: Optional[str] = None
) -> structlog.BoundLogger:
    """
    Configure engine logging and return the logger for ``component``.

    Calling it again (CLI and API in one process) replaces the handlers
    rather than adding a second set.

    Args:
        component: Component name, e.g. "calendar_sync"
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional file path; file output is JSON

    Returns:
        Configured structured logger
    """
    _configure_structlog(json_output=bool(log_file))

    root = logging.getLogger(ROOT_LOGGER)
    root.setLevel(getattr(logging, level.upper()))
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(ColorizedFormatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    root.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        root.addHandler(file_handler)

    return get_logger(component)


def get_logger(component: Optional[str] = None) -> structlog.BoundLogger:
    """Structured logger for one engine component."""
    return structlog.get_logger(logger_name(component))


class SyncLogger:
    """Specialized logger for calendar sync runs with summary tracking."""

    def __init__(self, logger: structlog.BoundLogger):
        self.logger = logger
        self.stats = self._empty_stats()

    @staticmethod
    def _empty_stats() -> dict:
        return {
            'assets_synced': 0,
            'events_seen': 0,
            'imported': 0,
            'duplicates': 0,
            'discarded': 0,
            'external_conflicts': 0,
            'skipped_blocks': 0,
            'errors': 0,
        }

    def log_sync_result(self, result):
        """Fold a SyncResult into the running totals."""
        self.stats['assets_synced'] += 1
        self.stats['events_seen'] += result.seen
        self.stats['imported'] += result.imported
        self.stats['duplicates'] += result.duplicates
        self.stats['discarded'] += result.discarded
        self.stats['external_conflicts'] += len(result.external_conflicts)
        self.stats['skipped_blocks'] += result.skipped_blocks
        self.logger.info(
            "Asset synced",
            asset_id=result.asset_id,
            imported=result.imported,
            seen=result.seen,
            duplicates=result.duplicates,
        )

    def log_error(self, error: Exception, context: str = ""):
        """Log an error."""
        self.stats['errors'] += 1
        self.logger.error(
            "Error occurred",
            error=str(error),
            error_type=type(error).__name__,
            context=context
        )

    def print_summary(self):
        """Print a summary of all operations."""
        self.logger.info("Sync summary", **self.stats)

        print(f"\n{Fore.CYAN}{'='*50}")
        print(f"{Fore.WHITE}CALENDAR SYNC SUMMARY")
        print(f"{Fore.CYAN}{'='*50}")
        print(f"{Fore.GREEN}✓ Assets synced: {self.stats['assets_synced']}")
        print(f"{Fore.GREEN}✓ Events seen: {self.stats['events_seen']}")
        print(f"{Fore.BLUE}✓ Imported: {self.stats['imported']}")
        print(f"{Fore.YELLOW}⚠ Already imported: {self.stats['duplicates']}")
        print(f"{Fore.YELLOW}⚠ Discarded (bad dates): {self.stats['discarded']}")
        print(f"{Fore.YELLOW}⚠ Skipped feed blocks: {self.stats['skipped_blocks']}")
        print(f"{Fore.RED}✗ External conflicts: {self.stats['external_conflicts']}")
        print(f"{Fore.RED}✗ Errors: {self.stats['errors']}")
        print(f"{Fore.CYAN}{'='*50}\n")

    def reset_stats(self):
        """Reset statistics."""
        self.stats = self._empty_stats()

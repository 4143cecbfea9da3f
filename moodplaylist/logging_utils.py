"""
Logging utilities for the mood playlist generator.

Entrypoints (main_app.py, api) call configure_logging() once at startup;
library modules only ever use logging.getLogger(__name__).
"""
import logging
import os
import re
import sys
import time
from contextlib import contextmanager
from contextvars import ContextVar
from pathlib import Path
from typing import Any, Iterator, List, Optional, Union

_logging_configured = False
# Per-context so concurrent requests served from a thread pool keep their own id
_run_id: ContextVar[Optional[str]] = ContextVar("moodplaylist_run_id", default=None)
_HANDLER_TAG = "_moodplaylist_handler"
_CONSOLE_FMT = '%(asctime)s | %(levelname)-5s | %(name)s | %(message)s'
_CONSOLE_FMT_RUN_ID = '%(asctime)s | %(levelname)-5s | %(name)s | run_id=%(run_id)s | %(message)s'
_FILE_FMT = '%(asctime)s | %(levelname)-5s | %(name)s | %(funcName)s:%(lineno)d | run_id=%(run_id)s | %(message)s'

_NOISY_LOGGERS = ('urllib3', 'requests', 'spotipy', 'httpx', 'uvicorn.access')


class RunIdFilter(logging.Filter):
    """Stamp the current run_id on every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.run_id = _run_id.get() or "-"
        return True


def set_run_id(run_id: Optional[str]) -> None:
    _run_id.set(run_id)


def configure_logging(
    level: str = 'INFO',
    log_file: Optional[str] = None,
    file_level: str = 'DEBUG',
    force: bool = False,
    run_id: Optional[str] = None,
    console: bool = True,
    show_run_id: bool = False,
) -> None:
    """
    Configure root logging for the application.

    Repeated calls are no-ops unless force=True. Handlers installed here are
    tagged so a forced reconfiguration replaces them without touching
    handlers added by other code (pytest's caplog, uvicorn).

    Environment overrides:
        LOG_LEVEL: console level
        LOG_FILE: log file path (when log_file is not given)
    """
    global _logging_configured

    if run_id:
        set_run_id(run_id)

    if _logging_configured and not force:
        return

    level = os.getenv('LOG_LEVEL', level).upper()
    if log_file is None:
        log_file = os.getenv('LOG_FILE')

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)

    for handler in root.handlers[:]:
        if getattr(handler, _HANDLER_TAG, False):
            root.removeHandler(handler)

    if console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(getattr(logging, level, logging.INFO))
        fmt = _CONSOLE_FMT_RUN_ID if (show_run_id or level == 'DEBUG') else _CONSOLE_FMT
        console_handler.setFormatter(logging.Formatter(fmt, datefmt='%H:%M:%S'))
        console_handler.addFilter(RunIdFilter())
        setattr(console_handler, _HANDLER_TAG, True)
        root.addHandler(console_handler)

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setLevel(getattr(logging, file_level.upper(), logging.DEBUG))
        file_handler.setFormatter(logging.Formatter(_FILE_FMT, datefmt='%Y-%m-%d %H:%M:%S'))
        file_handler.addFilter(RunIdFilter())
        setattr(file_handler, _HANDLER_TAG, True)
        root.addHandler(file_handler)

    for noisy in _NOISY_LOGGERS:
        logging.getLogger(noisy).setLevel(logging.WARNING)

    _logging_configured = True
    logging.getLogger(__name__).debug(
        "Logging configured: level=%s, file=%s, run_id=%s", level, log_file or 'none', _run_id.get() or '-'
    )


@contextmanager
def stage_timer(stage_name: str, logger: Optional[logging.Logger] = None) -> Iterator[None]:
    """
    Time a block and log its duration at INFO.

    Usage:
        with stage_timer("Genre match", logger):
            stage.run(context)
    """
    logger = logger or logging.getLogger(__name__)
    logger.debug("%s starting...", stage_name)
    start = time.perf_counter()
    try:
        yield
    finally:
        elapsed = time.perf_counter() - start
        if elapsed < 1:
            logger.info("%s completed in %.0fms", stage_name, elapsed * 1000)
        else:
            logger.info("%s completed in %.1fs", stage_name, elapsed)


_REDACTIONS = [
    # key=value / "key": "value" pairs for credentials
    (r'(["\']?(?:access_token|refresh_token|client_secret|client_id|api_key|appid|token|secret|code)["\']?\s*[:=]\s*["\']?)([^"\'\s&,}]+)', r'\1***REDACTED***'),
    # Bearer headers
    (r'(Bearer\s+)[A-Za-z0-9._\-]+', r'\1***REDACTED***'),
    # Email addresses
    (r'[\w.-]+@[\w.-]+\.\w+', r'***@***.***'),
]


def redact(value: Any, keys: Optional[List[str]] = None) -> str:
    """
    Redact credentials from a value before logging it.

    Usage:
        logger.debug("Token response: %s", redact(token_info))
        logger.info("Weather URL: %s", redact(url))
    """
    if value is None:
        return "None"
    text = str(value)
    for pattern, replacement in _REDACTIONS:
        text = re.sub(pattern, replacement, text, flags=re.IGNORECASE)
    for key in keys or []:
        text = re.sub(
            rf'(["\']?{re.escape(key)}["\']?\s*[:=]\s*["\']?)([^"\'\s&,}}]+)',
            r'\1***REDACTED***',
            text,
            flags=re.IGNORECASE,
        )
    return text


def format_count(n: int, singular: str, plural: Optional[str] = None) -> str:
    """format_count(1, "track") -> "1 track"; format_count(5, "track") -> "5 tracks"."""
    if plural is None:
        plural = singular + 's'
    return f"{n:,} {singular if n == 1 else plural}"


def truncate_list(items: List[Any], max_items: int = 3, format_fn=str) -> str:
    """Render a list for a log line, e.g. "rock, pop, jazz (+5 more)"."""
    if not items:
        return "(none)"
    shown = ', '.join(format_fn(item) for item in items[:max_items])
    if len(items) > max_items:
        shown += f" (+{len(items) - max_items} more)"
    return shown


def add_logging_args(parser) -> None:
    """Add --log-level/--debug/--quiet/--log-file to an argparse parser."""
    group = parser.add_argument_group('logging')
    group.add_argument(
        '--log-level',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        default='INFO',
        help='Set logging level (default: INFO)',
    )
    group.add_argument('--debug', action='store_true', help='Shortcut for --log-level DEBUG')
    group.add_argument('--quiet', action='store_true', help='Shortcut for --log-level WARNING')
    group.add_argument('--log-file', type=str, metavar='PATH', help='Also write logs to PATH')


def resolve_log_level(args) -> str:
    """--debug wins over --quiet, which wins over --log-level."""
    if getattr(args, 'debug', False):
        return 'DEBUG'
    if getattr(args, 'quiet', False):
        return 'WARNING'
    return getattr(args, 'log_level', 'INFO')


class RunSummary:
    """
    Collect metrics during a run and log them as one block at the end.

    Usage:
        summary = RunSummary("Playlist assembly", logger)
        summary.add("liked_tracks", 812)
        summary.increment("stage_genre_match", 14)
        summary.log()
    """

    def __init__(self, title: str, logger: Optional[logging.Logger] = None):
        self.title = title
        self.logger = logger or logging.getLogger(__name__)
        self.metrics: dict = {}
        self.start_time = time.perf_counter()

    def add(self, key: str, value: Union[int, float, str]) -> None:
        self.metrics[key] = value

    def increment(self, key: str, amount: int = 1) -> None:
        self.metrics[key] = self.metrics.get(key, 0) + amount

    def log(self, level: int = logging.INFO) -> None:
        elapsed = time.perf_counter() - self.start_time
        self.logger.log(level, "=" * 60)
        self.logger.log(level, f"{self.title.upper()} SUMMARY")
        for key, value in self.metrics.items():
            label = key.replace('_', ' ').title()
            if isinstance(value, float):
                self.logger.log(level, f"  {label}: {value:.2f}")
            else:
                self.logger.log(level, f"  {label}: {value}")
        self.logger.log(level, f"  Total Time: {elapsed:.1f}s")
        self.logger.log(level, "=" * 60)

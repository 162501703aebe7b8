"""Logging setup and terminal-safe output.

Loggers are plain `logging.getLogger(__name__)` loggers; `configure_logging`
routes them through a rich handler on stderr. The icon helpers replace
report emoji with ASCII on terminals that cannot print UTF-8.
"""
import locale
import logging
import sys
from typing import Optional
from rich.console import Console
from rich.logging import RichHandler


ROOT_LOGGER = "unused_finder"

# ci.log_level values
LOG_LEVELS = {
    'error': logging.ERROR,
    'warn': logging.WARNING,
    'info': logging.INFO,
    'debug': logging.DEBUG,
}

# Unicode to ASCII icon mapping for terminals without UTF-8
ICON_MAP = {
    '🔴': '[C]',
    '🔷': '[T]',
    '🔶': '[I]',
    '🔵': '[F]',
    '🟡': '[V]',
    '🟣': '[E]',
    '✅': '[OK]',
    '❌': '[FAIL]',
    '⚠️': '[WARN]',
    '⚠': '[WARN]',
    '📊': '[stats]',
    '📁': '[dir]',
    '🔍': '[search]',
    '•': '*',
    '→': '->',
}


def detect_terminal_encoding() -> str:
    """Detect the terminal's encoding capability.

    Returns:
        str: Terminal encoding ('utf-8', 'cp1252', 'ascii', etc.)
    """
    encoding = getattr(sys.stdout, 'encoding', None)
    if encoding:
        return encoding.lower()

    preferred = locale.getpreferredencoding(False)
    return preferred.lower() if preferred else 'ascii'


def is_utf8_capable() -> bool:
    return detect_terminal_encoding().replace('_', '-') in ('utf-8', 'utf8')


def sanitize_for_terminal(text: str) -> str:
    """Replace Unicode icons with ASCII equivalents if terminal doesn't support UTF-8.

    Args:
        text: Text potentially containing Unicode icons

    Returns:
        str: Sanitized text safe for current terminal
    """
    if is_utf8_capable():
        return text

    sanitized = text
    for unicode_char, ascii_replacement in ICON_MAP.items():
        sanitized = sanitized.replace(unicode_char, ascii_replacement)
    return sanitized


def resolve_log_level(log_level: str = 'warn', verbose: bool = False, quiet: bool = False) -> int:
    """Pick the effective level: --verbose beats --quiet beats ci.log_level."""
    if verbose:
        return logging.DEBUG
    if quiet:
        return logging.ERROR
    return LOG_LEVELS.get(log_level.lower(), logging.WARNING)


def configure_logging(level: int = logging.WARNING, console: Optional[Console] = None) -> logging.Logger:
    """Attach a single rich handler to the package logger.

    Calling it again replaces the handler, so repeated CLI invocations in one
    process do not duplicate output.

    Args:
        level: Logging level for the package logger
        console: Console to log to (stderr when None)

    Returns:
        The configured package logger
    """
    logger = logging.getLogger(ROOT_LOGGER)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_time=False,
        show_path=False,
        markup=False,
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False
    return logger

import logging
import os

from rich.console import Console
from rich.logging import RichHandler


class NameColumnFormatter(logging.Formatter):
    """Pads logger names so messages from every module line up in one column."""

    column_width = 16

    def format(self, record):
        NameColumnFormatter.column_width = max(
            NameColumnFormatter.column_width, len(record.name)
        )
        record.name = record.name.center(NameColumnFormatter.column_width)
        return super().format(record)


# one console per log file, shared by every logger
_file_consoles: dict[str, Console] = {}


def _file_console() -> Console | None:
    # the TUI owns stdout, so a log file keeps records readable while it runs
    log_file = os.getenv("STOREFRONT_LOG_FILE")
    if not log_file:
        return None
    log_file = os.path.abspath(log_file)
    if log_file not in _file_consoles:
        os.makedirs(os.path.dirname(log_file), exist_ok=True)
        _file_consoles[log_file] = Console(
            file=open(log_file, "a", encoding="utf-8"), width=160
        )
    return _file_consoles[log_file]


def get_logger(name=None) -> logging.Logger:
    """
    Return a logger that writes through RichHandler.

    DEBUG in the environment lowers the level to debug.
    """
    if name is None:
        name = "storefront"
    logger = logging.getLogger(name)
    log_level = logging.DEBUG if os.getenv("DEBUG") else logging.INFO
    logger.setLevel(log_level)

    if not logger.handlers:
        handler = RichHandler(
            console=_file_console(),
            show_time=True,
            show_level=True,
            show_path=False,
            rich_tracebacks=True,
            log_time_format="[%X]",
        )
        handler.setFormatter(NameColumnFormatter("[%(name)s]  %(message)s"))
        handler.setLevel(log_level)
        logger.addHandler(handler)

        logger.propagate = False
        logger.debug(f"Logger for '{name}' ready.")

    return logger

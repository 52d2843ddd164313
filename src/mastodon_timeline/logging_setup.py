import json
import logging
from datetime import datetime, timezone
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

ROOT_LOGGER = "mastodon_timeline"
TEXT_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


class JsonLinesFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "target": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False)


def build_handlers(
    console: Console,
    verbose: bool = False,
    log_file: Path | None = None,
    json_log_file: Path | None = None,
) -> list[logging.Handler]:
    """The sink list: the console always, plus optional text and JSON-lines files."""
    console_handler = RichHandler(console=console, show_path=False, rich_tracebacks=True)
    console_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
    handlers: list[logging.Handler] = [console_handler]

    if log_file is not None:
        text_handler = logging.FileHandler(log_file, mode="w", encoding="utf-8")
        text_handler.setFormatter(logging.Formatter(TEXT_FORMAT))
        text_handler.setLevel(logging.DEBUG)
        handlers.append(text_handler)

    if json_log_file is not None:
        json_handler = logging.FileHandler(json_log_file, mode="w", encoding="utf-8")
        json_handler.setFormatter(JsonLinesFormatter())
        json_handler.setLevel(logging.DEBUG)
        handlers.append(json_handler)

    return handlers


def configure_logging(
    console: Console,
    verbose: bool = False,
    log_file: Path | None = None,
    json_log_file: Path | None = None,
) -> logging.Logger:
    logger = logging.getLogger(ROOT_LOGGER)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    for handler in build_handlers(console, verbose, log_file, json_log_file):
        logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)
    logger.propagate = False

    return logger

import logging
import sys
from pathlib import Path
from typing import Optional, Union


class _LibraryNoiseFilter(logging.Filter):
    """
    Keep our own logs, quiet everything else:
    - taskboard.* passes through at the handler level
    - uvicorn access/error logs pass through
    - other third-party loggers (sqlalchemy, httpx, ...) only WARNING+
    """

    def __init__(self, sql_echo: bool = False):
        super().__init__()
        self.sql_echo = sql_echo

    def filter(self, record: logging.LogRecord) -> bool:
        name = record.name
        if name.startswith("taskboard.") or name == "taskboard":
            return True
        if name.startswith("uvicorn"):
            return True
        if self.sql_echo and name.startswith("sqlalchemy.engine"):
            return True
        return record.levelno >= logging.WARNING


def setup_logging(
    *,
    level: Union[int, str] = logging.INFO,
    log_file: Optional[Union[str, Path]] = None,
    sql_echo: bool = False,
) -> None:
    """
    Configure root logging once at start-up: a stderr handler and, when
    ``log_file`` is given, a file handler with the same format.
    """
    root = logging.getLogger()
    root.setLevel(level)

    # Remove pre-existing handlers so reloads don't duplicate output
    for handler in list(root.handlers):
        root.removeHandler(handler)

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    noise_filter = _LibraryNoiseFilter(sql_echo=sql_echo)

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(fmt)
    console.addFilter(noise_filter)
    root.addHandler(console)

    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(str(path), encoding="utf-8")
        file_handler.setFormatter(fmt)
        file_handler.addFilter(noise_filter)
        root.addHandler(file_handler)

    if sql_echo:
        logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO)

    logging.captureWarnings(True)

"""Console log formatting for the jukebox."""

from __future__ import annotations

import logging
import os
import sys
from typing import IO, Any

RESET = "\033[0m"
DIM = "\033[2m"

LEVEL_COLORS: dict[int, str] = {
    logging.DEBUG: "\033[36m",
    logging.INFO: "\033[32m",
    logging.WARNING: "\033[33m",
    logging.ERROR: "\033[31m",
    logging.CRITICAL: "\033[1;31m",
}


class ColoredFormatter(logging.Formatter):
    """Colors the level name and dims the logger name on a terminal.

    Color is off when ``NO_COLOR`` is set or the stream is not a TTY, unless
    ``force_color`` says otherwise.
    """

    def __init__(
        self,
        *args: Any,
        stream: IO[str] | None = None,
        force_color: bool | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(*args, **kwargs)
        self._stream = stream
        self._force_color = force_color

    def _use_color(self) -> bool:
        if self._force_color is not None:
            return self._force_color
        if os.environ.get("NO_COLOR") is not None:
            return False
        stream = self._stream or sys.stderr
        return hasattr(stream, "isatty") and stream.isatty()

    def format(self, record: logging.LogRecord) -> str:
        if not self._use_color():
            return super().format(record)

        # Color a copy so other handlers see the plain record.
        colored = logging.makeLogRecord(record.__dict__)
        colored.levelname = f"{LEVEL_COLORS.get(record.levelno, '')}{record.levelname}{RESET}"
        colored.name = f"{DIM}{record.name}{RESET}"
        return super().format(colored)

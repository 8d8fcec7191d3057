"""Logging setup for the command line and library users."""
from __future__ import annotations

import logging
from pathlib import Path

__all__ = ["configure_logging", "DEFAULT_LOG_PATH"]

DEFAULT_LOG_PATH = Path("logs/fmsynth.log")
_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(verbose: bool = False, log_path: str | Path | None = None) -> logging.Logger:
    """Attach handlers to the ``fmsynth`` logger.

    Warnings always reach stderr; ``verbose`` lowers the threshold to DEBUG.
    When ``log_path`` is given every record is also appended to that file.
    Calling this again replaces the handlers installed by a previous call.
    """

    logger = logging.getLogger("fmsynth")
    for handler in list(logger.handlers):
        if getattr(handler, "_fmsynth_handler", False):
            logger.removeHandler(handler)
            handler.close()

    level = logging.DEBUG if verbose else logging.WARNING
    logger.setLevel(logging.DEBUG if (verbose or log_path) else logging.WARNING)

    stream = logging.StreamHandler()
    stream.setLevel(level)
    stream.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
    stream._fmsynth_handler = True  # type: ignore[attr-defined]
    logger.addHandler(stream)

    if log_path is not None:
        path = Path(log_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(_FORMAT))
        file_handler._fmsynth_handler = True  # type: ignore[attr-defined]
        logger.addHandler(file_handler)

    return logger

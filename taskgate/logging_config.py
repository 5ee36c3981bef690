from __future__ import annotations

import logging


def configure_app_logging(level: str = "INFO") -> None:
    """
    Set the level of the `taskgate` logger tree.

    Uvicorn (or whatever serves the app) owns the handlers; this only controls
    verbosity. Set `TASKGATE_LOG_LEVEL=DEBUG` to see individual policy decisions.
    """

    normalized = level.upper()
    logging.getLogger("taskgate").setLevel(normalized)
    logging.getLogger("taskgate").propagate = True

import logging
import sys

import structlog
from pythonjsonlogger import jsonlogger

from ..config import get_settings

# Libraries that are chatty at INFO
QUIET_LOGGERS = ("sqlalchemy.engine", "passlib", "uvicorn.access")


def _root_formatter(as_json: bool) -> logging.Formatter:
    if as_json:
        return jsonlogger.JsonFormatter(fmt="%(asctime)s %(name)s %(levelname)s %(message)s")
    return logging.Formatter("%(asctime)s %(levelname)-8s %(name)s: %(message)s")


def setup_logging():
    """
    structlog for service events (`video_watched`, `zone_upgrade`, ...) rendered
    through the stdlib root logger, which also carries the crud/security/audit
    module loggers. LOG_JSON switches both to JSON lines.
    """
    settings = get_settings()

    renderer = structlog.processors.JSONRenderer() if settings.log_json else structlog.dev.ConsoleRenderer(colors=False)
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    root = logging.getLogger()
    # Re-running (tests, reload) must not stack handlers
    handler = next((h for h in root.handlers if getattr(h, "_horizonfit", False)), None)
    if handler is None:
        handler = logging.StreamHandler(sys.stdout)
        handler._horizonfit = True
        root.addHandler(handler)
    handler.setFormatter(_root_formatter(settings.log_json))
    root.setLevel(settings.log_level.upper())

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return structlog.get_logger()

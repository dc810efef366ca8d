"""
Structured logging connector.

The pipeline reports transaction costs as structured entries
``{level, source, ts, message, data}``. Any object with a ``log`` method
accepting such a mapping can receive them.
"""
import logging
import time
from typing import Any, Dict, Optional, Protocol

logger = logging.getLogger(__name__)

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "trace": logging.DEBUG,
}


class LoggingConnector(Protocol):
    """Protocol for structured log sinks"""

    def log(self, entry: Dict[str, Any]) -> None:
        ...


def make_entry(
    level: str,
    source: str,
    message: str,
    data: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    """Create a log entry stamped with the current time in milliseconds."""
    return {
        "level": level,
        "source": source,
        "ts": int(time.time() * 1000),
        "message": message,
        "data": data or {},
    }


class StdlibLoggingConnector:
    """Forwards structured entries to a stdlib logger"""

    def __init__(self, logger_instance: Optional[logging.Logger] = None):
        self.logger = logger_instance or logging.getLogger("iota_toolkit.events")

    def log(self, entry: Dict[str, Any]) -> None:
        level = _LEVELS.get(str(entry.get("level", "info")).lower(), logging.INFO)
        self.logger.log(
            level,
            "%s: %s",
            entry.get("source", "unknown"),
            entry.get("message", ""),
            extra={"iota_entry": entry}
        )


def emit(connector: Optional[LoggingConnector], entry: Dict[str, Any]) -> None:
    """
    Deliver an entry without letting the sink affect the caller.

    Failures of the connector are reported on the module logger only.
    """
    if connector is None:
        return
    try:
        connector.log(entry)
    except Exception as e:
        logger.warning(f"Logging connector failed for '{entry.get('message')}': {e}")

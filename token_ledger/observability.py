import json
import logging
from datetime import datetime, timezone
from typing import Optional

from .config import LedgerSettings, get_settings


PACKAGE_LOGGER = "token_ledger"
EXTRA_FIELDS = ("event_name", "operator", "token_id", "error_code")

_installed: Optional[logging.Handler] = None


class JSONFormatter(logging.Formatter):
    """One JSON object per record, carrying any ledger extras present on it."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(
            (key, record.__dict__[key]) for key in EXTRA_FIELDS if record.__dict__.get(key) is not None
        )
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def build_handler(fmt: str) -> logging.Handler:
    handler = logging.StreamHandler()
    if fmt == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s - %(message)s"))
    return handler


def configure_logging(settings: Optional[LedgerSettings] = None, replace: bool = True) -> logging.Handler:
    """Attach a handler to the ``token_ledger`` logger from ``log_level`` / ``log_format``.

    Only one handler installed here is live at a time. With ``replace=False``
    an already installed handler is kept and returned.
    """
    global _installed
    target = logging.getLogger(PACKAGE_LOGGER)
    if _installed is not None:
        if not replace:
            return _installed
        target.removeHandler(_installed)

    settings = settings or get_settings()
    _installed = build_handler(settings.log_format)
    target.addHandler(_installed)
    target.setLevel(settings.log_level)
    return _installed

"""Logging setup. The terminal belongs to the UI, so records go to a file."""

from __future__ import annotations
import json
import logging
from pathlib import Path
from typing import Optional, Union

TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


class JsonFormatter(logging.Formatter):
    def format(self, record):
        base = {
            "time": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            base["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(base)


def configure_logging(level: Union[str, int] = "INFO", path: Optional[Union[str, Path]] = None,
                      fmt: str = "json") -> Optional[logging.Handler]:
    """Install one root handler; a second call is a no-op."""
    root = logging.getLogger()
    if root.handlers:
        return None
    root.setLevel(level.upper() if isinstance(level, str) else level)
    if path is None:
        handler: logging.Handler = logging.NullHandler()
    else:
        p = Path(path).expanduser()
        p.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(p, encoding="utf-8")
    handler.setFormatter(JsonFormatter() if fmt == "json" else logging.Formatter(TEXT_FORMAT))
    root.addHandler(handler)
    # urllib3 logs every connection at debug
    logging.getLogger("urllib3").setLevel(max(root.level, logging.INFO))
    return handler

"""Root logger configuration."""

from __future__ import annotations

import json
import logging
import sys
import time
from typing import Optional

_CONFIGURED_FLAG = "_imagecache_configured"


class JsonFormatter(logging.Formatter):
    """
    Minimal JSON log formatter:
      { "t": 169, "lvl": "INFO", "name": "mod", "msg": "text" }
    """

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        payload = {
            "t": int(time.time() * 1000),
            "lvl": record.levelname,
            "name": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def setup_logging(level: Optional[str] = None, json_output: bool = False) -> None:
    """Configure the root logger once; later calls are no-ops."""
    root = logging.getLogger()
    if getattr(root, _CONFIGURED_FLAG, False):
        return

    lvl = logging.getLevelName((level or "INFO").upper())
    if not isinstance(lvl, int):
        lvl = logging.INFO

    handler = logging.StreamHandler(sys.stdout)
    if json_output:
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))

    root.addHandler(handler)
    root.setLevel(lvl)
    setattr(root, _CONFIGURED_FLAG, True)


__all__ = ["JsonFormatter", "setup_logging"]

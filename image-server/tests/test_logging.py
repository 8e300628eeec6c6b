import json
import logging
import sys

from imagecache.core.logging import JsonFormatter, setup_logging


def test_json_formatter_emits_compact_record():
    try:
        raise RuntimeError("render failed")
    except RuntimeError:
        record = logging.LogRecord(
            name="imagecache.modules.derivations.cache",
            level=logging.ERROR,
            pathname=__file__,
            lineno=1,
            msg="Failed to cache rendition for %s",
            args=("cat.webp",),
            exc_info=sys.exc_info(),
        )

    payload = json.loads(JsonFormatter().format(record))

    assert set(payload) == {"t", "lvl", "name", "msg", "exc_info"}
    assert isinstance(payload["t"], int)
    assert payload["lvl"] == "ERROR"
    assert payload["name"] == "imagecache.modules.derivations.cache"
    assert payload["msg"] == "Failed to cache rendition for cat.webp"
    assert "RuntimeError: render failed" in payload["exc_info"]


def test_json_formatter_omits_exc_info_without_exception():
    record = logging.LogRecord("imagecache", logging.INFO, __file__, 1, "ready", (), None)

    assert set(json.loads(JsonFormatter().format(record))) == {"t", "lvl", "name", "msg"}


def test_setup_logging_configures_root_once(monkeypatch):
    root = logging.getLogger()
    monkeypatch.setattr(root, "handlers", [])
    monkeypatch.setattr(root, "_imagecache_configured", False, raising=False)
    monkeypatch.setattr(root, "level", root.level)

    setup_logging("DEBUG", json_output=True)
    setup_logging("ERROR", json_output=False)

    assert len(root.handlers) == 1
    assert isinstance(root.handlers[0].formatter, JsonFormatter)
    assert root.level == logging.DEBUG

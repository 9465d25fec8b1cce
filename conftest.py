import logging

import pytest


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch):
    """Keep TRADER_* variables and root log handlers from leaking between tests"""
    for name in ("TRADER_CONFIG", "TRADER_API_KEY", "TRADER_SECRET_KEY", "TRADER_LOG_LEVEL", "TRADER_LOG_FORMAT",
                 "TRADER_LOG_MAX_BYTES", "TRADER_LOG_BACKUP_COUNT"):
        monkeypatch.delenv(name, raising=False)

    root = logging.getLogger()
    saved_handlers = root.handlers[:]
    saved_level = root.level
    yield
    for handler in root.handlers[:]:
        if handler not in saved_handlers:
            root.removeHandler(handler)
            handler.close()
    for handler in saved_handlers:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(saved_level)

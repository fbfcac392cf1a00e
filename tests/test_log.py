from __future__ import annotations

import logging
import sys

from api.log import configure_logging


def test_configure_logging_writes_to_stdout(monkeypatch):
    root = logging.getLogger("relay")
    monkeypatch.setattr(root, "handlers", [])
    monkeypatch.setattr(root, "level", root.level)

    configure_logging("debug")

    [handler] = root.handlers
    assert handler.stream is sys.stdout
    assert root.level == logging.DEBUG


def test_configure_logging_is_idempotent(monkeypatch):
    root = logging.getLogger("relay")
    monkeypatch.setattr(root, "handlers", [])
    monkeypatch.setattr(root, "level", root.level)

    configure_logging()
    configure_logging("warning")

    assert len(root.handlers) == 1
    assert root.level == logging.WARNING

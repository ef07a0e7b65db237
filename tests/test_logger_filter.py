from __future__ import annotations

import logging
import os
import sys

import pytest

from resize_studio.logger import apply_cli_logging_options, get_logger, setup_logger


@pytest.fixture(autouse=True)
def _restore_logger(monkeypatch: pytest.MonkeyPatch):
    yield
    monkeypatch.undo()
    setup_logger()


def _stderr_handler(logger: logging.Logger) -> logging.Handler:
    handlers = [h for h in logger.handlers if getattr(h, "stream", None) is sys.stderr]
    assert len(handlers) == 1
    return handlers[0]


def _record(name: str) -> logging.LogRecord:
    return logging.LogRecord(name, logging.INFO, __file__, 1, "msg", None, None)


def test_setup_logger_is_idempotent() -> None:
    setup_logger()
    logger = setup_logger()
    _stderr_handler(logger)
    assert logger.propagate is False


def test_category_filter_limits_children(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RESIZE_STUDIO_LOG_CATS", "preview,client")
    handler = _stderr_handler(setup_logger())

    assert handler.filter(_record("resize_studio.preview"))
    assert handler.filter(_record("resize_studio.client"))
    assert not handler.filter(_record("resize_studio.session"))


def test_env_level_override(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RESIZE_STUDIO_LOG_LEVEL", "debug")
    assert setup_logger().level == logging.DEBUG
    assert get_logger("export").getEffectiveLevel() == logging.DEBUG


def test_cli_options_move_to_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("RESIZE_STUDIO_LOG_LEVEL", raising=False)
    monkeypatch.delenv("RESIZE_STUDIO_LOG_CATS", raising=False)

    rest = apply_cli_logging_options(["export", "in.png", "--log-level", "warning", "--log-cats=client"])

    assert rest == ["export", "in.png"]
    assert setup_logger().level == logging.WARNING
    assert os.environ["RESIZE_STUDIO_LOG_CATS"] == "client"

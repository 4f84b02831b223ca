from __future__ import annotations

import sys

import pytest
from loguru import logger

from amm_engine.utils.logger import setup_logger


@pytest.fixture
def restore_logger():
    yield
    logger.remove()
    logger.add(sys.stderr)


def test_file_sink_receives_debug(tmp_path, restore_logger) -> None:
    log_file = tmp_path / "amm.log"
    setup_logger(level="WARNING", log_file=str(log_file))
    logger.debug("[AMM] quote detail")
    logger.remove()
    assert "[AMM] quote detail" in log_file.read_text()


def test_env_level_overrides_console(monkeypatch, capsys, restore_logger) -> None:
    monkeypatch.setenv("LOG_LEVEL", "error")
    setup_logger(level="DEBUG")
    logger.warning("[RUNTIME] hidden")
    logger.error("[RUNTIME] shown")
    out = capsys.readouterr().out
    assert "shown" in out
    assert "hidden" not in out


def test_json_logs(capsys, restore_logger) -> None:
    setup_logger(json_logs=True)
    logger.info("[TOKEN] mint")
    out = capsys.readouterr().out
    assert '"message": "[TOKEN] mint"' in out

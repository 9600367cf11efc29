import json
import logging

import pytest

from core.config import Settings
from core.observability import setup_logging


@pytest.fixture
def root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


def test_json_logs_carry_service_and_extras(root_logger, capsys):
    setup_logging("INFO", json_output=True)
    logging.getLogger("core.store").info("Planner state restored", extra={"plots": 2})
    line = capsys.readouterr().out.strip().splitlines()[-1]
    record = json.loads(line)
    assert record["message"] == "Planner state restored"
    assert record["level"] == "INFO"
    assert record["service"] == "plot-planner"
    assert record["plots"] == 2


def test_setup_logging_does_not_stack_handlers(root_logger):
    setup_logging("DEBUG", json_output=False)
    setup_logging("DEBUG", json_output=False)
    assert len(root_logger.handlers) == 1
    assert root_logger.level == logging.DEBUG


def test_settings_read_environment(monkeypatch):
    monkeypatch.setenv("PLOTPLANNER_SESSION_FILE", "other.json")
    monkeypatch.setenv("PLOTPLANNER_AUTOSAVE", "false")
    s = Settings()
    assert s.session_file == "other.json"
    assert s.autosave is False
    assert s.log_level == "INFO"

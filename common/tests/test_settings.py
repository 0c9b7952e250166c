import logging

import pytest

from common.app_setup import print_and_log, print_error, setup_logging
from common.settings import DEFAULT_API_BASE_URL, NavigatorSettings, coerce_settings, load_settings
from navigator.sequencer import SequenceBudget


def test_defaults_when_file_missing(tmp_path):
    settings = load_settings(tmp_path / "absent.yaml")
    assert settings == NavigatorSettings()
    assert settings.api_base_url == DEFAULT_API_BASE_URL
    assert settings.locate_attempts == 10
    assert settings.fallback_attempts == 20


def test_yaml_file(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("locate_attempts: 5\nlocate_interval: 0.2\nlog_level: debug\n")
    settings = load_settings(path)
    assert settings.locate_attempts == 5
    assert settings.locate_interval == 0.2
    assert settings.log_level == "debug"


def test_json_text():
    settings = coerce_settings('{"settle_attempts": 6}')
    assert settings.settle_attempts == 6


def test_env_var_selects_file(tmp_path, monkeypatch):
    path = tmp_path / "other.yaml"
    path.write_text("tree_load_attempts: 2\n")
    monkeypatch.setenv("TMFOLDERS_CONFIG", str(path))
    assert load_settings().tree_load_attempts == 2


def test_invalid_values_raise_value_error():
    with pytest.raises(ValueError):
        coerce_settings({"locate_attempts": 0})
    with pytest.raises(TypeError):
        coerce_settings(42)


def test_sequence_budget_and_box_view():
    settings = NavigatorSettings(locate_attempts=3, fallback_attempts=9, settle_interval=0.05)
    budget = settings.sequence_budget()
    assert isinstance(budget, SequenceBudget)
    assert budget.locate_attempts == 3
    assert budget.fallback_attempts == 9
    assert budget.settle_interval == 0.05
    box = settings.as_box()
    assert box.locate_attempts == 3
    assert box["api_base_url"] == DEFAULT_API_BASE_URL


def test_setup_logging_writes_to_custom_file(tmp_path, capsys):
    logfile = tmp_path / "nav.log"
    logger = setup_logging(app_name="tmfolders-test", loglevel=logging.INFO, logfile=str(logfile))
    print_and_log("hello from the navigator")
    print_error("something failed")
    for handler in logger.handlers:
        handler.flush()
    content = logfile.read_text()
    assert "hello from the navigator" in content
    assert "something failed" in content
    captured = capsys.readouterr()
    assert "hello from the navigator" in captured.out

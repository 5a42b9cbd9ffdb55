"""Settings loaded from the environment."""

import pytest

from core.config import DEFAULT_AGENT_MODEL, load_settings


def test_defaults(monkeypatch):
    for name in ("DOCTOR_SESSIONS_DIR", "DOCTOR_MIN_RESPONSE_LENGTH", "DOCTOR_MAX_AUTO_ADVANCE",
                 "DOCTOR_LOG_LEVEL", "DOCTOR_AGENT_MODEL"):
        monkeypatch.delenv(name, raising=False)

    settings = load_settings()

    assert settings.sessions_dir == "./medical_sessions"
    assert settings.min_response_length == 5
    assert settings.max_auto_advance == 10
    assert settings.log_level == "INFO"
    assert settings.agent_model == DEFAULT_AGENT_MODEL


def test_overrides(monkeypatch, tmp_path):
    monkeypatch.setenv("DOCTOR_SESSIONS_DIR", str(tmp_path))
    monkeypatch.setenv("DOCTOR_MIN_RESPONSE_LENGTH", "8")
    monkeypatch.setenv("DOCTOR_MAX_AUTO_ADVANCE", "4")
    monkeypatch.setenv("DOCTOR_LOG_LEVEL", "debug")

    settings = load_settings()

    assert settings.sessions_dir == str(tmp_path)
    assert settings.min_response_length == 8
    assert settings.max_auto_advance == 4
    assert settings.log_level == "DEBUG"


@pytest.mark.parametrize("value", ["ten", "0", "-3", "11"])
def test_invalid_integers_are_rejected(monkeypatch, value):
    monkeypatch.setenv("DOCTOR_MAX_AUTO_ADVANCE", value)
    with pytest.raises(ValueError):
        load_settings()


def test_auto_advance_ceiling_is_accepted(monkeypatch):
    monkeypatch.setenv("DOCTOR_MAX_AUTO_ADVANCE", "10")
    assert load_settings().max_auto_advance == 10

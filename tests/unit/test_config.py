import pytest

from app.config import AppConfig, load_config


def test_defaults(monkeypatch):
    for name in ("PLANTCARE_PORT", "PLANTCARE_OFFLINE_TIMEOUT", "PLANTCARE_DECISION_INTERVAL_SECONDS"):
        monkeypatch.delenv(name, raising=False)
    config = load_config()
    assert config.port == 5001
    assert config.offline_timeout_seconds == 300
    assert config.decision_interval_seconds == 3600
    assert config.liveness_check_interval_seconds == 60


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("PLANTCARE_DECISION_INTERVAL_SECONDS", "900")
    monkeypatch.setenv("PLANTCARE_DEBUG", "yes")
    config = AppConfig()
    assert config.decision_interval_seconds == 900
    assert config.DEBUG is True


def test_non_integer_env_rejected(monkeypatch):
    monkeypatch.setenv("PLANTCARE_PORT", "eighty")
    with pytest.raises(ValueError, match="PLANTCARE_PORT"):
        AppConfig()


def test_production_refuses_default_secret(monkeypatch):
    monkeypatch.setenv("PLANTCARE_ENV", "production")
    monkeypatch.delenv("PLANTCARE_SECRET_KEY", raising=False)
    with pytest.raises(RuntimeError, match="default secret key"):
        AppConfig()


def test_production_with_secret(monkeypatch):
    monkeypatch.setenv("PLANTCARE_ENV", "production")
    monkeypatch.setenv("PLANTCARE_SECRET_KEY", "a" * 64)
    assert AppConfig().as_flask_config()["SECRET_KEY"] == "a" * 64


def test_app_overrides_are_validated(tmp_path):
    from app import create_app

    with pytest.raises(ValueError, match="PLANTCARE_OFFLINE_TIMEOUT"):
        create_app(
            {
                "offline_timeout_seconds": 0,
                "database_path": str(tmp_path / "plantcare.db"),
                "log_file_path": str(tmp_path / "plantcare.log"),
            }
        )

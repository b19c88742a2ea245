import logging

from rpgtracker.backend.config import LOG_FORMAT, configure_logging, load_settings


def test_load_settings_reads_expected_env(monkeypatch) -> None:
    monkeypatch.setenv("RPGTRACKER_DATABASE_URL", "postgresql://local")
    monkeypatch.setenv("RPGTRACKER_HOST", "localhost")
    monkeypatch.setenv("RPGTRACKER_PORT", "9000")
    monkeypatch.setenv("RPGTRACKER_LOG_LEVEL", "debug")
    monkeypatch.setenv("RPGTRACKER_STRICT_STATUS_TRANSITIONS", "yes")

    settings = load_settings()

    assert settings.database_url == "postgresql://local"
    assert settings.host == "localhost"
    assert settings.port == 9000
    assert settings.log_level == "DEBUG"
    assert settings.strict_status_transitions is True


def test_load_settings_applies_defaults(monkeypatch) -> None:
    monkeypatch.delenv("RPGTRACKER_DATABASE_URL", raising=False)
    monkeypatch.delenv("RPGTRACKER_HOST", raising=False)
    monkeypatch.delenv("RPGTRACKER_PORT", raising=False)
    monkeypatch.delenv("RPGTRACKER_LOG_LEVEL", raising=False)
    monkeypatch.delenv("RPGTRACKER_STRICT_STATUS_TRANSITIONS", raising=False)

    settings = load_settings()

    assert settings.database_url is None
    assert settings.host == "127.0.0.1"
    assert settings.port == 8000
    assert settings.log_level == "INFO"
    assert settings.strict_status_transitions is False


def test_load_settings_treats_empty_database_url_as_unset(monkeypatch) -> None:
    monkeypatch.setenv("RPGTRACKER_DATABASE_URL", "")

    assert load_settings().database_url is None


def test_configure_logging_uses_level_and_format(monkeypatch) -> None:
    calls: list[dict] = []
    monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: calls.append(kwargs))

    configure_logging("warning")

    assert calls == [{"level": "WARNING", "format": LOG_FORMAT}]

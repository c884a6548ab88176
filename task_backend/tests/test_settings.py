import pytest

from src.api.settings import SettingsError, get_settings


@pytest.fixture
def fresh_settings(monkeypatch):
    get_settings.cache_clear()
    monkeypatch.setenv("DATABASE_URL", "memory://")
    monkeypatch.setenv("JWT_SECRET", "s3cret")
    monkeypatch.delenv("APP_ENV", raising=False)
    monkeypatch.delenv("CORS_ALLOW_ORIGINS", raising=False)
    yield monkeypatch
    get_settings.cache_clear()


def test_defaults(fresh_settings):
    settings = get_settings()
    assert settings.database_url == "memory://"
    assert settings.jwt_secret == "s3cret"
    assert settings.backend == "memory"
    assert settings.is_production is False
    assert settings.cors_allow_origins == ["*"]


def test_settings_are_read_once(fresh_settings):
    first = get_settings()
    fresh_settings.setenv("JWT_SECRET", "changed")
    assert get_settings() is first


def test_production_and_origins(fresh_settings):
    fresh_settings.setenv("APP_ENV", "Production")
    fresh_settings.setenv("CORS_ALLOW_ORIGINS", "https://a.example, https://b.example")
    fresh_settings.setenv("DATABASE_URL", "sqlite:///./data/tasks.db")
    settings = get_settings()
    assert settings.is_production
    assert settings.cors_allow_origins == ["https://a.example", "https://b.example"]
    assert settings.backend == "sqlite"


@pytest.mark.parametrize("name", ["DATABASE_URL", "JWT_SECRET"])
def test_missing_required_setting_is_fatal(fresh_settings, name):
    fresh_settings.delenv(name)
    with pytest.raises(SettingsError, match=name):
        get_settings()


def test_blank_secret_is_fatal(fresh_settings):
    fresh_settings.setenv("JWT_SECRET", "   ")
    with pytest.raises(SettingsError):
        get_settings()


@pytest.mark.parametrize("url", ["postgres://db/tasks", "mongodb://localhost/tasks", "sqlite:///"])
def test_unsupported_database_url_is_fatal(fresh_settings, url):
    fresh_settings.setenv("DATABASE_URL", url)
    with pytest.raises(SettingsError):
        get_settings()

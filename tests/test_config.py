import pytest

from sheet_engine.runtime import DEFAULT_API_URL, EngineConfig


def test_defaults_without_environment() -> None:
    config = EngineConfig.from_env({})

    assert config.api_url == DEFAULT_API_URL
    assert config.backend == "http"
    assert config.http_timeout == 5.0
    assert config.confirm_delete is True


def test_environment_overrides() -> None:
    config = EngineConfig.from_env(
        {
            "SHEET_ENGINE_API_URL": "http://example.test/items",
            "SHEET_ENGINE_BACKEND": "MEMORY",
            "SHEET_ENGINE_HTTP_TIMEOUT": "1.5",
            "SHEET_ENGINE_CONFIRM_DELETE": "no",
        }
    )

    assert config.api_url == "http://example.test/items"
    assert config.backend == "memory"
    assert config.http_timeout == 1.5
    assert config.confirm_delete is False


def test_bad_timeout_falls_back() -> None:
    config = EngineConfig.from_env({"SHEET_ENGINE_HTTP_TIMEOUT": "soon"})

    assert config.http_timeout == 5.0


def test_unknown_backend_is_rejected() -> None:
    with pytest.raises(ValueError):
        EngineConfig.from_env({"SHEET_ENGINE_BACKEND": "sqlite"})


def test_with_overrides_skips_none() -> None:
    config = EngineConfig().with_overrides(api_url=None, backend="memory")

    assert config.api_url == DEFAULT_API_URL
    assert config.backend == "memory"

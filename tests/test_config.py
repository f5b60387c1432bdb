from pathlib import Path

import pytest

from codekit.config import Config


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("CODEKIT_API_URL", "CODEKIT_STORAGE_PATH", "CODEKIT_API_TOKEN"):
        monkeypatch.delenv(name, raising=False)


def test_missing_file_gives_defaults(tmp_path):
    config = Config.from_yaml(tmp_path / "absent.yaml")

    assert config.api_base_url == "http://localhost:5000"
    assert config.page_size == 20
    assert config.mobile_breakpoint == 768
    assert config.stale_time_seconds == 300.0


def test_yaml_values_are_read(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        "api_base_url: https://api.codekit.test\n"
        "storage_path: /tmp/codekit-store\n"
        "page_size: 5\n"
        "session_cookie: s%3Aabc\n"
        "utm_source: newsletter\n"
    )

    config = Config.from_yaml(path)

    assert config.api_base_url == "https://api.codekit.test"
    assert config.storage_path == Path("/tmp/codekit-store")
    assert config.page_size == 5
    assert config.session_cookie == "s%3Aabc"
    assert config.utm_source == "newsletter"


def test_environment_overrides_yaml(tmp_path, monkeypatch):
    path = tmp_path / "config.yaml"
    path.write_text("api_base_url: https://from-yaml.test\napi_token: yaml-token\n")
    monkeypatch.setenv("CODEKIT_API_URL", "https://from-env.test")
    monkeypatch.setenv("CODEKIT_API_TOKEN", "env-token")
    monkeypatch.setenv("CODEKIT_STORAGE_PATH", str(tmp_path / "env-store"))

    config = Config.from_yaml(path)

    assert config.api_base_url == "https://from-env.test"
    assert config.api_token == "env-token"
    assert config.storage_path == tmp_path / "env-store"


def test_invalid_page_size_rejected(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("page_size: 0\n")

    with pytest.raises(ValueError):
        Config.from_yaml(path)

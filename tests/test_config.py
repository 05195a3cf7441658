"""Tests for configuration loading."""

import pytest

from repo_rank.config import DEFAULT_LINTERS, RankSettings, load_config
from repo_rank.exceptions import ConfigurationError, InvalidConfigError


@pytest.fixture(autouse=True)
def isolated(tmp_path, monkeypatch):
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.chdir(tmp_path)
    for name in RankSettings.__dataclass_fields__:
        monkeypatch.delenv(f"REPO_RANK_{name.upper()}", raising=False)


class TestRankSettings:
    def test_defaults(self):
        settings = RankSettings()
        assert settings.wait_bound_seconds == 300.0
        assert settings.linters == DEFAULT_LINTERS
        assert settings.cache_ttl_seconds is None

    def test_ttl_seconds(self):
        assert RankSettings(cache_ttl_hours=2).cache_ttl_seconds == 7200

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"cache_ttl_hours": -1},
            {"wait_bound_seconds": 0},
            {"http_port": 70000},
            {"log_level": "loud"},
            {"linters": ()},
        ],
    )
    def test_invalid(self, kwargs):
        with pytest.raises(InvalidConfigError) as exc_info:
            RankSettings(**kwargs)
        assert exc_info.value.key == next(iter(kwargs))


class TestLoadConfig:
    def test_project_file(self, tmp_path):
        (tmp_path / "repo-rank.toml").write_text('http_port = 9001\nlinters = ["vet"]\n')
        settings = load_config()
        assert settings.http_port == 9001
        assert settings.linters == ("vet",)

    def test_namespaced_table(self, tmp_path):
        path = tmp_path / "custom.toml"
        path.write_text('[repo-rank]\nrequired_language = "Rust"\n')
        assert load_config(config_file=path).required_language == "Rust"

    def test_env_overrides_file(self, tmp_path, monkeypatch):
        (tmp_path / "repo-rank.toml").write_text("http_port = 9001\n")
        monkeypatch.setenv("REPO_RANK_HTTP_PORT", "9002")
        monkeypatch.setenv("REPO_RANK_LINTERS", "vet, golint")
        settings = load_config()
        assert settings.http_port == 9002
        assert settings.linters == ("vet", "golint")

    def test_overrides_win(self, monkeypatch):
        monkeypatch.setenv("REPO_RANK_HTTP_PORT", "9002")
        assert load_config(http_port=9003, http_host=None).http_port == 9003

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError):
            load_config(config_file=tmp_path / "missing.toml")

    def test_bad_toml(self, tmp_path):
        path = tmp_path / "bad.toml"
        path.write_text("http_port = = 1")
        with pytest.raises(ConfigurationError):
            load_config(config_file=path)

    def test_bad_env_value(self, monkeypatch):
        monkeypatch.setenv("REPO_RANK_WAIT_BOUND_SECONDS", "soon")
        with pytest.raises(InvalidConfigError) as exc_info:
            load_config()
        assert exc_info.value.key == "wait_bound_seconds"
        assert exc_info.value.value == "soon"

    def test_invalid_value(self):
        with pytest.raises(InvalidConfigError) as exc_info:
            load_config(http_port=0)
        assert isinstance(exc_info.value, ConfigurationError)
        assert exc_info.value.details["key"] == "http_port"

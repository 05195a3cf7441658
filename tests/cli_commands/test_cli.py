"""Tests for the repo-rank command line."""

import pytest
from typer.testing import CliRunner

from repo_rank import codec
from repo_rank.cli import app
from repo_rank.models import Category, RepositoryIdentifier, Score
from repo_rank.storage import DiskStore, cache_key

runner = CliRunner()


@pytest.fixture
def store_path(tmp_path, monkeypatch):
    path = tmp_path / "cache"
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("REPO_RANK_STORE_PATH", str(path))
    return path


def _put_score(path, identifier, rank):
    with DiskStore(str(path)) as store:
        store.put(cache_key(identifier, Category.SCORE), codec.encode(Category.SCORE, Score(70.0, rank)))


class TestRankCommand:
    def test_prints_cached_rank(self, store_path):
        _put_score(store_path, RepositoryIdentifier("github.com/org/project", "dev"), "B-")
        result = runner.invoke(app, ["rank", "github.com/org/project", "--branch", "dev"])
        assert result.exit_code == 0
        assert "B-" in result.output

    def test_no_rank(self, store_path):
        result = runner.invoke(app, ["rank", "github.com/org/project"])
        assert result.exit_code == 1
        assert "No rank cached" in result.output


class TestCacheCommands:
    def test_cached_reports_missing(self, store_path):
        result = runner.invoke(app, ["cached", "github.com/org/project"])
        assert result.exit_code == 1

    def test_cache_clear(self, store_path):
        identifier = RepositoryIdentifier("github.com/org/project")
        _put_score(store_path, identifier, "A")

        result = runner.invoke(app, ["cache-clear", "github.com/org/project"])

        assert result.exit_code == 0
        with DiskStore(str(store_path)) as store:
            assert store.get(cache_key(identifier, Category.SCORE)) is None

    def test_cache_info(self, store_path):
        _put_score(store_path, RepositoryIdentifier("github.com/org/project"), "A")
        result = runner.invoke(app, ["cache-info"])
        assert result.exit_code == 0
        assert "Entries" in result.output


class TestConfigErrors:
    def test_missing_config_file(self, store_path, tmp_path):
        result = runner.invoke(app, ["rank", "github.com/org/project", "-c", str(tmp_path / "nope.toml")])
        assert result.exit_code == 2
        assert "Configuration error" in result.output

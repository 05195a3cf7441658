"""Tests for the GitHub hosting provider."""

import httpx
import pytest

from repo_rank.exceptions import ProducerTransportError, ValidationError
from repo_rank.models import RepositoryIdentifier
from repo_rank.producers.github import GitHubProvider, split_name

REPO = {
    "language": "Go",
    "description": "A Go project",
    "stargazers_count": 321,
    "pushed_at": "2024-05-01T10:00:00Z",
    "owner": {"avatar_url": "https://avatars.example/u/7"},
}


def _provider(handler, language="Go"):
    client = httpx.Client(base_url="https://api.github.test", transport=httpx.MockTransport(handler))
    return GitHubProvider(required_language=language, client=client)


def _repo_handler(request):
    if request.url.path == "/repos/org/project":
        return httpx.Response(200, json=REPO)
    return httpx.Response(404, json={"message": "Not Found"})


class TestSplitName:
    def test_github_name(self, identifier):
        assert split_name(identifier) == ("org", "project")

    @pytest.mark.parametrize("name", ["gitlab.com/org/project", "github.com/org", "github.com/a/b/c"])
    def test_rejects_other_names(self, name):
        with pytest.raises(ValidationError):
            split_name(RepositoryIdentifier(name))


class TestCheck:
    def test_existing_repository(self, identifier):
        check = _provider(_repo_handler).check(identifier)
        assert check.exists
        assert check.primary_language_matches
        assert check.metadata.stars == 321
        assert check.metadata.image == "https://avatars.example/u/7"
        assert check.metadata.last_push.year == 2024

    def test_missing_repository(self):
        check = _provider(_repo_handler).check(RepositoryIdentifier("github.com/org/gone"))
        assert not check.exists

    def test_validate_not_found(self):
        with pytest.raises(ValidationError) as exc_info:
            _provider(_repo_handler).validate(RepositoryIdentifier("github.com/org/gone"))
        assert exc_info.value.reason == "not-found"

    def test_validate_language_mismatch(self, identifier):
        with pytest.raises(ValidationError) as exc_info:
            _provider(_repo_handler, language="Rust").validate(identifier)
        assert exc_info.value.reason == "language-mismatch"

    def test_server_error(self, identifier):
        with pytest.raises(ProducerTransportError):
            _provider(lambda request: httpx.Response(500)).check(identifier)


class TestFileContent:
    def test_reads_raw_file_on_branch(self, identifier):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, content=b"# Project\n")

        content = _provider(handler).get_file_content(identifier, "/README.md")

        assert content == b"# Project\n"
        assert seen[0].url.path == "/repos/org/project/contents/README.md"
        assert seen[0].url.params["ref"] == "master"
        assert seen[0].headers["accept"] == "application/vnd.github.raw"

    def test_missing_file(self, identifier):
        assert _provider(lambda request: httpx.Response(404)).get_file_content(identifier, "nope") is None

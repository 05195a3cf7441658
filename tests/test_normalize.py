"""Tests for import deduplication and lint filtering."""

from repo_rank.models import LintMessage
from repo_rank.normalize import dedupe_imports, filter_lint_messages


class TestDedupeImports:
    def test_collapses_same_repository(self):
        result = dedupe_imports(["host.com/org/a/sub1", "host.com/org/a/sub2", "other.com/pkg"])
        assert len(result) == 2
        assert set(result) == {"host.com/org/a", "other.com/pkg"}

    def test_order_independent(self):
        imports = ["b.com/x/y/z", "a.com/p/q", "b.com/x/y"]
        assert set(dedupe_imports(imports)) == set(dedupe_imports(list(reversed(imports))))

    def test_short_paths_kept_whole(self):
        assert dedupe_imports(["gopkg.in/yaml.v2"]) == ["gopkg.in/yaml.v2"]

    def test_empty(self):
        assert dedupe_imports([]) == []

    def test_exact_duplicates(self):
        assert dedupe_imports(["a.com/b/c", "a.com/b/c"]) == ["a.com/b/c"]


class TestFilterLintMessages:
    def test_keeps_only_allowed_linters(self, lint_messages):
        result = filter_lint_messages(lint_messages, ["golint", "vet"])
        assert set(result) == {"golint", "vet"}

    def test_does_not_mutate_input(self):
        messages = {"vet": [LintMessage(path="a.go", line=1)]}
        result = filter_lint_messages(messages, ["vet"])
        result["vet"].clear()
        assert len(messages["vet"]) == 1

    def test_empty_allow_list(self, lint_messages):
        assert filter_lint_messages(lint_messages, []) == {}

"""Tests for InvalidationPlanner."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import pytest

from s3_deploy._errors import InvalidationError, StorageError
from s3_deploy._invalidation import InvalidationPlanner, caller_reference, invalidation_path
from s3_deploy._models import UploadResult

if TYPE_CHECKING:
    from collections.abc import Callable


def _result(key: str, etag: str) -> UploadResult:
    return UploadResult(remote_key=key, content_hash=etag, bytes_transferred=1)


class TestSelectChanged:
    def test_new_key(self) -> None:
        assert InvalidationPlanner.select_changed({}, [_result("a.txt", '"1"')]) == ["a.txt"]

    def test_unchanged_key(self) -> None:
        assert InvalidationPlanner.select_changed({"a.txt": '"1"'}, [_result("a.txt", '"1"')]) == []

    def test_changed_key(self) -> None:
        assert InvalidationPlanner.select_changed({"a.txt": '"1"'}, [_result("a.txt", '"2"')]) == ["a.txt"]

    def test_last_write_wins(self) -> None:
        index = {"index.html": '"orig"'}
        results = [_result("index.html", '"stub"'), _result("index.html", '"orig"')]
        assert InvalidationPlanner.select_changed(index, results) == []

    def test_untouched_remote_keys_ignored(self) -> None:
        index = {"old.txt": '"1"', "a.txt": '"1"'}
        assert InvalidationPlanner.select_changed(index, [_result("a.txt", '"1"')]) == []

    def test_always_selects_rewritten_key(self) -> None:
        index = {"index.html": '"orig"', "a.txt": '"1"'}
        results = [_result("index.html", '"stub"'), _result("a.txt", '"1"'), _result("index.html", '"orig"')]
        assert InvalidationPlanner.select_changed(index, results, always=["index.html"]) == ["index.html"]

    def test_always_ignores_unwritten_key(self) -> None:
        assert InvalidationPlanner.select_changed({}, [], always=["index.html"]) == []


class TestInvalidate:
    def test_nothing_changed_makes_no_call(self, fake_cdn: Callable[..., Any]) -> None:
        cdn = fake_cdn()
        planner = InvalidationPlanner(cdn, "E123")
        assert planner.invalidate({"a.txt": '"1"'}, [_result("a.txt", '"1"')]) is None
        assert cdn.calls == []

    def test_single_call_with_slash_paths(self, fake_cdn: Callable[..., Any]) -> None:
        cdn = fake_cdn()
        planner = InvalidationPlanner(cdn, "E123")
        results = [_result("static/a.txt", '"1"'), _result("static/b.css", '"2"'), _result("static/c.js", '"3"')]
        invalidation_id = planner.invalidate({"static/c.js": '"3"'}, results, reference="ref-1")

        assert invalidation_id == "I2J0I21PCUYOIK"
        assert cdn.calls == [("E123", ["/static/a.txt", "/static/b.css"], "ref-1")]

    def test_generates_reference(self, fake_cdn: Callable[..., Any]) -> None:
        cdn = fake_cdn()
        InvalidationPlanner(cdn, "E123").invalidate({}, [_result("a.txt", '"1"')])
        assert cdn.calls[0][2].startswith("s3-deploy-")

    def test_always_key_invalidated(self, fake_cdn: Callable[..., Any]) -> None:
        cdn = fake_cdn()
        planner = InvalidationPlanner(cdn, "E123")
        results = [_result("www/index.html", '"stub"'), _result("www/index.html", '"orig"')]
        planner.invalidate({"www/index.html": '"orig"'}, results, always=["www/index.html"], reference="ref-1")
        assert cdn.calls == [("E123", ["/www/index.html"], "ref-1")]

    def test_paths_percent_encoded(self, fake_cdn: Callable[..., Any]) -> None:
        cdn = fake_cdn()
        results = [_result("docs/my page.html", '"1"'), _result("café.html", '"2"'), _result("~user/a+b.txt", '"3"')]
        InvalidationPlanner(cdn, "E123").invalidate({}, results, reference="ref-1")
        assert cdn.calls[0][1] == ["/docs/my%20page.html", "/caf%C3%A9.html", "/~user/a%2Bb.txt"]

    def test_failure(self, fake_cdn: Callable[..., Any]) -> None:
        planner = InvalidationPlanner(fake_cdn(fail=True), "E123")
        with pytest.raises(InvalidationError) as exc_info:
            planner.invalidate({}, [_result("a.txt", '"1"')])
        assert isinstance(exc_info.value.__cause__, StorageError)


class TestCallerReference:
    def test_unique(self) -> None:
        assert len({caller_reference() for _ in range(50)}) == 50


class TestInvalidationPath:
    @pytest.mark.parametrize(
        ("key", "path"),
        [
            ("index.html", "/index.html"),
            ("static/css/site.css", "/static/css/site.css"),
            ("a b/c d.txt", "/a%20b/c%20d.txt"),
            ("naïve.html", "/na%C3%AFve.html"),
            ("q?x=1#frag", "/q%3Fx%3D1%23frag"),
        ],
    )
    def test_encoding(self, key: str, path: str) -> None:
        assert invalidation_path(key) == path

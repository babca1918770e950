"""Tests for GitHub PR fetching, filtering and issue enrichment."""
from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from release_notes.github import (
    GITHUB_API_URL,
    GitHubRequestError,
    fetch_issue_details,
    fetch_merged_prs,
    merge_window,
    passes_label_filters,
)

OWNER = "test-owner"
REPO = "test-repo"
PULLS_PATH = f"/repos/{OWNER}/{REPO}/pulls"


def _list_item(
    number: int,
    merged_at: str | None,
    title: str | None = None,
    labels: list[str] | None = None,
) -> dict[str, object]:
    return {
        "number": number,
        "title": title or f"PR #{number}",
        "user": {"login": f"user-{number}"},
        "labels": [{"name": name} for name in labels or []],
        "merged_at": merged_at,
        "milestone": None,
        "body": f"Body of PR #{number}",
        "html_url": f"https://github.com/{OWNER}/{REPO}/pull/{number}",
    }


def _detail(number: int, additions: int = 100, deletions: int = 50, changed_files: int = 5) -> dict[str, object]:
    return {
        "number": number,
        "additions": additions,
        "deletions": deletions,
        "changed_files": changed_files,
    }


def _response(status_code: int, payload: object) -> MagicMock:
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = payload
    response.text = str(payload)
    return response


class FakeGitHub:
    """Serves canned responses keyed by REST path."""

    def __init__(self, pages: list[list[dict[str, object]]], routes: dict[str, MagicMock]) -> None:
        self.pages = pages
        self.routes = routes
        self.calls: list[str] = []

    def __call__(self, url: str, headers=None, params=None, timeout=None) -> MagicMock:
        path = url.removeprefix(GITHUB_API_URL)
        self.calls.append(path)
        if path == PULLS_PATH:
            page = params["page"]
            return _response(200, self.pages[page - 1] if page <= len(self.pages) else [])
        if path in self.routes:
            return self.routes[path]
        return _response(404, {"message": "Not Found"})


def _fetch(fake: FakeGitHub, **kwargs) -> list:
    with patch("release_notes.github.requests.get", side_effect=fake):
        return fetch_merged_prs(OWNER, REPO, "2026-01-01", "2026-01-31", "fake-token", **kwargs)


class TestFetchMergedPRs:
    def test_filters_merged_prs_within_range(self):
        fake = FakeGitHub(
            [[
                _list_item(1, "2026-01-10T12:00:00Z"),
                _list_item(2, "2026-01-20T12:00:00Z"),
                _list_item(3, None),
                _list_item(4, "2025-12-15T12:00:00Z"),
                _list_item(5, "2026-02-05T12:00:00Z"),
            ]],
            {
                f"{PULLS_PATH}/1": _response(200, _detail(1, 200, 50, 10)),
                f"{PULLS_PATH}/2": _response(200, _detail(2, 100, 30, 5)),
            },
        )
        prs = _fetch(fake)
        assert [pr.number for pr in prs] == [1, 2]
        assert prs[0].additions == 200
        assert prs[0].changed_files == 10
        assert prs[0].author == "user-1"
        assert prs[1].additions == 100
        assert f"{PULLS_PATH}/4" not in fake.calls
        assert f"{PULLS_PATH}/5" not in fake.calls

    def test_end_date_includes_whole_day(self):
        fake = FakeGitHub(
            [[_list_item(1, "2026-01-31T23:59:00Z"), _list_item(2, "2026-01-01T00:00:00Z")]],
            {
                f"{PULLS_PATH}/1": _response(200, _detail(1)),
                f"{PULLS_PATH}/2": _response(200, _detail(2)),
            },
        )
        assert [pr.number for pr in _fetch(fake)] == [1, 2]

    def test_paginates_until_short_page(self):
        page1 = [
            _list_item(i + 1, "2026-01-15T12:00:00Z" if i < 3 else "2025-06-01T00:00:00Z")
            for i in range(100)
        ]
        page2 = [_list_item(200, "2026-01-16T12:00:00Z")]
        routes = {f"{PULLS_PATH}/{n}": _response(200, _detail(n)) for n in (1, 2, 3, 200)}
        fake = FakeGitHub([page1, page2], routes)
        prs = _fetch(fake)
        assert [pr.number for pr in prs] == [1, 2, 3, 200]
        assert fake.calls.count(PULLS_PATH) == 2

    def test_stops_on_empty_page(self):
        page1 = [_list_item(i + 1, "2025-06-01T00:00:00Z") for i in range(100)]
        fake = FakeGitHub([page1], {})
        assert _fetch(fake) == []
        assert fake.calls.count(PULLS_PATH) == 2

    def test_preserves_listing_order(self):
        numbers = [9, 3, 7, 1, 5]
        fake = FakeGitHub(
            [[_list_item(n, "2026-01-10T12:00:00Z") for n in numbers]],
            {f"{PULLS_PATH}/{n}": _response(200, _detail(n)) for n in numbers},
        )
        assert [pr.number for pr in _fetch(fake)] == numbers

    def test_exclude_labels(self):
        fake = FakeGitHub(
            [[
                _list_item(1, "2026-01-10T12:00:00Z", labels=["skip-me"]),
                _list_item(2, "2026-01-20T12:00:00Z", labels=["feature"]),
            ]],
            {f"{PULLS_PATH}/2": _response(200, _detail(2))},
        )
        prs = _fetch(fake, exclude_labels=["skip-me"])
        assert [pr.number for pr in prs] == [2]
        assert prs[0].labels == ("feature",)

    def test_include_labels(self):
        fake = FakeGitHub(
            [[
                _list_item(1, "2026-01-10T12:00:00Z", labels=["feature"]),
                _list_item(2, "2026-01-20T12:00:00Z", labels=["chore"]),
            ]],
            {f"{PULLS_PATH}/1": _response(200, _detail(1))},
        )
        prs = _fetch(fake, include_labels=["feature"])
        assert [pr.number for pr in prs] == [1]

    def test_empty_listing(self):
        assert _fetch(FakeGitHub([], {})) == []

    def test_links_issue_from_title(self):
        fake = FakeGitHub(
            [[_list_item(1, "2026-01-10T12:00:00Z", title="#2964 Improve error handling")]],
            {
                f"{PULLS_PATH}/1": _response(200, _detail(1)),
                f"/repos/{OWNER}/{REPO}/issues/2964": _response(
                    200,
                    {
                        "number": 2964,
                        "title": "admin portal is full of console errors",
                        "html_url": f"https://github.com/{OWNER}/{REPO}/issues/2964",
                        "labels": [{"name": "bug"}],
                    },
                ),
            },
        )
        [pr] = _fetch(fake)
        assert pr.linked_issue is not None
        assert pr.linked_issue.number == 2964
        assert pr.linked_issue.labels == ("bug",)
        assert pr.linked_issue.type == "Bug"

    def test_missing_issue_is_not_an_error(self):
        fake = FakeGitHub(
            [[_list_item(1, "2026-01-10T12:00:00Z", title="3156 - Feature description")]],
            {f"{PULLS_PATH}/1": _response(200, _detail(1))},
        )
        [pr] = _fetch(fake)
        assert pr.linked_issue is None
        assert f"/repos/{OWNER}/{REPO}/issues/3156" in fake.calls

    def test_listing_error_raises(self):
        with patch(
            "release_notes.github.requests.get",
            return_value=_response(401, {"message": "Bad credentials"}),
        ), pytest.raises(GitHubRequestError, match="401"):
            fetch_merged_prs(OWNER, REPO, "2026-01-01", "2026-01-31", "bad-token")

    def test_detail_error_raises(self):
        fake = FakeGitHub([[_list_item(1, "2026-01-10T12:00:00Z")]], {})
        with pytest.raises(GitHubRequestError, match="404"):
            _fetch(fake)

    def test_sends_token(self):
        fake = FakeGitHub([], {})
        with patch("release_notes.github.requests.get", side_effect=fake) as mock_get:
            fetch_merged_prs(OWNER, REPO, "2026-01-01", "2026-01-31", "secret")
        headers = mock_get.call_args.kwargs["headers"]
        assert headers["Authorization"] == "Bearer secret"


class TestFetchIssueDetails:
    def test_returns_none_on_failure(self):
        with patch(
            "release_notes.github.requests.get",
            return_value=_response(404, {"message": "Not Found"}),
        ):
            assert fetch_issue_details(OWNER, REPO, 1234, "token") is None

    def test_skips_empty_label_names(self):
        payload = {
            "number": 7,
            "title": "Docs",
            "html_url": "https://github.com/x/y/issues/7",
            "labels": [{"name": ""}, {"name": "documentation"}, "plain"],
        }
        with patch("release_notes.github.requests.get", return_value=_response(200, payload)):
            issue = fetch_issue_details(OWNER, REPO, 7, "token")
        assert issue is not None
        assert issue.labels == ("documentation", "plain")
        assert issue.type == "Documentation"


class TestHelpers:
    def test_merge_window_bounds(self):
        start, end = merge_window("2026-01-01", "2026-01-31")
        assert start.isoformat() == "2026-01-01T00:00:00+00:00"
        assert (end.year, end.month, end.day, end.hour, end.minute) == (2026, 1, 31, 23, 59)

    def test_label_filters(self):
        assert passes_label_filters(["a"], None, None)
        assert passes_label_filters(["a"], ["a", "b"], None)
        assert not passes_label_filters(["c"], ["a"], None)
        assert not passes_label_filters(["a", "x"], None, ["x"])
        assert not passes_label_filters([], ["a"], None)

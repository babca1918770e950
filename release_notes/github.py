"""Fetch merged PRs and their linked issues from the GitHub REST API."""
from __future__ import annotations

import concurrent.futures
import time
from datetime import UTC, datetime, time as dt_time
from typing import cast

import requests
from loguru import logger

from release_notes.issues import extract_issue_number, infer_issue_type
from release_notes.models import LinkedIssue, PullRequest

GITHUB_API_URL = "https://api.github.com"
PER_PAGE = 100
HTTP_ERROR_THRESHOLD = 400
REQUEST_TIMEOUT = 30
JSONDict = dict[str, object]
JSONList = list[object]


class GitHubRequestError(RuntimeError):
    """Raised when a GitHub REST request fails."""

    def __init__(self, status_code: int, text: str) -> None:
        """Create a GitHub request error."""
        super().__init__(f"GitHub request failed ({status_code}): {text}")
        self.status_code = status_code


def ensure_dict(value: object, _context: str) -> JSONDict:
    """Return a dictionary value or raise."""
    if isinstance(value, dict):
        return cast("JSONDict", value)
    raise TypeError


def ensure_list(value: object, _context: str) -> JSONList:
    """Return a list value or raise."""
    if isinstance(value, list):
        return cast("JSONList", value)
    raise TypeError


def ensure_str(value: object, _context: str, default: str = "") -> str:
    """Return a string value or a default."""
    if isinstance(value, str):
        return value
    if value is None:
        return default
    raise TypeError


def ensure_int(value: object, _context: str) -> int:
    """Return an integer value or raise."""
    if isinstance(value, int):
        return value
    raise TypeError


def github_headers(token: str | None) -> dict[str, str]:
    """Return GitHub API headers, authenticated when a token is given."""
    headers = {"Accept": "application/vnd.github+json"}
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return headers


def call_github(path: str, token: str | None, params: JSONDict | None = None) -> object:
    """GET a GitHub REST path and return the decoded JSON body."""
    response = requests.get(
        f"{GITHUB_API_URL}{path}",
        headers=github_headers(token),
        params=params,
        timeout=REQUEST_TIMEOUT,
    )
    if response.status_code >= HTTP_ERROR_THRESHOLD:
        raise GitHubRequestError(response.status_code, response.text)
    return response.json()


def parse_timestamp(value: str) -> datetime:
    """Parse a GitHub ISO-8601 timestamp into an aware UTC datetime."""
    return datetime.fromisoformat(value.replace("Z", "+00:00")).astimezone(UTC)


def merge_window(from_date: str, to_date: str) -> tuple[datetime, datetime]:
    """Return the inclusive UTC bounds covering both calendar days."""
    start = datetime.combine(datetime.fromisoformat(from_date).date(), dt_time.min, UTC)
    end = datetime.combine(datetime.fromisoformat(to_date).date(), dt_time.max, UTC)
    return start, end


def extract_label_names(container: JSONDict) -> list[str]:
    """Extract non-empty label names from a PR or issue payload."""
    labels: list[str] = []
    for label in ensure_list(container.get("labels") or [], "labels"):
        if isinstance(label, str):
            name = label
        else:
            name = ensure_str(ensure_dict(label, "label").get("name"), "label.name")
        if name:
            labels.append(name)
    return labels


def passes_label_filters(
    labels: list[str],
    include_labels: list[str] | None,
    exclude_labels: list[str] | None,
) -> bool:
    """Apply the include/exclude label filters."""
    if include_labels and not any(label in include_labels for label in labels):
        return False
    if exclude_labels and any(label in exclude_labels for label in labels):
        return False
    return True


def fetch_pr_detail(
    owner: str,
    repo: str,
    number: int,
    token: str | None,
) -> dict[str, int]:
    """Fetch additions, deletions and changed files for one PR."""
    path = f"/repos/{owner}/{repo}/pulls/{number}"
    data = ensure_dict(call_github(path, token), "pull")
    return {
        "additions": ensure_int(data.get("additions"), "additions"),
        "deletions": ensure_int(data.get("deletions"), "deletions"),
        "changed_files": ensure_int(data.get("changed_files"), "changed_files"),
    }


def fetch_issue_details(
    owner: str,
    repo: str,
    issue_number: int,
    token: str | None,
) -> LinkedIssue | None:
    """Fetch a linked issue, or None when it cannot be resolved."""
    try:
        data = ensure_dict(
            call_github(f"/repos/{owner}/{repo}/issues/{issue_number}", token),
            "issue",
        )
        labels = extract_label_names(data)
        return LinkedIssue(
            number=ensure_int(data.get("number"), "issue.number"),
            title=ensure_str(data.get("title"), "issue.title"),
            url=ensure_str(data.get("html_url"), "issue.html_url"),
            labels=labels,
            type=infer_issue_type(labels),
        )
    except (
        GitHubRequestError,
        requests.RequestException,
        TypeError,
        ValueError,
    ) as exc:
        logger.debug(
            "Could not fetch issue details (may not exist)",
            issue_number=issue_number,
            error=str(exc),
        )
        return None


def build_pull_request(
    owner: str,
    repo: str,
    summary: JSONDict,
    token: str | None,
) -> PullRequest:
    """Enrich a listing entry with its detail counts and linked issue."""
    number = ensure_int(summary.get("number"), "number")
    title = ensure_str(summary.get("title"), "title")
    detail = fetch_pr_detail(owner, repo, number, token)
    issue_number = extract_issue_number(title)
    linked_issue = None
    if issue_number is not None:
        linked_issue = fetch_issue_details(owner, repo, issue_number, token)
    milestone = ensure_dict(summary.get("milestone") or {}, "milestone")
    user = ensure_dict(summary.get("user") or {}, "user")
    return PullRequest(
        number=number,
        title=title,
        author=ensure_str(user.get("login"), "user.login", "unknown"),
        labels=extract_label_names(summary),
        merged_at=ensure_str(summary.get("merged_at"), "merged_at"),
        additions=detail["additions"],
        deletions=detail["deletions"],
        changed_files=detail["changed_files"],
        milestone=ensure_str(milestone.get("title"), "milestone.title") or None,
        body=ensure_str(summary.get("body"), "body") or None,
        html_url=ensure_str(summary.get("html_url"), "html_url"),
        linked_issue=linked_issue,
    )


def select_page_candidates(
    pulls: JSONList,
    window: tuple[datetime, datetime],
    include_labels: list[str] | None,
    exclude_labels: list[str] | None,
) -> list[JSONDict]:
    """Keep merged PRs inside the window that pass the label filters.

    The listing is sorted by update time, so a PR merged long ago can still
    appear on any page; pagination therefore never stops early.
    """
    start, end = window
    candidates: list[JSONDict] = []
    for pull in pulls:
        pull_dict = ensure_dict(pull, "pull")
        merged_at = ensure_str(pull_dict.get("merged_at"), "merged_at")
        if not merged_at:
            continue
        merged = parse_timestamp(merged_at)
        if merged < start or merged > end:
            continue
        labels = extract_label_names(pull_dict)
        if not passes_label_filters(labels, include_labels, exclude_labels):
            continue
        candidates.append(pull_dict)
    return candidates


def enrich_candidates(
    owner: str,
    repo: str,
    candidates: list[JSONDict],
    token: str | None,
) -> list[PullRequest]:
    """Enrich PRs in parallel, returning them in listing order."""
    if not candidates:
        return []
    results: list[PullRequest | None] = [None] * len(candidates)
    with concurrent.futures.ThreadPoolExecutor() as executor:
        futures = {
            executor.submit(build_pull_request, owner, repo, candidate, token): index
            for index, candidate in enumerate(candidates)
        }
        for future in concurrent.futures.as_completed(futures):
            pr = future.result()
            results[futures[future]] = pr
            logger.debug("Collected merged PR", pr=pr.number, title=pr.title)
    return [pr for pr in results if pr is not None]


def fetch_merged_prs(
    owner: str,
    repo: str,
    from_date: str,
    to_date: str,
    token: str | None,
    include_labels: list[str] | None = None,
    exclude_labels: list[str] | None = None,
) -> list[PullRequest]:
    """Fetch merged PRs for ``owner/repo`` merged within [from_date, to_date]."""
    logger.info(
        "Fetching merged PRs from GitHub API",
        owner=owner,
        repo=repo,
        since=from_date,
        until=to_date,
    )
    start = time.perf_counter()
    window = merge_window(from_date, to_date)
    merged: list[PullRequest] = []
    page = 1
    while True:
        pulls = ensure_list(
            call_github(
                f"/repos/{owner}/{repo}/pulls",
                token,
                {
                    "state": "closed",
                    "sort": "updated",
                    "direction": "desc",
                    "per_page": PER_PAGE,
                    "page": page,
                },
            ),
            "pulls",
        )
        logger.debug("Retrieved PR page", page=page, count=len(pulls))
        if not pulls:
            break
        candidates = select_page_candidates(
            pulls,
            window,
            include_labels,
            exclude_labels,
        )
        merged.extend(enrich_candidates(owner, repo, candidates, token))
        if len(pulls) < PER_PAGE:
            break
        page += 1
    logger.info(
        "Finished fetching merged PRs",
        count=len(merged),
        elapsed=f"{time.perf_counter() - start:.2f}s",
    )
    return merged

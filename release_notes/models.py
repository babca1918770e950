"""Pull request records and the aggregates built from them."""
from __future__ import annotations

from typing import cast

from pydantic import BaseModel, ConfigDict, Field


class LinkedIssue(BaseModel):
    """Issue referenced by a PR title, resolved from GitHub."""

    model_config = ConfigDict(frozen=True)

    number: int
    title: str
    url: str
    labels: tuple[str, ...]
    type: str


class PullRequest(BaseModel):
    """Merged PR data used for release notes generation."""

    model_config = ConfigDict(frozen=True)

    number: int
    title: str
    author: str
    labels: tuple[str, ...]
    merged_at: str
    additions: int = Field(ge=0)
    deletions: int = Field(ge=0)
    changed_files: int = Field(ge=0)
    milestone: str | None = None
    body: str | None = None
    html_url: str
    linked_issue: LinkedIssue | None = None


class CategorizedPRs(BaseModel):
    """PRs partitioned into the five release-notes buckets."""

    features: list[PullRequest] = Field(default_factory=list)
    bug_fixes: list[PullRequest] = Field(default_factory=list)
    security: list[PullRequest] = Field(default_factory=list)
    refactoring: list[PullRequest] = Field(default_factory=list)
    other: list[PullRequest] = Field(default_factory=list)

    def bucket(self, category: str) -> list[PullRequest]:
        """Return the bucket list for a category name."""
        if category not in type(self).model_fields:
            raise KeyError(category)
        return cast("list[PullRequest]", getattr(self, category))


class ContributorEntry(BaseModel):
    """Contributor leaderboard row."""

    username: str
    count: int


class SummaryStats(BaseModel):
    """Aggregated statistics for the executive summary."""

    total_prs: int
    total_contributors: int
    total_additions: int
    total_deletions: int
    total_files_changed: int
    feature_count: int
    bug_fix_count: int
    refactor_count: int
    security_count: int
    other_count: int

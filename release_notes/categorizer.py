"""Categorize PRs into release-notes buckets.

Labels are checked first; the title is only consulted when no label matches.
Both rule tables are evaluated in order and the first match wins.
"""
from __future__ import annotations

from release_notes.models import CategorizedPRs, PullRequest

FEATURES = "features"
BUG_FIXES = "bug_fixes"
SECURITY = "security"
REFACTORING = "refactoring"
OTHER = "other"
CATEGORY_ORDER = (FEATURES, BUG_FIXES, SECURITY, REFACTORING, OTHER)

LABEL_RULES: list[tuple[frozenset[str], str]] = [
    (frozenset({"feature", "enhancement"}), FEATURES),
    (frozenset({"bug", "fix", "bugfix", "hotfix"}), BUG_FIXES),
    (frozenset({"security", "vulnerability", "cve"}), SECURITY),
    (
        frozenset({"refactor", "chore", "maintenance", "infra", "ci", "docs"}),
        REFACTORING,
    ),
]

# Security comes first so that "patch" in a security title is not a bug fix.
TITLE_KEYWORD_RULES: list[tuple[tuple[str, ...], str]] = [
    (("security", "cve", "vulnerability"), SECURITY),
    (("feat", "feature", "add", "new"), FEATURES),
    (("fix", "bug", "patch", "hotfix"), BUG_FIXES),
    (
        ("refactor", "chore", "cleanup", "clean up", "infra", "ci", "docs"),
        REFACTORING,
    ),
]


def categorize_pr(pr: PullRequest) -> str:
    """Return the bucket name for a single PR."""
    labels = {label.lower() for label in pr.labels}
    for label_set, category in LABEL_RULES:
        if labels & label_set:
            return category

    title = pr.title.lower()
    for keywords, category in TITLE_KEYWORD_RULES:
        if any(keyword in title for keyword in keywords):
            return category
    return OTHER


def categorize_prs(prs: list[PullRequest]) -> CategorizedPRs:
    """Partition PRs into buckets, keeping input order within each bucket."""
    categorized = CategorizedPRs()
    for pr in prs:
        categorized.bucket(categorize_pr(pr)).append(pr)
    return categorized

"""Compose the Markdown release notes document."""
from __future__ import annotations

from datetime import UTC, datetime

from release_notes.categorizer import (
    BUG_FIXES,
    CATEGORY_ORDER,
    FEATURES,
    OTHER,
    REFACTORING,
    SECURITY,
    categorize_prs,
)
from release_notes.models import ContributorEntry, PullRequest
from release_notes.summary import (
    build_contributor_list,
    compute_summary,
    plural,
    render_summary_text,
)

SECTION_DELIMITER = "\n\n---\n\n"
CATEGORY_HEADINGS = {
    FEATURES: "🚀 Features",
    BUG_FIXES: "🐛 Bug Fixes",
    SECURITY: "🔐 Security",
    REFACTORING: "🧹 Refactoring / Maintenance",
    OTHER: "📦 Other Changes",
}
NO_CHANGES_TEXT = "_No changes in this period._"
NO_CONTRIBUTORS_TEXT = "_No contributors in this period._"
NO_LINKED_ISSUE_TEXT = "_No linked issue_"


def render_pr_entry(pr: PullRequest) -> str:
    """Render a single PR entry as a nested Markdown list."""
    lines = [
        f"- **[PR #{pr.number}]({pr.html_url})** – {pr.title}",
        f"  - Author: @{pr.author}",
        f"  - Merged: {pr.merged_at[:10]}",
    ]
    issue = pr.linked_issue
    if issue:
        lines.append(f"  - Issue: [#{issue.number}]({issue.url}) – {issue.title}")
        lines.append(f"    - Labels: {', '.join(issue.labels) or 'none'}")
        lines.append(f"    - Type: {issue.type}")
    else:
        lines.append(f"  - Issue: {NO_LINKED_ISSUE_TEXT}")
    lines.append(
        f"  - Files changed: {pr.changed_files} (+{pr.additions} / -{pr.deletions})",
    )
    if pr.labels:
        lines.append(f"  - Labels: {', '.join(pr.labels)}")
    return "\n".join(lines)


def render_category_section(heading: str, prs: list[PullRequest]) -> str:
    """Render a category subsection, or an empty string for no PRs."""
    if not prs:
        return ""
    entries = "\n\n".join(render_pr_entry(pr) for pr in prs)
    return f"### {heading}\n\n{entries}"


def render_contributors(contributors: list[ContributorEntry]) -> str:
    """Render the contributor leaderboard as a bullet list."""
    if not contributors:
        return NO_CONTRIBUTORS_TEXT
    return "\n".join(
        f"- @{entry.username} ({entry.count} {plural(entry.count, 'PR')})"
        for entry in contributors
    )


def generate_release_notes(
    owner: str,
    repo: str,
    from_date: str,
    to_date: str,
    prs: list[PullRequest],
    generated_at: datetime | None = None,
) -> str:
    """Generate the complete Markdown release notes.

    The document holds a header, the executive summary, the changes grouped
    by category and the contributor leaderboard, separated by horizontal
    rules.
    """
    categorized = categorize_prs(prs)
    stats = compute_summary(prs, categorized)
    contributors = build_contributor_list(prs)
    generated = (generated_at or datetime.now(UTC)).astimezone(UTC)

    header = "\n".join(
        [
            "# Release Notes",
            "",
            f"**Repository:** {owner}/{repo}  ",
            f"**Period:** {from_date} → {to_date}  ",
            f"**Generated:** {generated.strftime('%Y-%m-%dT%H:%M:%SZ')}",
        ],
    )
    summary = f"## Executive Summary\n\n{render_summary_text(stats)}"

    category_sections = [
        render_category_section(
            CATEGORY_HEADINGS[category],
            categorized.bucket(category),
        )
        for category in CATEGORY_ORDER
    ]
    rendered = "\n\n".join(section for section in category_sections if section)
    changes = f"## Changes by Category\n\n{rendered or NO_CHANGES_TEXT}"

    contributors_section = f"## Contributors\n\n{render_contributors(contributors)}"

    sections = [header, summary, changes, contributors_section]
    return SECTION_DELIMITER.join(sections) + "\n"

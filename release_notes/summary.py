"""Executive summary statistics and narrative."""
from __future__ import annotations

from collections import Counter

from release_notes.models import (
    CategorizedPRs,
    ContributorEntry,
    PullRequest,
    SummaryStats,
)

SUMMARY_LINE_BREAK = "  \n"


def compute_summary(
    prs: list[PullRequest],
    categorized: CategorizedPRs,
) -> SummaryStats:
    """Gather aggregate statistics used by the executive summary."""
    return SummaryStats(
        total_prs=len(prs),
        total_contributors=len({pr.author for pr in prs}),
        total_additions=sum(pr.additions for pr in prs),
        total_deletions=sum(pr.deletions for pr in prs),
        total_files_changed=sum(pr.changed_files for pr in prs),
        feature_count=len(categorized.features),
        bug_fix_count=len(categorized.bug_fixes),
        refactor_count=len(categorized.refactoring),
        security_count=len(categorized.security),
        other_count=len(categorized.other),
    )


def build_contributor_list(prs: list[PullRequest]) -> list[ContributorEntry]:
    """Build the contributor leaderboard sorted by PR count, descending.

    Ties keep the order in which authors first appear in ``prs``.
    """
    counts = Counter(pr.author for pr in prs)
    entries = [
        ContributorEntry(username=name, count=count)
        for name, count in counts.items()
    ]
    return sorted(entries, key=lambda entry: entry.count, reverse=True)


def format_number(n: int) -> str:
    """Format an integer with thousands separators."""
    return f"{n:,}"


def plural(count: int, word: str) -> str:
    """Return ``word`` with an ``s`` suffix unless count is exactly one."""
    return word if count == 1 else f"{word}s"


def render_summary_text(stats: SummaryStats) -> str:
    """Produce the textual executive summary paragraph."""
    lines = [
        f"This release includes **{stats.total_prs}** "
        f"merged {plural(stats.total_prs, 'pull request')} "
        f"from **{stats.total_contributors}** "
        f"{plural(stats.total_contributors, 'contributor')}.",
    ]

    focus_counts = [
        ("new features", stats.feature_count),
        ("bug fixes", stats.bug_fix_count),
        ("infrastructure / refactoring", stats.refactor_count),
        ("security improvements", stats.security_count),
        ("other changes", stats.other_count),
    ]
    focus_areas = [f"{label} ({count})" for label, count in focus_counts if count > 0]
    if focus_areas:
        lines.append(f"Major focus areas: {', '.join(focus_areas)}.")

    lines.append(
        f"Total code delta: **+{format_number(stats.total_additions)}** / "
        f"**-{format_number(stats.total_deletions)}** lines across "
        f"**{format_number(stats.total_files_changed)}** files.",
    )
    return SUMMARY_LINE_BREAK.join(lines)

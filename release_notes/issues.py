"""Issue references carried in PR titles."""
from __future__ import annotations

import re

# Each pattern is anchored at the start of the title; the first match wins.
ISSUE_TITLE_PATTERNS: list[re.Pattern[str]] = [
    # fix(634): ... / feat(#123): ...
    re.compile(r"[a-z]+\(#?(\d+)\):"),
    # #2964 Improve ...
    re.compile(r"#(\d+)\s+"),
    # 3156 - ... / 3156: ... / 3156- ...
    re.compile(r"(\d+)\s*[-:]\s*"),
    # 3178 edr virus scan ... (a letter must follow, so "1234" alone is rejected)
    re.compile(r"(\d+)\s+[a-zA-Z]"),
]

ISSUE_TYPE_RULES: list[tuple[tuple[str, ...], str]] = [
    (("bug", "fix"), "Bug"),
    (("feature", "enhancement"), "Feature"),
    (("documentation", "docs"), "Documentation"),
    (("security",), "Security"),
    (("refactor", "maintenance", "chore"), "Maintenance"),
    (("improvement",), "Improvement"),
]
DEFAULT_ISSUE_TYPE = "Other"


def extract_issue_number(title: str) -> int | None:
    """Extract the issue number a PR title starts with.

    Supports titles like ``fix(634): eula in installers``,
    ``feat(#123): add feature``, ``3156 - Feature description``,
    ``3156: Feature description``, ``#2964 Improve error handling`` and
    ``3178 edr virus scan``. References anywhere else in the title are ignored.
    """
    for pattern in ISSUE_TITLE_PATTERNS:
        match = pattern.match(title)
        if match:
            return int(match.group(1))
    return None


def infer_issue_type(labels: list[str]) -> str:
    """Infer an issue type from label substrings."""
    lowered = [label.lower() for label in labels]
    for needles, issue_type in ISSUE_TYPE_RULES:
        if any(needle in label for label in lowered for needle in needles):
            return issue_type
    return DEFAULT_ISSUE_TYPE

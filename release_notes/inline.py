"""Tokenize one line of lightweight Markdown into formatted text runs.

The scanner walks the line left to right. At each position it tries the
matchers in ``INLINE_MATCHERS`` order (bold link, link, bold, code) and takes
the first one that matches there; otherwise the character is kept as plain
text. Matches never nest: markup inside a matched span stays literal text of
that span.
"""
from __future__ import annotations

import re
from collections.abc import Callable
from typing import Annotated, Literal

from pydantic import BaseModel, Field


class PlainRun(BaseModel):
    """Unformatted text."""

    type: Literal["plain"] = "plain"
    text: str


class BoldRun(BaseModel):
    """Text wrapped in double asterisks."""

    type: Literal["bold"] = "bold"
    text: str


class CodeRun(BaseModel):
    """Text wrapped in backticks."""

    type: Literal["code"] = "code"
    text: str


class LinkRun(BaseModel):
    """A Markdown link."""

    type: Literal["link"] = "link"
    text: str
    url: str


class BoldLinkRun(BaseModel):
    """A Markdown link wrapped in double asterisks."""

    type: Literal["bold_link"] = "bold_link"
    text: str
    url: str


TextRun = Annotated[
    PlainRun | BoldRun | CodeRun | LinkRun | BoldLinkRun,
    Field(discriminator="type"),
]

InlineMatcher = tuple[re.Pattern[str], Callable[[re.Match[str]], TextRun]]

INLINE_MATCHERS: list[InlineMatcher] = [
    (
        re.compile(r"\*\*\[([^\]]+)\]\(([^)]+)\)\*\*"),
        lambda m: BoldLinkRun(text=m.group(1), url=m.group(2)),
    ),
    (
        re.compile(r"\[([^\]]+)\]\(([^)]+)\)"),
        lambda m: LinkRun(text=m.group(1), url=m.group(2)),
    ),
    (re.compile(r"\*\*([^*]+)\*\*"), lambda m: BoldRun(text=m.group(1))),
    (re.compile(r"`([^`]+)`"), lambda m: CodeRun(text=m.group(1))),
]


def match_inline(text: str, pos: int) -> tuple[TextRun, int] | None:
    """Return the run starting at ``pos`` and the position after it."""
    for pattern, build in INLINE_MATCHERS:
        match = pattern.match(text, pos)
        if match:
            return build(match), match.end()
    return None


def tokenize_inline(text: str) -> list[TextRun]:
    """Split a line into plain and formatted runs."""
    runs: list[TextRun] = []
    plain_start = 0
    pos = 0
    while pos < len(text):
        matched = match_inline(text, pos)
        if matched is None:
            pos += 1
            continue
        run, end = matched
        if pos > plain_start:
            runs.append(PlainRun(text=text[plain_start:pos]))
        runs.append(run)
        pos = plain_start = end
    if plain_start < len(text):
        runs.append(PlainRun(text=text[plain_start:]))
    if not runs:
        runs.append(PlainRun(text=text))
    return runs


def run_text(runs: list[TextRun]) -> str:
    """Concatenate run contents without markup."""
    return "".join(run.text for run in runs)

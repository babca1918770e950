"""Parse Markdown text into a flat sequence of typed blocks.

The parser is line oriented with two states: normal and inside a fenced code
block. Fence lines toggle the state; lines inside a fence are buffered
verbatim. A fence still open at the end of input is dropped without emitting
a block.
"""
from __future__ import annotations

import re
from collections.abc import Callable
from typing import Annotated, Literal

from pydantic import BaseModel, Field

from release_notes.inline import TextRun, tokenize_inline

CODE_FENCE = "```"
DEFAULT_CODE_LANGUAGE = "plain text"


class Heading(BaseModel):
    """A level 1 to 3 heading."""

    type: Literal["heading"] = "heading"
    level: int = Field(ge=1, le=3)
    runs: list[TextRun]


class Paragraph(BaseModel):
    """Any other non-blank line."""

    type: Literal["paragraph"] = "paragraph"
    runs: list[TextRun]


class ListItem(BaseModel):
    """A numbered or bulleted list line."""

    type: Literal["list_item"] = "list_item"
    ordered: bool
    runs: list[TextRun]


class Divider(BaseModel):
    """A horizontal rule."""

    type: Literal["divider"] = "divider"


class CodeBlock(BaseModel):
    """Verbatim lines from a closed code fence."""

    type: Literal["code"] = "code"
    language: str
    text: str


Block = Annotated[
    Heading | Paragraph | ListItem | Divider | CodeBlock,
    Field(discriminator="type"),
]

LineRule = tuple[re.Pattern[str], Callable[[re.Match[str]], Block]]

# Evaluated in order for every line outside a code fence; first match wins.
LINE_RULES: list[LineRule] = [
    (
        re.compile(r"# (.+)"),
        lambda m: Heading(level=1, runs=tokenize_inline(m.group(1))),
    ),
    (
        re.compile(r"## (.+)"),
        lambda m: Heading(level=2, runs=tokenize_inline(m.group(1))),
    ),
    (
        re.compile(r"### (.+)"),
        lambda m: Heading(level=3, runs=tokenize_inline(m.group(1))),
    ),
    (
        re.compile(r"[0-9]+\. (.+)"),
        lambda m: ListItem(ordered=True, runs=tokenize_inline(m.group(1))),
    ),
    (
        re.compile(r"[*-] (.+)"),
        lambda m: ListItem(ordered=False, runs=tokenize_inline(m.group(1))),
    ),
    (re.compile(r"---+"), lambda _m: Divider()),
]


def parse_line(line: str) -> Block:
    """Turn one non-blank line outside a code fence into a block."""
    for pattern, build in LINE_RULES:
        match = pattern.fullmatch(line)
        if match:
            return build(match)
    return Paragraph(runs=tokenize_inline(line))


def parse_blocks(markdown: str) -> list[Block]:
    """Convert Markdown into blocks in document order."""
    blocks: list[Block] = []
    in_code_block = False
    code_lines: list[str] = []
    code_language = ""

    for line in markdown.split("\n"):
        if line.startswith(CODE_FENCE):
            if not in_code_block:
                in_code_block = True
                code_language = line[len(CODE_FENCE):].strip()
                code_lines = []
            else:
                in_code_block = False
                if code_lines:
                    blocks.append(
                        CodeBlock(
                            language=code_language or DEFAULT_CODE_LANGUAGE,
                            text="\n".join(code_lines),
                        ),
                    )
                code_lines = []
                code_language = ""
            continue

        if in_code_block:
            code_lines.append(line)
            continue

        if not line.strip():
            continue

        blocks.append(parse_line(line))
    return blocks

"""Tests for the inline run tokenizer."""
from __future__ import annotations

from release_notes.inline import (
    BoldLinkRun,
    BoldRun,
    CodeRun,
    LinkRun,
    PlainRun,
    run_text,
    tokenize_inline,
)


class TestTokenizeInline:
    def test_plain_line_is_single_run(self):
        assert tokenize_inline("Just some text") == [PlainRun(text="Just some text")]

    def test_empty_line(self):
        assert tokenize_inline("") == [PlainRun(text="")]

    def test_bold_link_is_one_run(self):
        assert tokenize_inline("**[PR #1](url)** text") == [
            BoldLinkRun(text="PR #1", url="url"),
            PlainRun(text=" text"),
        ]

    def test_link(self):
        assert tokenize_inline("See [docs](https://example.com) now") == [
            PlainRun(text="See "),
            LinkRun(text="docs", url="https://example.com"),
            PlainRun(text=" now"),
        ]

    def test_bold(self):
        assert tokenize_inline("**Repository:** owner/repo") == [
            BoldRun(text="Repository:"),
            PlainRun(text=" owner/repo"),
        ]

    def test_code(self):
        assert tokenize_inline("run `make test` first") == [
            PlainRun(text="run "),
            CodeRun(text="make test"),
            PlainRun(text=" first"),
        ]

    def test_mixed_runs_keep_order(self):
        runs = tokenize_inline("**a** and [b](u) and `c`")
        assert runs == [
            BoldRun(text="a"),
            PlainRun(text=" and "),
            LinkRun(text="b", url="u"),
            PlainRun(text=" and "),
            CodeRun(text="c"),
        ]

    def test_adjacent_markup_has_no_empty_plain_runs(self):
        assert tokenize_inline("**a****b**") == [BoldRun(text="a"), BoldRun(text="b")]

    def test_unmatched_markers_stay_plain(self):
        text = "**not closed and `open and [text](no-close"
        assert tokenize_inline(text) == [PlainRun(text=text)]

    def test_bold_wrapping_link_with_extra_text_is_bold(self):
        # Markup inside a matched span is not tokenized again.
        assert tokenize_inline("**see [docs](u)**") == [BoldRun(text="see [docs](u)")]

    def test_link_inside_code_wins_by_position(self):
        assert tokenize_inline("`[a](b)`") == [CodeRun(text="[a](b)")]

    def test_content_is_preserved(self):
        line = "- **[PR #10](https://x/10)** – Add `sso` for [team](https://t)"
        runs = tokenize_inline(line)
        assert run_text(runs) == "- PR #10 – Add sso for team"

    def test_summary_line(self):
        runs = tokenize_inline("Total code delta: **+4,231** / **-12** lines")
        assert runs == [
            PlainRun(text="Total code delta: "),
            BoldRun(text="+4,231"),
            PlainRun(text=" / "),
            BoldRun(text="-12"),
            PlainRun(text=" lines"),
        ]

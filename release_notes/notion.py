"""Publish release notes as a Notion database page."""
from __future__ import annotations

from datetime import UTC, datetime

import requests
from loguru import logger

from release_notes.blocks import (
    Block,
    CodeBlock,
    Divider,
    Heading,
    ListItem,
    Paragraph,
    parse_blocks,
)
from release_notes.inline import BoldLinkRun, BoldRun, CodeRun, LinkRun, TextRun

NOTION_PAGES_URL = "https://api.notion.com/v1/pages"
NOTION_VERSION = "2022-06-28"
NOTION_MAX_BLOCKS = 100
HTTP_ERROR_THRESHOLD = 400
REQUEST_TIMEOUT = 30
JSONDict = dict[str, object]


class NotionRequestError(RuntimeError):
    """Raised when the Notion page creation call fails."""

    def __init__(self, status_code: int, text: str) -> None:
        """Create a Notion request error."""
        super().__init__(f"Notion request failed ({status_code}): {text}")


def run_to_rich_text(run: TextRun) -> JSONDict:
    """Convert a text run into a Notion rich_text object."""
    text: JSONDict = {"content": run.text}
    if isinstance(run, (LinkRun, BoldLinkRun)):
        text["link"] = {"url": run.url}
    rich_text: JSONDict = {"type": "text", "text": text}
    if isinstance(run, (BoldRun, BoldLinkRun)):
        rich_text["annotations"] = {"bold": True}
    elif isinstance(run, CodeRun):
        rich_text["annotations"] = {"code": True}
    return rich_text


def plain_rich_text(content: str) -> list[JSONDict]:
    """Wrap text in a single unannotated rich text object."""
    return [{"type": "text", "text": {"content": content}}]


def notion_block(block_type: str, body: JSONDict) -> JSONDict:
    """Build a Notion block object of the given type."""
    return {"object": "block", "type": block_type, block_type: body}


def block_to_notion(block: Block) -> JSONDict:
    """Convert a parsed block into a Notion block object."""
    if isinstance(block, Divider):
        return notion_block("divider", {})
    if isinstance(block, CodeBlock):
        return notion_block(
            "code",
            {"rich_text": plain_rich_text(block.text), "language": block.language},
        )
    rich_text = [run_to_rich_text(run) for run in block.runs]
    if isinstance(block, Heading):
        return notion_block(f"heading_{block.level}", {"rich_text": rich_text})
    if isinstance(block, ListItem):
        block_type = "numbered_list_item" if block.ordered else "bulleted_list_item"
        return notion_block(block_type, {"rich_text": rich_text})
    if isinstance(block, Paragraph):
        return notion_block("paragraph", {"rich_text": rich_text})
    raise TypeError


def header_blocks(date_range: str, repo_name: str) -> list[JSONDict]:
    """Return the fixed blocks every release notes page starts with."""
    return [
        notion_block(
            "heading_2",
            {"rich_text": plain_rich_text(f"Release Notes: {date_range}")},
        ),
        notion_block(
            "paragraph",
            {"rich_text": plain_rich_text(f"Repository: {repo_name}")},
        ),
        notion_block("divider", {}),
    ]


def truncate_blocks(blocks: list[JSONDict], limit: int) -> list[JSONDict]:
    """Keep the first ``limit`` blocks, warning when any are dropped."""
    if len(blocks) <= limit:
        return blocks
    logger.warning(
        "Too many Notion blocks, truncating",
        count=len(blocks),
        limit=limit,
    )
    return blocks[:limit]


def build_page_payload(
    database_id: str,
    title: str,
    date_range: str,
    repo_name: str,
    blocks: list[Block],
    week: int,
) -> JSONDict:
    """Build the Notion page creation payload."""
    headers = header_blocks(date_range, repo_name)
    content = truncate_blocks(
        [block_to_notion(block) for block in blocks],
        NOTION_MAX_BLOCKS - len(headers),
    )
    return {
        "parent": {"database_id": database_id},
        "properties": {
            "Name": {"title": [{"text": {"content": title}}]},
            "Date Range": {"rich_text": [{"text": {"content": date_range}}]},
            "Week": {"number": week},
            "Status": {"select": {"name": "Published"}},
        },
        "children": headers + content,
    }


def current_week() -> int:
    """Return the ISO week number of the current UTC date."""
    return datetime.now(UTC).isocalendar().week


def build_release_notes_page(
    markdown: str,
    database_id: str,
    from_date: str,
    to_date: str,
    repo_name: str,
) -> JSONDict:
    """Build the page payload for a generated release notes document."""
    blocks = parse_blocks(markdown)
    logger.info("Converted markdown to Notion blocks", count=len(blocks))
    date_range = f"{from_date} to {to_date}"
    return build_page_payload(
        database_id,
        f"Release Notes: {date_range}",
        date_range,
        repo_name,
        blocks,
        current_week(),
    )


def notion_headers(api_key: str) -> dict[str, str]:
    """Return Notion API headers with authentication."""
    return {
        "Authorization": f"Bearer {api_key}",
        "Content-Type": "application/json",
        "Notion-Version": NOTION_VERSION,
    }


def publish_to_notion(api_key: str, payload: JSONDict) -> JSONDict:
    """Create the Notion page and return the API response."""
    response = requests.post(
        NOTION_PAGES_URL,
        headers=notion_headers(api_key),
        json=payload,
        timeout=REQUEST_TIMEOUT,
    )
    if response.status_code >= HTTP_ERROR_THRESHOLD:
        raise NotionRequestError(response.status_code, response.text)
    logger.info("Posted release notes to Notion", status=response.status_code)
    return response.json()

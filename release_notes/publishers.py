"""Publish release notes to Slack and Discord via webhooks."""
from __future__ import annotations

import re
import time

import requests
from loguru import logger

from release_notes.blocks import CODE_FENCE
from release_notes.inline import (
    BoldLinkRun,
    BoldRun,
    CodeRun,
    LinkRun,
    TextRun,
    tokenize_inline,
)

HTTP_ERROR_THRESHOLD = 400
REQUEST_TIMEOUT = 30
MAX_SLACK_CHARS = 39000
SLACK_BLOCK_TEXT_LIMIT = 2900
SLACK_MAX_BLOCKS = 50
SLACK_TRUNCATED_TEXT = "_...truncated (message too long for Slack)_"
DISCORD_MAX_CHARS = 1900
DISCORD_POST_DELAY_SECONDS = 0.5
SLACK_HEADING = re.compile(r"#{1,3}\s+(.+)")
SLACK_BULLET = re.compile(r"(\s*)[-*]\s(.*)")
JSONDict = dict[str, object]


class WebhookError(RuntimeError):
    """Raised when a webhook call fails."""

    def __init__(self, channel: str, status_code: int, text: str) -> None:
        """Create a webhook error."""
        super().__init__(f"{channel} webhook failed ({status_code}): {text}")


def split_message(content: str, max_length: int) -> list[str]:
    """Split content into chunks of at most ``max_length`` on line boundaries.

    Lines are only broken when a single line is longer than ``max_length``.
    """
    if len(content) <= max_length:
        return [content]
    chunks: list[str] = []
    current: list[str] = []
    current_len = 0
    for line in content.split("\n"):
        pieces = [
            line[i : i + max_length] for i in range(0, len(line), max_length)
        ] or [""]
        for piece in pieces:
            # +1 accounts for the newline joining character
            added = len(piece) + (1 if current else 0)
            if current and current_len + added > max_length:
                chunks.append("\n".join(current))
                current = []
                current_len = 0
                added = len(piece)
            current.append(piece)
            current_len += added
    if current:
        chunks.append("\n".join(current))
    # Webhooks reject messages with no visible text.
    return [chunk for chunk in chunks if chunk.strip()] or [""]


def escape_mrkdwn(text: str) -> str:
    """Escape the characters Slack reserves for control sequences."""
    return text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


def render_mrkdwn_run(run: TextRun) -> str:
    """Render a text run in Slack mrkdwn."""
    text = escape_mrkdwn(run.text)
    if isinstance(run, BoldLinkRun):
        return f"*<{run.url}|{text}>*"
    if isinstance(run, LinkRun):
        return f"<{run.url}|{text}>"
    if isinstance(run, BoldRun):
        return f"*{text}*"
    if isinstance(run, CodeRun):
        return f"`{text}`"
    return text


def render_mrkdwn(text: str) -> str:
    """Render one line of inline Markdown in Slack mrkdwn."""
    return "".join(render_mrkdwn_run(run) for run in tokenize_inline(text))


def format_for_slack(markdown: str) -> str:
    """Convert release notes Markdown to Slack mrkdwn."""
    lines: list[str] = []
    in_code_block = False
    for line in markdown.split("\n"):
        if line.startswith(CODE_FENCE):
            in_code_block = not in_code_block
            lines.append(CODE_FENCE)
            continue
        if in_code_block or not line:
            lines.append(escape_mrkdwn(line))
            continue
        heading = SLACK_HEADING.fullmatch(line)
        if heading:
            lines.append(f"*{escape_mrkdwn(heading.group(1))}*")
            continue
        bullet = SLACK_BULLET.fullmatch(line)
        if bullet:
            lines.append(f"{bullet.group(1)}• {render_mrkdwn(bullet.group(2))}")
            continue
        lines.append(render_mrkdwn(line))
    return "\n".join(lines)


def trim_message(message: str) -> str:
    """Trim the fallback text to fit Slack limits."""
    if len(message) <= MAX_SLACK_CHARS:
        return message
    return message[: MAX_SLACK_CHARS - 100] + "\n\n[truncated]"


def build_slack_payload(markdown: str, window_text: str) -> JSONDict:
    """Build the Slack webhook payload for release notes."""
    header_blocks: list[JSONDict] = [
        {
            "type": "header",
            "text": {"type": "plain_text", "text": "Release Notes"},
        },
        {"type": "context", "elements": [{"type": "mrkdwn", "text": window_text}]},
        {"type": "divider"},
    ]
    max_sections = SLACK_MAX_BLOCKS - len(header_blocks)
    message = format_for_slack(markdown)
    chunks = split_message(message, SLACK_BLOCK_TEXT_LIMIT)
    if len(chunks) <= max_sections:
        sections = chunks
    else:
        sections = chunks[: max_sections - 1]
        sections.append(SLACK_TRUNCATED_TEXT)
    blocks = header_blocks + [
        {"type": "section", "text": {"type": "mrkdwn", "text": section}}
        for section in sections
    ]
    return {"text": trim_message(message), "blocks": blocks}


def post_webhook(channel: str, webhook_url: str, payload: JSONDict) -> None:
    """POST a JSON payload to a webhook, raising WebhookError on failure."""
    response = requests.post(webhook_url, json=payload, timeout=REQUEST_TIMEOUT)
    if response.status_code >= HTTP_ERROR_THRESHOLD:
        raise WebhookError(channel, response.status_code, response.text)


def publish_to_slack(markdown: str, webhook_url: str | None, window_text: str) -> bool:
    """Post release notes to Slack. Returns False when no webhook is set."""
    if not webhook_url:
        logger.warning("Slack webhook URL not provided. Skipping.")
        return False
    payload = build_slack_payload(markdown, window_text)
    post_webhook("Slack", webhook_url, payload)
    logger.info("Published release notes to Slack")
    return True


def publish_to_discord(markdown: str, webhook_url: str | None) -> bool:
    """Post release notes to Discord, one message per chunk, in order."""
    if not webhook_url:
        logger.warning("Discord webhook URL not provided. Skipping.")
        return False
    chunks = split_message(markdown, DISCORD_MAX_CHARS)
    for index, chunk in enumerate(chunks):
        post_webhook("Discord", webhook_url, {"content": chunk})
        if index < len(chunks) - 1:
            time.sleep(DISCORD_POST_DELAY_SECONDS)
    logger.info("Published release notes to Discord", messages=len(chunks))
    return True

"""Command line entry point for the release notes generator."""
from __future__ import annotations

import argparse
import json
import re
import sys
import time
from datetime import date
from enum import IntEnum
from pathlib import Path
from typing import NoReturn

import requests
from dotenv import load_dotenv
from loguru import logger

from release_notes.config import Settings, get_settings
from release_notes.composer import generate_release_notes
from release_notes.github import GitHubRequestError, fetch_merged_prs
from release_notes.notion import (
    NotionRequestError,
    build_release_notes_page,
    publish_to_notion,
)
from release_notes.publishers import (
    DISCORD_MAX_CHARS,
    WebhookError,
    build_slack_payload,
    publish_to_discord,
    publish_to_slack,
    split_message,
)

load_dotenv()

ISO_DATE_REGEX = re.compile(r"\d{4}-\d{2}-\d{2}")
DEFAULT_OUTPUT_DIR = "release-notes"
MISSING_GITHUB_AUTH_MESSAGE = (
    "Missing GitHub token. Provide --github-token, set GH_TOKEN env var, "
    "or add it to a .env file."
)


class ExitCode(IntEnum):
    """Process exit status for each failure class."""

    SUCCESS = 0
    VALIDATION_ERROR = 1
    GITHUB_API_ERROR = 2
    UNEXPECTED_ERROR = 3


class ValidationError(ValueError):
    """Raised when CLI options are invalid."""


class ReleaseNotesArgumentParser(argparse.ArgumentParser):
    """Argument parser that reports usage errors as validation errors."""

    def error(self, message: str) -> NoReturn:
        """Print usage and raise ValidationError instead of exiting."""
        self.print_usage(sys.stderr)
        raise ValidationError(message)


def configure_logging(level: str) -> None:
    """Send loguru output to stderr at the requested level.

    Unknown levels raise ValueError before the existing sinks are removed.
    """
    level = level.upper()
    logger.level(level)
    logger.remove()
    logger.add(sys.stderr, level=level)


def parse_labels(value: str) -> list[str]:
    """Parse a comma-separated label list."""
    return [label.strip() for label in value.split(",") if label.strip()]


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments."""
    parser = ReleaseNotesArgumentParser(
        prog="release-notes",
        description="Generate structured release notes from GitHub PRs",
    )
    parser.add_argument("--owner", required=True, help="Repository owner")
    parser.add_argument("--repo", required=True, help="Repository name")
    parser.add_argument(
        "--from",
        dest="from_date",
        required=True,
        help="Start date (YYYY-MM-DD)",
    )
    parser.add_argument(
        "--to",
        dest="to_date",
        required=True,
        help="End date (YYYY-MM-DD)",
    )
    parser.add_argument(
        "--output",
        help="Output file path (default: release-notes/<repo>_<from>_<to>.md)",
    )
    parser.add_argument("--github-token", help="GitHub personal access token")
    parser.add_argument(
        "--exclude-labels",
        type=parse_labels,
        help="Comma-separated labels to exclude",
    )
    parser.add_argument(
        "--include-labels",
        type=parse_labels,
        help="Comma-separated labels to include",
    )
    for channel in ("slack", "discord", "notion"):
        parser.add_argument(
            f"--publish-{channel}",
            action="store_true",
            help=f"Publish to {channel.capitalize()}",
        )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Log publish payloads instead of posting them",
    )
    return parser.parse_args(argv)


def parse_iso_date(value: str, flag: str) -> date:
    """Parse a YYYY-MM-DD date or raise ValidationError."""
    if not ISO_DATE_REGEX.fullmatch(value):
        msg = f'Invalid {flag} date format: "{value}". Expected YYYY-MM-DD.'
        raise ValidationError(msg)
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        msg = f'Invalid {flag} date: "{value}".'
        raise ValidationError(msg) from exc


def validate_options(args: argparse.Namespace) -> None:
    """Validate the date range. Raises ValidationError on invalid input."""
    start = parse_iso_date(args.from_date, "--from")
    end = parse_iso_date(args.to_date, "--to")
    if start > end:
        msg = f"--from ({args.from_date}) must be before --to ({args.to_date})."
        raise ValidationError(msg)


def default_output_path(repo: str, from_date: str, to_date: str) -> Path:
    """Return the output path used when --output is not given."""
    return Path(DEFAULT_OUTPUT_DIR) / f"{repo}_{from_date}_{to_date}.md"


def write_output(markdown: str, output: Path) -> None:
    """Write the document, creating parent directories."""
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(markdown, encoding="utf-8")
    logger.info("Release notes written to file", file=str(output))


def log_dry_run(channel: str, payload: object) -> None:
    """Log a publish payload verbatim instead of sending it."""
    logger.info("--- DRY RUN {channel} PAYLOAD ---", channel=channel)
    logger.opt(raw=True).info(
        "{payload}\n",
        payload=json.dumps(payload, indent=2, ensure_ascii=False),
    )


def publish_notion(args: argparse.Namespace, settings: Settings, markdown: str) -> bool:
    """Create the Notion page for the release notes."""
    logger.info("Publishing to Notion")
    if not settings.notion_api_key or not settings.notion_database_id:
        logger.error("Missing NOTION_API_KEY or NOTION_DATABASE_ID in environment.")
        return False
    payload = build_release_notes_page(
        markdown,
        settings.notion_database_id,
        args.from_date,
        args.to_date,
        args.repo,
    )
    if args.dry_run:
        log_dry_run("Notion", payload)
        return True
    publish_to_notion(settings.notion_api_key, payload)
    return True


def publish_slack(args: argparse.Namespace, settings: Settings, markdown: str) -> bool:
    """Post the release notes to Slack, or log the payload on a dry run."""
    logger.info("Publishing to Slack")
    window_text = f"{args.owner}/{args.repo}: {args.from_date} → {args.to_date}"
    if args.dry_run:
        log_dry_run("Slack", build_slack_payload(markdown, window_text))
        return True
    return publish_to_slack(markdown, settings.slack_webhook_url, window_text)


def publish_discord(
    args: argparse.Namespace,
    settings: Settings,
    markdown: str,
) -> bool:
    """Post the release notes to Discord, or log the chunks on a dry run."""
    logger.info("Publishing to Discord")
    if args.dry_run:
        chunks = split_message(markdown, DISCORD_MAX_CHARS)
        log_dry_run("Discord", [{"content": chunk} for chunk in chunks])
        return True
    return publish_to_discord(markdown, settings.discord_webhook_url)


def publish_all(
    args: argparse.Namespace,
    settings: Settings,
    markdown: str,
) -> dict[str, bool]:
    """Publish to every requested channel; failures are logged per channel."""
    channels = [
        ("notion", args.publish_notion, publish_notion),
        ("slack", args.publish_slack, publish_slack),
        ("discord", args.publish_discord, publish_discord),
    ]
    results: dict[str, bool] = {}
    for name, requested, publish in channels:
        if not requested:
            continue
        try:
            results[name] = publish(args, settings, markdown)
        except (WebhookError, NotionRequestError, requests.RequestException) as exc:
            logger.error("Failed to publish", channel=name, error=str(exc))
            results[name] = False
    return results


def run(args: argparse.Namespace, settings: Settings) -> ExitCode:
    """Execute the release notes workflow."""
    try:
        validate_options(args)
    except ValidationError as exc:
        logger.error("Validation failed: {error}", error=str(exc))
        return ExitCode.VALIDATION_ERROR

    token = settings.resolve_github_token(args.github_token)
    if not token:
        logger.error(MISSING_GITHUB_AUTH_MESSAGE)
        return ExitCode.VALIDATION_ERROR

    logger.info(
        "Generating release notes",
        owner=args.owner,
        repo=args.repo,
        since=args.from_date,
        until=args.to_date,
    )
    start = time.perf_counter()
    try:
        prs = fetch_merged_prs(
            args.owner,
            args.repo,
            args.from_date,
            args.to_date,
            token,
            args.include_labels,
            args.exclude_labels,
        )
    except (GitHubRequestError, requests.RequestException) as exc:
        logger.error("GitHub API error: {error}", error=str(exc))
        return ExitCode.GITHUB_API_ERROR

    markdown = generate_release_notes(
        args.owner,
        args.repo,
        args.from_date,
        args.to_date,
        prs,
    )
    output = Path(args.output) if args.output else default_output_path(
        args.repo,
        args.from_date,
        args.to_date,
    )
    write_output(markdown, output)

    results = publish_all(args, settings, markdown)
    if results:
        logger.info("Publish results: {results}", results=results)
    logger.info(
        "Done (elapsed {elapsed})",
        elapsed=f"{time.perf_counter() - start:.2f}s",
        prs=len(prs),
    )
    return ExitCode.SUCCESS


def main(argv: list[str] | None = None) -> int:
    """Run the release notes CLI."""
    try:
        settings = get_settings()
        configure_logging(settings.log_level)
        args = parse_args(argv)
        return int(run(args, settings))
    except ValidationError as exc:
        logger.error("Invalid arguments: {error}", error=str(exc))
        return int(ExitCode.VALIDATION_ERROR)
    except Exception:
        logger.exception("Unexpected error")
        return int(ExitCode.UNEXPECTED_ERROR)


if __name__ == "__main__":
    sys.exit(main())

"""Environment-backed settings."""
from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_LOG_LEVEL = "INFO"


class Settings(BaseSettings):
    """Environment-backed settings for release notes generation."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    gh_token: str | None = Field(default=None, alias="GH_TOKEN")
    github_token: str | None = Field(default=None, alias="GITHUB_TOKEN")
    slack_webhook_url: str | None = Field(default=None, alias="SLACK_WEBHOOK_URL")
    discord_webhook_url: str | None = Field(default=None, alias="DISCORD_WEBHOOK_URL")
    notion_api_key: str | None = Field(default=None, alias="NOTION_API_KEY")
    notion_database_id: str | None = Field(default=None, alias="NOTION_DATABASE_ID")
    log_level: str = Field(default=DEFAULT_LOG_LEVEL, alias="LOG_LEVEL")

    def resolve_github_token(self, cli_token: str | None = None) -> str | None:
        """Return the CLI token, falling back to the environment."""
        return cli_token or self.gh_token or self.github_token


def get_settings() -> Settings:
    """Load settings from environment variables."""
    return Settings.model_validate({})

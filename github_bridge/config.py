"""Application configuration from environment variables."""

import os
from dataclasses import dataclass

from .errors import ConfigInvalid


@dataclass(frozen=True)
class Config:
    """Application configuration."""

    github_org: str
    bot_username: str
    github_webhook_secret: str
    github_token: str = ""
    chat_url: str = "http://localhost:8065"
    chat_bot_token: str = ""
    store_path: str = "./data/github_bridge.db"
    request_timeout_seconds: float = 10.0
    port: int = 8000
    host: str = "0.0.0.0"

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables."""
        return cls(
            github_org=os.environ.get("GITHUB_ORG", ""),
            bot_username=os.environ.get("BOT_USERNAME", ""),
            github_webhook_secret=os.environ.get("GITHUB_WEBHOOK_SECRET", ""),
            github_token=os.environ.get("GITHUB_TOKEN", ""),
            chat_url=os.environ.get("CHAT_URL", "http://localhost:8065"),
            chat_bot_token=os.environ.get("CHAT_BOT_TOKEN", ""),
            store_path=os.environ.get("STORE_PATH", "./data/github_bridge.db"),
            request_timeout_seconds=float(
                os.environ.get("REQUEST_TIMEOUT_SECONDS", "10")
            ),
            port=int(os.environ.get("PORT", "8000")),
            host=os.environ.get("HOST", "0.0.0.0"),
        )

    def validate(self) -> None:
        """Raise ConfigInvalid if a required setting is missing."""
        if not self.github_org:
            raise ConfigInvalid("GITHUB_ORG environment variable is required")
        if not self.bot_username:
            raise ConfigInvalid("BOT_USERNAME environment variable is required")
        if not self.github_webhook_secret:
            raise ConfigInvalid(
                "GITHUB_WEBHOOK_SECRET environment variable is required"
            )

    @property
    def is_valid(self) -> bool:
        try:
            self.validate()
        except ConfigInvalid:
            return False
        return True


class ConfigHolder:
    """
    Process-wide configuration with load/reload/snapshot semantics.

    The held Config is frozen and replaced wholesale, so a reader that took a
    snapshot keeps a complete value even while a reload is in progress.
    """

    def __init__(self, loader=Config.from_env) -> None:
        self._loader = loader
        self._current: Config | None = None

    def load(self) -> Config:
        """Load configuration if it has not been loaded yet."""
        if self._current is None:
            self._current = self._loader()
        return self._current

    def reload(self) -> Config:
        """Replace the current configuration with a freshly loaded one."""
        self._current = self._loader()
        return self._current

    def snapshot(self) -> Config:
        """Return the current configuration."""
        if self._current is None:
            raise RuntimeError("Configuration not loaded")
        return self._current

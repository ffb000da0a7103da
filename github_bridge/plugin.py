"""Application lifecycle: configuration, activation and component wiring."""

import logging

import httpx

from .chat import ChatClient
from .commands import CommandHandler
from .config import Config, ConfigHolder
from .credentials import CredentialStore
from .github import GitHubAPI, connect
from .reviewers import ReviewerAssignment
from .router import EventRouter
from .store import KeyValueStore
from .subscriptions import SubscriptionRegistry
from .todo import ReviewAggregator

logger = logging.getLogger(__name__)


class Plugin:
    """
    Owns the configuration and every component built from it.

    Components that depend on configuration values (the event router and the
    command handler) are rebuilt on each configuration change. Components that
    only need a GitHub session read the current snapshot whenever they open one.
    """

    def __init__(
        self,
        config_holder: ConfigHolder,
        store: KeyValueStore,
        chat: ChatClient,
        github_http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.config_holder = config_holder
        self.store = store
        self.chat = chat
        self._github_http_client = github_http_client

        self.registry = SubscriptionRegistry(store)
        self.credentials = CredentialStore(store)
        self.bot_user_id: str | None = None

        self.router: EventRouter | None = None
        self.commands: CommandHandler | None = None
        self.aggregator: ReviewAggregator | None = None
        self.reviewers = ReviewerAssignment(self.credentials, self.connect)

    @property
    def config(self) -> Config:
        return self.config_holder.snapshot()

    @property
    def activated(self) -> bool:
        return self.bot_user_id is not None

    def connect(self, token: str) -> GitHubAPI:
        """Open a GitHub session authenticated with token."""
        return connect(
            token,
            http_client=self._github_http_client,
            timeout=self.config.request_timeout_seconds,
        )

    async def activate(self) -> None:
        """
        Load and validate configuration, then resolve the bot user.

        Raises:
            ConfigInvalid: If a required setting is missing
            UpstreamFailure: If the bot user cannot be looked up
        """
        config = self.config_holder.reload()
        config.validate()

        self.bot_user_id = await self.chat.get_user_by_username(config.bot_username)
        self.aggregator = ReviewAggregator(
            self.credentials, self.chat, self.bot_user_id, self.connect
        )
        self._build()
        logger.info(
            f"Activated as {config.bot_username} ({self.bot_user_id}) "
            f"for organization {config.github_org}"
        )

    def on_configuration_change(self) -> Config:
        """Reload configuration and rebuild the components that use it."""
        config = self.config_holder.reload()
        if self.activated:
            self._build()
        logger.info("Configuration reloaded")
        return config

    def _build(self) -> None:
        config = self.config
        assert self.bot_user_id is not None
        assert self.aggregator is not None
        self.router = EventRouter(
            self.registry,
            self.connect(config.github_token),
            self.chat,
            self.bot_user_id,
        )
        self.commands = CommandHandler(
            self.registry, self.credentials, self.aggregator, config.github_org
        )

    async def deactivate(self) -> None:
        if self.aggregator is not None:
            await self.aggregator.shutdown()
        logger.info("Deactivated")


async def start_plugin(plugin: Plugin) -> None:
    """Open the plugin's store and chat connections and activate it."""
    await plugin.store.open()
    await plugin.chat.open()
    await plugin.activate()


async def stop_plugin(plugin: Plugin) -> None:
    await plugin.deactivate()
    await plugin.chat.close()
    await plugin.store.close()

"""The /github slash command."""

import logging
from dataclasses import dataclass
from typing import Any

from .credentials import CredentialStore
from .errors import NotFound
from .subscriptions import SubscriptionRegistry
from .todo import CHECKING_MESSAGE, ReviewAggregator

logger = logging.getLogger(__name__)

TRIGGER = "/github"
BOT_DISPLAY_NAME = "github"
ICON_URL = "https://assets-cdn.github.com/images/modules/logos_page/GitHub-Mark.png"

RESPONSE_EPHEMERAL = "ephemeral"
RESPONSE_IN_CHANNEL = "in_channel"

WRONG_PARAMETERS = "Wrong number of parameters."


@dataclass
class CommandArgs:
    """An invocation of a slash command."""

    command: str
    user_id: str
    channel_id: str


@dataclass
class CommandResponse:
    """Reply to a slash command."""

    text: str
    response_type: str = RESPONSE_EPHEMERAL
    username: str = BOT_DISPLAY_NAME
    icon_url: str = ICON_URL

    def to_dict(self) -> dict[str, Any]:
        return {
            "text": self.text,
            "response_type": self.response_type,
            "username": self.username,
            "icon_url": self.icon_url,
        }


def parse_command(command: str) -> tuple[str, str, list[str]]:
    """Split "/github action arg..." into trigger, action and arguments."""
    split = command.split(" ")
    trigger = split[0]
    action = split[1] if len(split) > 1 else ""
    parameters = split[2:]
    return trigger, action, parameters


class CommandHandler:
    """Executes /github subcommands."""

    def __init__(
        self,
        registry: SubscriptionRegistry,
        credentials: CredentialStore,
        aggregator: ReviewAggregator,
        github_org: str,
    ) -> None:
        self._registry = registry
        self._credentials = credentials
        self._aggregator = aggregator
        self._github_org = github_org

    async def execute(self, args: CommandArgs) -> CommandResponse | None:
        """
        Run a command, returning None when there is nothing to reply.

        Raises:
            NotFound: If the command is not /github
        """
        trigger, action, parameters = parse_command(args.command)
        if trigger != TRIGGER:
            raise NotFound(f"Unknown command {trigger}")

        logger.info(f"User {args.user_id} ran {TRIGGER} {action}")

        if action == "subscribe":
            if len(parameters) != 1:
                return CommandResponse(text=WRONG_PARAMETERS)
            await self._registry.add(args.channel_id, parameters[0])
            return CommandResponse(
                text="You have subscribed to the repository.",
                response_type=RESPONSE_IN_CHANNEL,
            )

        if action == "unsubscribe":
            if len(parameters) != 1:
                return CommandResponse(text=WRONG_PARAMETERS)
            await self._registry.remove(args.channel_id, parameters[0])
            return CommandResponse(
                text="You have unsubscribed from the repository.",
                response_type=RESPONSE_IN_CHANNEL,
            )

        if action == "register":
            if len(parameters) != 1:
                return CommandResponse(text=WRONG_PARAMETERS)
            await self._credentials.register(args.user_id, parameters[0])
            return CommandResponse(text="Registered github token.")

        if action == "deregister":
            await self._credentials.deregister(args.user_id)
            return CommandResponse(text="Deregistered github token.")

        if action == "todo":
            self._aggregator.spawn(args.user_id, self._github_org)
            return CommandResponse(text=CHECKING_MESSAGE)

        return None

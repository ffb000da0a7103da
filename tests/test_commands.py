"""Tests for the /github slash command."""

import pytest
from conftest import FakeChat, FakeGitHub

from github_bridge.commands import (
    RESPONSE_EPHEMERAL,
    RESPONSE_IN_CHANNEL,
    WRONG_PARAMETERS,
    CommandArgs,
    CommandHandler,
    CommandResponse,
    parse_command,
)
from github_bridge.credentials import CredentialStore
from github_bridge.errors import NotFound
from github_bridge.github import connect
from github_bridge.store import MemoryKeyValueStore
from github_bridge.subscriptions import SubscriptionRegistry
from github_bridge.todo import CHECKING_MESSAGE, ReviewAggregator


@pytest.fixture
def aggregator(
    store: MemoryKeyValueStore, chat: FakeChat, github: FakeGitHub
) -> ReviewAggregator:
    client = github.client()
    return ReviewAggregator(
        CredentialStore(store),
        chat,
        "bot-id",
        lambda token: connect(token, http_client=client),
    )


@pytest.fixture
def handler(
    store: MemoryKeyValueStore, aggregator: ReviewAggregator
) -> CommandHandler:
    return CommandHandler(
        SubscriptionRegistry(store), CredentialStore(store), aggregator, "acme"
    )


def args(command: str) -> CommandArgs:
    return CommandArgs(command=command, user_id="u1", channel_id="C1")


def test_parse_command() -> None:
    assert parse_command("/github subscribe acme/widgets") == (
        "/github",
        "subscribe",
        ["acme/widgets"],
    )
    assert parse_command("/github") == ("/github", "", [])


class TestCommandHandler:
    """Tests for each subcommand."""

    @pytest.mark.asyncio
    async def test_subscribe(self, handler: CommandHandler, store) -> None:
        response = await handler.execute(args("/github subscribe acme/widgets"))

        assert response is not None
        assert response.text == "You have subscribed to the repository."
        assert response.response_type == RESPONSE_IN_CHANNEL
        registry = SubscriptionRegistry(store)
        assert await registry.channels_for("acme/widgets") == {"C1"}

    @pytest.mark.asyncio
    async def test_unsubscribe(self, handler: CommandHandler, store) -> None:
        await handler.execute(args("/github subscribe acme/widgets"))
        response = await handler.execute(args("/github unsubscribe acme/widgets"))

        assert response is not None
        assert response.text == "You have unsubscribed from the repository."
        assert await SubscriptionRegistry(store).channels_for("acme/widgets") == set()

    @pytest.mark.asyncio
    async def test_register_and_deregister(
        self, handler: CommandHandler, store: MemoryKeyValueStore
    ) -> None:
        response = await handler.execute(args("/github register ghp_abc"))
        assert response is not None
        assert response.text == "Registered github token."
        assert response.response_type == RESPONSE_EPHEMERAL
        assert await store.get("u1_githubtoken") == b"ghp_abc"

        response = await handler.execute(args("/github deregister"))
        assert response is not None
        assert response.text == "Deregistered github token."
        assert await store.get("u1_githubtoken") is None

    @pytest.mark.asyncio
    async def test_deregister_without_registration(
        self, handler: CommandHandler
    ) -> None:
        response = await handler.execute(args("/github deregister"))
        assert response is not None
        assert response.text == "Deregistered github token."

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "command",
        [
            "/github subscribe",
            "/github subscribe a/b c/d",
            "/github unsubscribe",
            "/github register",
            "/github register a b",
        ],
    )
    async def test_wrong_arity(
        self, handler: CommandHandler, store: MemoryKeyValueStore, command: str
    ) -> None:
        response = await handler.execute(args(command))
        assert response is not None
        assert response.text == WRONG_PARAMETERS
        assert response.response_type == RESPONSE_EPHEMERAL
        assert store.keys() == []

    @pytest.mark.asyncio
    async def test_todo_acknowledges_immediately(
        self,
        handler: CommandHandler,
        aggregator: ReviewAggregator,
        chat: FakeChat,
    ) -> None:
        response = await handler.execute(args("/github todo"))

        assert response is not None
        assert response.text == CHECKING_MESSAGE
        assert chat.posts == []

        assert aggregator.pending_tasks == 1
        await aggregator.shutdown()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("command", ["/github", "/github frobnicate"])
    async def test_no_response(self, handler: CommandHandler, command: str) -> None:
        assert await handler.execute(args(command)) is None

    @pytest.mark.asyncio
    async def test_other_trigger_not_found(self, handler: CommandHandler) -> None:
        with pytest.raises(NotFound):
            await handler.execute(args("/jira todo"))

    def test_response_to_dict(self) -> None:
        data = CommandResponse(text="hi").to_dict()
        assert data["text"] == "hi"
        assert data["response_type"] == "ephemeral"
        assert data["username"] == "github"
        assert data["icon_url"].endswith("GitHub-Mark.png")

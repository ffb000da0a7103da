"""Shared fakes for the GitHub bridge tests."""

import json
import re
from typing import Any

import httpx
import pytest

from github_bridge.chat import Post
from github_bridge.config import Config, ConfigHolder
from github_bridge.errors import UpstreamFailure
from github_bridge.plugin import Plugin
from github_bridge.store import MemoryKeyValueStore


class FakeChat:
    """Records posts instead of sending them."""

    def __init__(self, failing_channels: set[str] | None = None) -> None:
        self.posts: list[Post] = []
        self.failing_channels = failing_channels or set()
        self.opened = False

    async def open(self) -> None:
        self.opened = True

    async def close(self) -> None:
        self.opened = False

    async def create_post(self, post: Post) -> None:
        if post.channel_id in self.failing_channels:
            raise UpstreamFailure(f"channel {post.channel_id} unavailable")
        self.posts.append(post)

    async def get_direct_channel(self, user_id: str, other_user_id: str) -> str:
        return f"dm-{user_id}-{other_user_id}"

    async def get_user_by_username(self, username: str) -> str:
        return f"{username}-id"

    def messages(self, channel_id: str) -> list[str]:
        return [p.message for p in self.posts if p.channel_id == channel_id]


def pull_request(owner: str, repo: str, number: int, **extra: Any) -> dict[str, Any]:
    data = {
        "number": number,
        "title": f"PR {number}",
        "body": "Description",
        "html_url": f"https://github.com/{owner}/{repo}/pull/{number}",
        "assignees": [],
        "requested_reviewers": [],
        "created_at": "2024-01-01T00:00:00Z",
    }
    data.update(extra)
    return data


class FakeGitHub:
    """In-memory GitHub REST API served through httpx.MockTransport."""

    def __init__(self) -> None:
        self.users: dict[str, str] = {}  # token -> login
        self.repos: dict[str, list[str]] = {}  # org -> repo names
        self.pulls: dict[str, list[dict[str, Any]]] = {}  # owner/repo -> pulls
        self.reviewers: dict[tuple[str, int], list[str]] = {}
        self.failing: set[str] = set()  # path regexes that answer 500
        self.garbled: set[str] = set()  # path regexes that answer 200 with HTML
        self.requests: list[httpx.Request] = []

    def add_pull(self, full_name: str, number: int, reviewers: list[str]) -> None:
        owner, repo = full_name.split("/")
        self.pulls.setdefault(full_name, []).append(pull_request(owner, repo, number))
        self.reviewers[(full_name, number)] = list(reviewers)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))

    def _token(self, request: httpx.Request) -> str:
        return request.headers.get("Authorization", "").removeprefix("Bearer ")

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if any(re.fullmatch(pattern, path) for pattern in self.failing):
            return httpx.Response(500, text="boom")

        if any(re.fullmatch(pattern, path) for pattern in self.garbled):
            return httpx.Response(200, text="<html>proxy</html>")

        if path == "/user":
            login = self.users.get(self._token(request))
            if login is None:
                return httpx.Response(401, text="Bad credentials")
            return httpx.Response(200, json={"login": login})

        if match := re.fullmatch(r"/orgs/([^/]+)/repos", path):
            org = match.group(1)
            return httpx.Response(
                200,
                json=[
                    {"name": name, "full_name": f"{org}/{name}"}
                    for name in self.repos.get(org, [])
                ],
            )

        if match := re.fullmatch(r"/repos/([^/]+/[^/]+)/pulls", path):
            return httpx.Response(200, json=self.pulls.get(match.group(1), []))

        if match := re.fullmatch(
            r"/repos/([^/]+/[^/]+)/pulls/(\d+)/requested_reviewers", path
        ):
            key = (match.group(1), int(match.group(2)))
            if request.method == "POST":
                added = json.loads(request.content)["reviewers"]
                self.reviewers.setdefault(key, []).extend(added)
                owner, repo = key[0].split("/")
                return httpx.Response(201, json=pull_request(owner, repo, key[1]))
            users = [{"login": login} for login in self.reviewers.get(key, [])]
            return httpx.Response(200, json={"users": users, "teams": []})

        return httpx.Response(404, text="Not Found")


def make_config(**overrides: Any) -> Config:
    values: dict[str, Any] = {
        "github_org": "acme",
        "bot_username": "github",
        "github_webhook_secret": "s3cret",
        "github_token": "bot-token",
    }
    values.update(overrides)
    return Config(**values)


@pytest.fixture
def store() -> MemoryKeyValueStore:
    return MemoryKeyValueStore()


@pytest.fixture
def chat() -> FakeChat:
    return FakeChat()


@pytest.fixture
def github() -> FakeGitHub:
    return FakeGitHub()


@pytest.fixture
def plugin(store: MemoryKeyValueStore, chat: FakeChat, github: FakeGitHub) -> Plugin:
    config = make_config()
    return Plugin(
        ConfigHolder(lambda: config),
        store=store,
        chat=chat,
        github_http_client=github.client(),
    )

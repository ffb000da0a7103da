"""Tests for the chat REST client."""

import json

import httpx
import pytest

from github_bridge.chat import POST_TYPE_PULL_REQUEST, ChatAPI, Post
from github_bridge.errors import UpstreamFailure


def chat_handler(requests: list[httpx.Request]):
    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        path = request.url.path
        if path == "/api/v4/posts":
            return httpx.Response(201, json={"id": "post-1"})
        if path == "/api/v4/channels/direct":
            return httpx.Response(201, json={"id": "dm-1"})
        if path == "/api/v4/users/username/github":
            return httpx.Response(200, json={"id": "bot-1"})
        return httpx.Response(404, json={"message": "not found"})

    return handler


@pytest.fixture
def requests() -> list[httpx.Request]:
    return []


@pytest.fixture
async def chat_api(requests: list[httpx.Request]):
    api = ChatAPI("http://chat.test/", bot_token="bot-token", request_timeout=3)
    await api.open(transport=httpx.MockTransport(chat_handler(requests)))
    yield api
    await api.close()


@pytest.mark.asyncio
async def test_create_post(
    chat_api: ChatAPI, requests: list[httpx.Request]
) -> None:
    post = Post(
        channel_id="C1",
        user_id="bot-1",
        message="hello",
        type=POST_TYPE_PULL_REQUEST,
        props={"number": "42"},
    )
    await chat_api.create_post(post)

    request = requests[0]
    assert request.method == "POST"
    assert request.headers["Authorization"] == "Bearer bot-token"
    assert json.loads(request.content) == {
        "channel_id": "C1",
        "user_id": "bot-1",
        "message": "hello",
        "type": "custom_github_pull_request",
        "props": {"number": "42"},
    }


@pytest.mark.asyncio
async def test_direct_channel_and_user_lookup(
    chat_api: ChatAPI, requests: list[httpx.Request]
) -> None:
    assert await chat_api.get_direct_channel("u1", "u1") == "dm-1"
    assert json.loads(requests[0].content) == ["u1", "u1"]
    assert await chat_api.get_user_by_username("github") == "bot-1"


@pytest.mark.asyncio
async def test_error_status_raises(chat_api: ChatAPI) -> None:
    with pytest.raises(UpstreamFailure) as exc_info:
        await chat_api.get_user_by_username("nobody")
    assert exc_info.value.status_code == 404


@pytest.mark.asyncio
async def test_transport_error_raises() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    api = ChatAPI("http://chat.test", bot_token="t")
    await api.open(transport=httpx.MockTransport(handler))
    try:
        with pytest.raises(UpstreamFailure, match="connection refused"):
            await api.create_post(Post(channel_id="C1", user_id="b", message="m"))
    finally:
        await api.close()

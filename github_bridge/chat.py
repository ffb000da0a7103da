"""Chat platform client for posting messages."""

import logging
from dataclasses import dataclass, field
from typing import Any, Protocol

import httpx

from .errors import UpstreamFailure

logger = logging.getLogger(__name__)

POST_TYPE_DEFAULT = ""
POST_TYPE_PULL_REQUEST = "custom_github_pull_request"


@dataclass
class Post:
    """A message to create in a chat channel."""

    channel_id: str
    user_id: str
    message: str
    type: str = POST_TYPE_DEFAULT
    props: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "channel_id": self.channel_id,
            "user_id": self.user_id,
            "message": self.message,
            "type": self.type,
            "props": self.props,
        }


class ChatClient(Protocol):
    """Protocol for the chat-delivery capability."""

    async def open(self) -> None:
        """Acquire any connections the client needs."""
        ...

    async def close(self) -> None:
        """Release the client's connections."""
        ...

    async def create_post(self, post: Post) -> None:
        """Deliver a post to its channel."""
        ...

    async def get_direct_channel(self, user_id: str, other_user_id: str) -> str:
        """Return the id of the direct-message channel between two users."""
        ...

    async def get_user_by_username(self, username: str) -> str:
        """Return the id of the user with the given username."""
        ...


class ChatAPI:
    """Client for a Mattermost-compatible REST API."""

    def __init__(
        self,
        url: str,
        bot_token: str,
        request_timeout: float = 10.0,
    ):
        self._url = url.rstrip("/")
        self._bot_token = bot_token
        self._request_timeout = request_timeout
        self._client: httpx.AsyncClient | None = None

    async def open(self, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._client = httpx.AsyncClient(
            base_url=f"{self._url}/api/v4",
            headers={"Authorization": f"Bearer {self._bot_token}"},
            timeout=httpx.Timeout(self._request_timeout),
            transport=transport,
        )

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def _send(self, method: str, path: str, **kwargs: Any) -> Any:
        assert self._client
        try:
            resp = await self._client.request(method, path, **kwargs)
            resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise UpstreamFailure(
                f"Chat API error: {exc.response.status_code} - {exc.response.text}",
                status_code=exc.response.status_code,
            ) from exc
        except httpx.HTTPError as exc:
            raise UpstreamFailure(f"Chat request failed: {exc}") from exc
        return resp.json()

    async def create_post(self, post: Post) -> None:
        await self._send("POST", "/posts", json=post.to_dict())
        logger.debug(f"Created post in channel {post.channel_id}")

    async def get_direct_channel(self, user_id: str, other_user_id: str) -> str:
        data = await self._send(
            "POST", "/channels/direct", json=[user_id, other_user_id]
        )
        return data["id"]

    async def get_user_by_username(self, username: str) -> str:
        data = await self._send("GET", f"/users/username/{username}")
        return data["id"]

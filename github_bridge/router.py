"""Pull request event routing to subscribed chat channels."""

import hmac
import logging
from dataclasses import dataclass, field
from typing import Any

from .chat import POST_TYPE_PULL_REQUEST, ChatClient, Post
from .errors import MalformedInput, UpstreamFailure
from .github import GitHubAPI, PullRequest
from .subscriptions import SubscriptionRegistry

logger = logging.getLogger(__name__)


def verify_webhook_secret(provided: str | None, secret: str) -> bool:
    """
    Compare a request-supplied secret with the configured webhook secret.

    Args:
        provided: The secret sent with the request, None when missing
        secret: The configured webhook secret

    Returns:
        True only if both are non-empty and byte-identical
    """
    if not provided or not secret:
        return False

    # Use constant-time comparison to prevent timing attacks
    return hmac.compare_digest(provided.encode(), secret.encode())


def is_pull_request_opened(event_kind: str | None, payload: dict[str, Any]) -> bool:
    return event_kind == "pull_request" and payload.get("action") == "opened"


@dataclass
class PullRequestPayload:
    """Channel-agnostic content of a pull request notification."""

    repository: str
    number: int
    title: str
    summary: str | None
    url: str
    assignees: list[str] = field(default_factory=list)
    reviewers: list[str] = field(default_factory=list)
    submitted_at: int = 0

    def to_post(self, channel_id: str, user_id: str) -> Post:
        return Post(
            channel_id=channel_id,
            user_id=user_id,
            message=(
                f"New pull request in {self.repository}: "
                f"#{self.number} {self.title} {self.url}"
            ),
            type=POST_TYPE_PULL_REQUEST,
            props={
                "number": str(self.number),
                "title": self.title,
                "summary": self.summary,
                "url": self.url,
                "assignees": list(self.assignees),
                "reviewers": list(self.reviewers),
                "submitted_at": str(self.submitted_at),
            },
        )


def split_full_name(full_name: str) -> tuple[str, str]:
    """Split "owner/repo" into its parts."""
    owner, sep, repo = full_name.partition("/")
    if not sep or not owner or not repo:
        raise MalformedInput(f"Invalid repository full name: {full_name!r}")
    return owner, repo


class EventRouter:
    """
    Fans pull request events out to subscribed channels.

    Delivery is best effort: each channel gets its own post, a failure on one
    channel is logged and the remaining channels are still attempted. Nothing
    is retried or recorded for replay.
    """

    def __init__(
        self,
        registry: SubscriptionRegistry,
        github: GitHubAPI,
        chat: ChatClient,
        bot_user_id: str,
    ) -> None:
        self._registry = registry
        self._github = github
        self._chat = chat
        self._bot_user_id = bot_user_id

    async def handle_event(
        self, event_kind: str | None, payload: dict[str, Any]
    ) -> dict[str, Any]:
        """Dispatch a decoded webhook event."""
        if not is_pull_request_opened(event_kind, payload):
            return {
                "status": "ignored",
                "event": event_kind,
                "action": payload.get("action"),
            }

        repository = payload.get("repository")
        if not isinstance(repository, dict):
            raise MalformedInput("Invalid repository payload")
        full_name = repository.get("full_name")
        if not isinstance(full_name, str):
            raise MalformedInput("Invalid repository full_name")

        data = payload.get("pull_request")
        if not isinstance(data, dict):
            raise MalformedInput("Invalid pull_request payload")
        try:
            pull_request = PullRequest.from_dict(data)
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise MalformedInput(f"Invalid pull_request payload: {e!r}") from e

        delivered = await self.pull_request_opened(full_name, pull_request)
        return {
            "status": "accepted",
            "repository": full_name,
            "pr_number": pull_request.number,
            "delivered": delivered,
        }

    async def build_payload(
        self, full_name: str, pull_request: PullRequest
    ) -> PullRequestPayload:
        """Build the notification, enriched with the live reviewer list."""
        owner, repo = split_full_name(full_name)
        try:
            reviewers = await self._github.list_requested_reviewers(
                owner, repo, pull_request.number
            )
        except UpstreamFailure as e:
            logger.warning(
                f"Failed to list reviewers for {full_name}#{pull_request.number}: {e}"
            )
            reviewers = []

        return PullRequestPayload(
            repository=full_name,
            number=pull_request.number,
            title=pull_request.title,
            summary=pull_request.body,
            url=pull_request.html_url,
            assignees=pull_request.assignees,
            reviewers=reviewers,
            submitted_at=pull_request.submitted_at,
        )

    async def pull_request_opened(
        self, full_name: str, pull_request: PullRequest
    ) -> int:
        """
        Post a pull request to every channel subscribed to its repository.

        Returns:
            The number of channels the post was delivered to
        """
        channels = await self._registry.channels_for(full_name)
        if not channels:
            logger.info(f"No subscriptions for {full_name}")
            return 0

        payload = await self.build_payload(full_name, pull_request)

        delivered = 0
        for channel_id in sorted(channels):
            post = payload.to_post(channel_id, self._bot_user_id)
            try:
                await self._chat.create_post(post)
            except Exception:
                logger.exception(
                    f"Failed to deliver PR #{pull_request.number} "
                    f"of {full_name} to channel {channel_id}"
                )
                continue
            delivered += 1

        logger.info(
            f"Delivered PR #{pull_request.number} of {full_name} "
            f"to {delivered}/{len(channels)} channels"
        )
        return delivered

"""Adding reviewers to a pull request on behalf of a chat user."""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from .credentials import CredentialStore
from .errors import MalformedInput, NotRegistered, Unauthorized
from .github import GitHubAPI

logger = logging.getLogger(__name__)


@dataclass
class AddReviewersRequest:
    """Body of a reviewer assignment request."""

    pull_request_id: int
    org: str
    repo: str
    reviewers: list[str]

    @classmethod
    def from_dict(cls, data: Any) -> "AddReviewersRequest":
        """
        Validate a decoded JSON body.

        Raises:
            MalformedInput: If a field is missing or has the wrong type
        """
        if not isinstance(data, dict):
            raise MalformedInput("Request body must be a JSON object")

        pull_request_id = data.get("pull_request_id")
        org = data.get("org")
        repo = data.get("repo")
        reviewers = data.get("reviewers")

        # bool is an int subclass
        if not isinstance(pull_request_id, int) or isinstance(pull_request_id, bool):
            raise MalformedInput("pull_request_id must be an integer")
        if not isinstance(org, str) or not org:
            raise MalformedInput("org must be a non-empty string")
        if not isinstance(repo, str) or not repo:
            raise MalformedInput("repo must be a non-empty string")
        if not isinstance(reviewers, list) or not all(
            isinstance(r, str) for r in reviewers
        ):
            raise MalformedInput("reviewers must be a list of strings")

        return cls(
            pull_request_id=pull_request_id,
            org=org,
            repo=repo,
            reviewers=reviewers,
        )


class ReviewerAssignment:
    """Requests reviewers on GitHub acting as the calling user."""

    def __init__(
        self,
        credentials: CredentialStore,
        connect: Callable[[str], GitHubAPI],
    ) -> None:
        self._credentials = credentials
        self._connect = connect

    async def assign(self, user_id: str | None, body: Any) -> str:
        """
        Add reviewers to a pull request.

        Args:
            user_id: Chat user making the request, None when missing
            body: Decoded JSON request body

        Returns:
            The pull request URL

        Raises:
            Unauthorized: If no caller identity was given
            MalformedInput: If the body is invalid
            NotRegistered: If the caller has no stored token
            UpstreamFailure: If GitHub rejects the request
        """
        if not user_id:
            raise Unauthorized("Not authorized")

        request = AddReviewersRequest.from_dict(body)

        token = await self._credentials.get_token(user_id)
        if not token:
            raise NotRegistered(user_id)

        github = self._connect(token)
        pull_request = await github.request_reviewers(
            request.org, request.repo, request.pull_request_id, request.reviewers
        )
        logger.info(
            f"User {user_id} requested {len(request.reviewers)} reviewers on "
            f"{request.org}/{request.repo}#{request.pull_request_id}"
        )
        return pull_request.html_url

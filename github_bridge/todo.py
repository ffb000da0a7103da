"""Per-user list of pull requests waiting for the user's review."""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass

from .chat import ChatClient, Post
from .credentials import CredentialStore
from .errors import UpstreamFailure
from .github import GitHubAPI, Repository

logger = logging.getLogger(__name__)

CHECKING_MESSAGE = "Checking GitHub for your pending PRs reviews. Get a :coffee:"
NOTHING_PENDING_MESSAGE = "No pending PRs to review. Go and grab a coffee :smile:"

TOKEN_ERROR = "Error retrieving the GitHub User token"
USER_ERROR = "Error retrieving the GitHub User information"
REPOSITORIES_ERROR = "Error retrieving the GitHub repository"
PULL_REQUESTS_ERROR = "Error retrieving the GitHub PRs List"
REVIEWERS_ERROR = "Error retrieving the GitHub PRs Reviewers"


@dataclass
class PendingReview:
    """A pull request on which the user is a requested reviewer."""

    repository: str
    reviewer_username: str
    pull_request_number: int
    pull_request_url: str

    def render(self) -> str:
        return (
            f"[**{self.repository}**] PR waiting {self.reviewer_username}'s review: "
            f"**PR-{self.pull_request_number}** url: {self.pull_request_url}"
        )


def render_pending_reviews(reviews: list[PendingReview]) -> str:
    """Render one line per pending review, in discovery order."""
    if not reviews:
        return NOTHING_PENDING_MESSAGE
    return "\n".join(review.render() for review in reviews)


class ReviewAggregator:
    """
    Collects the pull requests of an organization awaiting a user's review.

    A run never aborts on a failed listing call: the failure is reported to the
    user as a direct message and the walk continues with what is left. Several
    failures therefore produce several error messages.
    """

    def __init__(
        self,
        credentials: CredentialStore,
        chat: ChatClient,
        bot_user_id: str,
        connect: Callable[[str], GitHubAPI],
    ) -> None:
        self._credentials = credentials
        self._chat = chat
        self._bot_user_id = bot_user_id
        self._connect = connect
        self._tasks: set[asyncio.Task] = set()

    def spawn(self, user_id: str, org: str) -> asyncio.Task:
        """Start a run in the background and return without waiting for it."""
        task = asyncio.create_task(self.run(user_id, org))
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        logger.info(f"Started pending review check for user {user_id} in {org}")
        return task

    def _on_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error(
                f"Pending review check failed: {task.exception()}",
                exc_info=task.exception(),
            )

    @property
    def pending_tasks(self) -> int:
        return len(self._tasks)

    async def shutdown(self) -> None:
        """Cancel runs still in flight."""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    async def _send(self, channel_id: str, message: str) -> None:
        try:
            await self._chat.create_post(
                Post(channel_id=channel_id, user_id=self._bot_user_id, message=message)
            )
        except UpstreamFailure as e:
            logger.error(f"Failed to send direct message to {channel_id}: {e}")

    async def run(self, user_id: str, org: str) -> list[PendingReview]:
        """
        Walk the organization and DM the user their pending reviews.

        Args:
            user_id: Chat user requesting the list
            org: GitHub organization to walk

        Returns:
            The pending reviews that were found
        """
        try:
            dm_channel = await self._chat.get_direct_channel(user_id, user_id)
        except UpstreamFailure as e:
            logger.error(f"Failed to get the DM channel for {user_id}: {e}")
            return []

        try:
            token = await self._credentials.get_token(user_id)
        except Exception as e:
            logger.error(f"Failed to read the GitHub token of {user_id}: {e}")
            token = None

        if not token:
            await self._send(dm_channel, TOKEN_ERROR)
            return []

        github = self._connect(token)

        try:
            me = await github.get_authenticated_user()
        except UpstreamFailure as e:
            logger.warning(f"Failed to resolve GitHub user for {user_id}: {e}")
            await self._send(dm_channel, USER_ERROR)
            return []

        repositories: list[Repository] = []
        try:
            repositories = await github.list_org_repos(org)
        except UpstreamFailure as e:
            logger.warning(f"Failed to list repositories of {org}: {e}")
            await self._send(dm_channel, REPOSITORIES_ERROR)

        pending: list[PendingReview] = []
        for repository in repositories:
            try:
                pull_requests = await github.list_pull_requests(org, repository.name)
            except UpstreamFailure as e:
                logger.warning(f"Failed to list PRs of {org}/{repository.name}: {e}")
                await self._send(dm_channel, PULL_REQUESTS_ERROR)
                continue

            for pull_request in pull_requests:
                try:
                    reviewers = await github.list_requested_reviewers(
                        org, repository.name, pull_request.number
                    )
                except UpstreamFailure as e:
                    logger.warning(
                        f"Failed to list reviewers of "
                        f"{org}/{repository.name}#{pull_request.number}: {e}"
                    )
                    await self._send(dm_channel, REVIEWERS_ERROR)
                    continue

                for reviewer in reviewers:
                    if reviewer == me:
                        pending.append(
                            PendingReview(
                                repository=repository.name,
                                reviewer_username=reviewer,
                                pull_request_number=pull_request.number,
                                pull_request_url=pull_request.html_url,
                            )
                        )

        logger.info(f"Found {len(pending)} pending reviews for {me} in {org}")
        await self._send(dm_channel, render_pending_reviews(pending))
        return pending

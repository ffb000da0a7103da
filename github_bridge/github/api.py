"""GitHub REST API client."""

import logging
from collections.abc import Callable
from typing import Any, TypeVar

import httpx

from ..errors import UpstreamFailure
from .models import PullRequest, Repository, logins

logger = logging.getLogger(__name__)

GITHUB_API_URL = "https://api.github.com"
PER_PAGE = 100

T = TypeVar("T")


def _decode(response: httpx.Response, expected: type) -> Any:
    """Decode a JSON body, rejecting anything that is not of the expected type."""
    try:
        data = response.json()
    except ValueError as e:
        raise UpstreamFailure(f"GitHub API error: invalid response body: {e}") from e

    if not isinstance(data, expected):
        raise UpstreamFailure(
            f"GitHub API error: invalid response body: expected "
            f"{expected.__name__}, got {type(data).__name__}"
        )
    return data


def _parse(factory: Callable[[Any], T], data: Any) -> T:
    try:
        return factory(data)
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        raise UpstreamFailure(f"GitHub API error: invalid response body: {e!r}") from e


class GitHubAPI:
    """GitHub REST API client acting as the owner of a token."""

    def __init__(
        self,
        token: str = "",
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
        base_url: str = GITHUB_API_URL,
    ) -> None:
        """Initialize with access token."""
        self.token = token
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._http_client = http_client

    def _headers(self) -> dict[str, str]:
        """Get request headers."""
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def _request(
        self,
        client: httpx.AsyncClient,
        method: str,
        url: str,
        **kwargs: Any,
    ) -> httpx.Response:
        try:
            response = await client.request(
                method, url, headers=self._headers(), timeout=self.timeout, **kwargs
            )
        except httpx.HTTPError as e:
            raise UpstreamFailure(f"GitHub request failed: {e}") from e

        if response.status_code >= 400:
            raise UpstreamFailure(
                f"GitHub API error: {response.status_code} - {response.text}",
                status_code=response.status_code,
            )
        return response

    async def _call(self, method: str, path: str, **kwargs: Any) -> Any:
        should_close_client = self._http_client is None
        client = self._http_client or httpx.AsyncClient()

        try:
            response = await self._request(
                client, method, f"{self.base_url}{path}", **kwargs
            )
            return _decode(response, dict)
        finally:
            if should_close_client:
                await client.aclose()

    async def _get_all(
        self, path: str, params: dict[str, Any] | None = None
    ) -> list[dict[str, Any]]:
        """GET every page of a list endpoint by following Link rel="next"."""
        should_close_client = self._http_client is None
        client = self._http_client or httpx.AsyncClient()

        try:
            items: list[dict[str, Any]] = []
            url: str | None = f"{self.base_url}{path}"
            page_params: dict[str, Any] | None = {
                **(params or {}),
                "per_page": PER_PAGE,
            }

            while url:
                response = await self._request(client, "GET", url, params=page_params)
                items.extend(_decode(response, list))

                # The next link already carries the query string
                url = response.links.get("next", {}).get("url")
                page_params = None

            return items
        finally:
            if should_close_client:
                await client.aclose()

    async def get_authenticated_user(self) -> str:
        """Get the login of the token's owner."""
        data = await self._call("GET", "/user")
        login = data.get("login")
        if not isinstance(login, str) or not login:
            raise UpstreamFailure(
                "GitHub API error: invalid response body: no login"
            )
        return login

    async def list_org_repos(self, org: str) -> list[Repository]:
        """List every repository of an organization."""
        data = await self._get_all(f"/orgs/{org}/repos")
        return [_parse(Repository.from_dict, item) for item in data]

    async def list_pull_requests(
        self, owner: str, repo: str, state: str = "open"
    ) -> list[PullRequest]:
        """List pull requests of a repository."""
        data = await self._get_all(f"/repos/{owner}/{repo}/pulls", {"state": state})
        return [_parse(PullRequest.from_dict, item) for item in data]

    async def list_requested_reviewers(
        self, owner: str, repo: str, pr_number: int
    ) -> list[str]:
        """Get the logins of users whose review is requested on a pull request."""
        data = await self._call(
            "GET", f"/repos/{owner}/{repo}/pulls/{pr_number}/requested_reviewers"
        )
        return _parse(logins, data.get("users"))

    async def request_reviewers(
        self, owner: str, repo: str, pr_number: int, reviewers: list[str]
    ) -> PullRequest:
        """Request reviews from the given users on a pull request."""
        data = await self._call(
            "POST",
            f"/repos/{owner}/{repo}/pulls/{pr_number}/requested_reviewers",
            json={"reviewers": reviewers},
        )
        logger.info(f"Requested reviewers {reviewers} on {owner}/{repo}#{pr_number}")
        return _parse(PullRequest.from_dict, data)


def connect(
    token: str,
    http_client: httpx.AsyncClient | None = None,
    timeout: float = 10.0,
) -> GitHubAPI:
    """Open a GitHub session authenticated as the owner of token."""
    return GitHubAPI(token, http_client=http_client, timeout=timeout)

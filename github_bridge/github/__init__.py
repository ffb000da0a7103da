"""GitHub integration for the bridge."""

from .api import GitHubAPI, connect
from .models import PullRequest, Repository

__all__ = ["GitHubAPI", "connect", "PullRequest", "Repository"]

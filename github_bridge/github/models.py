"""GitHub REST objects used by the bridge."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


def logins(users: list[dict[str, Any]] | None) -> list[str]:
    """Extract logins from a list of GitHub user objects."""
    return [user["login"] for user in users or [] if user.get("login")]


@dataclass
class Repository:
    """A repository as returned by the repositories API."""

    name: str

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Repository":
        return cls(name=data["name"])


@dataclass
class PullRequest:
    """The fields of a pull request the bridge renders or reports."""

    number: int
    title: str
    html_url: str
    body: str | None = None
    assignees: list[str] = field(default_factory=list)
    created_at: datetime | None = None

    @property
    def submitted_at(self) -> int:
        """Creation time in unix seconds, 0 when unknown."""
        return int(self.created_at.timestamp()) if self.created_at else 0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PullRequest":
        created_at = data.get("created_at")
        return cls(
            number=data["number"],
            title=data.get("title") or "",
            html_url=data.get("html_url") or "",
            body=data.get("body"),
            assignees=logins(data.get("assignees")),
            # Format: "2024-01-01T00:00:00Z"
            created_at=(
                datetime.fromisoformat(created_at.replace("Z", "+00:00"))
                if created_at
                else None
            ),
        )

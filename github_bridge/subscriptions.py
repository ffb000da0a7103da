"""Repository to channel subscriptions.

The whole registry lives in one JSON blob under a fixed key. Every operation
loads it, mutates it in memory and writes it straight back. Nothing is cached
between operations and writes are not versioned, so two concurrent
read-modify-write cycles can drop one of the additions (last write wins).
"""

import json
import logging
from dataclasses import dataclass, field

from .store import KeyValueStore

logger = logging.getLogger(__name__)

SUBSCRIPTIONS_KEY = "subscriptions"


@dataclass
class Subscriptions:
    """Mapping of repository full name (owner/repo) to subscribed channel ids."""

    repositories: dict[str, set[str]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # A repository with no channels is the same as no entry
        self.repositories = {
            repo: set(channels)
            for repo, channels in self.repositories.items()
            if channels
        }

    def add(self, channel_id: str, repository: str) -> None:
        self.repositories.setdefault(repository, set()).add(channel_id)

    def remove(self, channel_id: str, repository: str) -> None:
        channels = self.repositories.get(repository)
        if channels is None:
            return
        channels.discard(channel_id)
        if not channels:
            del self.repositories[repository]

    def channels_for(self, repository: str) -> set[str]:
        """Channels subscribed to the exact repository full name."""
        return set(self.repositories.get(repository, set()))


def serialize(subscriptions: Subscriptions) -> bytes:
    """Encode subscriptions as JSON with sorted channel lists."""
    data = {
        repo: sorted(channels)
        for repo, channels in sorted(subscriptions.repositories.items())
        if channels
    }
    return json.dumps(data).encode("utf-8")


def deserialize(raw: bytes) -> Subscriptions:
    """
    Decode subscriptions written by serialize.

    Raises:
        ValueError: If the blob is not a JSON object of string lists.
    """
    data = json.loads(raw.decode("utf-8"))
    if not isinstance(data, dict):
        raise ValueError("Subscriptions blob must be a JSON object")

    repositories: dict[str, set[str]] = {}
    for repo, channels in data.items():
        if not isinstance(channels, list) or not all(
            isinstance(c, str) for c in channels
        ):
            raise ValueError(f"Invalid channel list for {repo}")
        if channels:
            repositories[repo] = set(channels)
    return Subscriptions(repositories=repositories)


class SubscriptionRegistry:
    """Loads and persists Subscriptions through a key-value store."""

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    async def load(self) -> Subscriptions:
        """Load subscriptions, falling back to an empty registry on any error."""
        try:
            raw = await self._store.get(SUBSCRIPTIONS_KEY)
        except Exception as e:
            logger.warning(f"Failed to read subscriptions, using empty: {e}")
            return Subscriptions()

        if not raw:
            return Subscriptions()

        try:
            return deserialize(raw)
        except (ValueError, UnicodeDecodeError) as e:
            logger.warning(f"Corrupt subscriptions blob, using empty: {e}")
            return Subscriptions()

    async def persist(self, subscriptions: Subscriptions) -> None:
        await self._store.set(SUBSCRIPTIONS_KEY, serialize(subscriptions))

    async def add(self, channel_id: str, repository: str) -> None:
        subscriptions = await self.load()
        subscriptions.add(channel_id, repository)
        await self.persist(subscriptions)
        logger.info(f"Channel {channel_id} subscribed to {repository}")

    async def remove(self, channel_id: str, repository: str) -> None:
        subscriptions = await self.load()
        subscriptions.remove(channel_id, repository)
        await self.persist(subscriptions)
        logger.info(f"Channel {channel_id} unsubscribed from {repository}")

    async def channels_for(self, repository: str) -> set[str]:
        subscriptions = await self.load()
        return subscriptions.channels_for(repository)

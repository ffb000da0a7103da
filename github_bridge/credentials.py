"""Per-user GitHub token storage."""

import logging

from .store import KeyValueStore

logger = logging.getLogger(__name__)

GITHUB_TOKEN_KEY = "_githubtoken"


def token_key(user_id: str) -> str:
    """Storage key holding a user's GitHub token."""
    return f"{user_id}{GITHUB_TOKEN_KEY}"


class CredentialStore:
    """Stores one opaque GitHub token per chat user."""

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    async def register(self, user_id: str, token: str) -> None:
        """Store or overwrite the user's token."""
        await self._store.set(token_key(user_id), token.encode("utf-8"))
        logger.info(f"Registered GitHub token for user {user_id}")

    async def deregister(self, user_id: str) -> None:
        """Remove the user's token. Unknown users are ignored."""
        await self._store.delete(token_key(user_id))
        logger.info(f"Deregistered GitHub token for user {user_id}")

    async def get_token(self, user_id: str) -> str | None:
        """Return the user's token, or None if the user never registered."""
        value = await self._store.get(token_key(user_id))
        if not value:
            return None
        return value.decode("utf-8")

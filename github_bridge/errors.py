"""Error types for the GitHub bridge."""


class BridgeError(Exception):
    """Base exception for all bridge errors."""


class ConfigInvalid(BridgeError):
    """Raised when required configuration is missing."""


class Unauthorized(BridgeError):
    """Raised when a webhook secret or caller identity is rejected."""


class NotRegistered(BridgeError):
    """Raised when a user has no stored GitHub token."""

    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__(f"No GitHub token registered for user {user_id}")


class UpstreamFailure(BridgeError):
    """Raised when a GitHub or chat API call fails."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class MalformedInput(BridgeError):
    """Raised for bad command arity or an unparseable request body."""


class NotFound(BridgeError):
    """Raised for an unmatched path or a command this bridge does not own."""

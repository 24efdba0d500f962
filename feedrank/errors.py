"""Exceptions raised by the ranking engine and its store adapters."""


class FeedrankError(Exception):
    """Base class for engine errors."""


class UserNotFoundError(FeedrankError):
    """The user store has no profile for the requested id."""

    def __init__(self, user_id: str):
        super().__init__(f"User not found: {user_id}")
        self.user_id = user_id


class DatasetError(FeedrankError):
    """A dataset folder is missing files or holds malformed JSON."""

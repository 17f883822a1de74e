"""Exceptions raised by the item lifecycle services."""


class PocketDriveError(Exception):
    """Base class for user-facing service errors."""


class NotFoundError(PocketDriveError):
    """A pocket or item does not exist, or lies outside the caller's pocket."""


class PocketNotFoundError(NotFoundError):
    """Raised when a pocket is missing or not owned by the requesting user."""


class ItemNotFoundError(NotFoundError):
    """Raised when an item is not found in the pocket."""


class FileMissingError(NotFoundError):
    """Raised when an item's stored bytes are missing."""


class AccessDeniedError(PocketDriveError):
    """Raised when the acting user lacks the role an action requires."""


class InvalidPermissionsError(PocketDriveError):
    """Raised when a permission payload can't be parsed or validated."""


class InvalidParentError(PocketDriveError):
    """Raised when a parent reference is not a directory in the same pocket."""


class ItemCycleError(PocketDriveError):
    """Raised when a move would place a directory under itself or its descendant."""


class TreeLimitExceededError(PocketDriveError):
    """Raised when a tree walk exceeds the configured depth or size limit."""


class FileOperationError(PocketDriveError):
    """Raised when the blob store fails to read or write bytes."""

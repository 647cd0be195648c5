"""Exception hierarchy for dependency operations.

Ordinary "dependencies unresolved" outcomes are never raised; they are
returned as ValidationResult / ClosureDecision values. These exceptions cover
rejected input and tracker failures only.
"""


class DependencyError(Exception):
    """Base class for all issuegraph errors."""

    def __init__(self, message: str):
        """Initialize the exception with a descriptive message.

        Args:
            message: Description of the error
        """
        super().__init__(message)
        self.message = message


class SelfDependencyError(DependencyError):
    """Raised when an item is asked to depend on itself."""

    def __init__(self, item_id: str):
        """Initialize with the offending item id.

        Args:
            item_id: The item that was given as both source and target
        """
        super().__init__(f"Item #{item_id} cannot depend on itself")
        self.item_id = item_id


class TrackerError(DependencyError):
    """Base class for failures reported by the item tracker."""


class ItemNotFoundError(TrackerError):
    """Raised when a referenced item does not exist in the tracker."""

    def __init__(self, item_id: str):
        """Initialize with the missing item id.

        Args:
            item_id: The item that could not be found
        """
        super().__init__(f"Item #{item_id} not found")
        self.item_id = item_id


class UnsupportedRelationError(TrackerError):
    """Raised when the native relation API rejects a request.

    The native store catches this and falls back to label encoding.
    """


class TransientTrackerError(TrackerError):
    """Raised for network or provider failures talking to the tracker."""

    def __init__(self, message: str, status: int | None = None):
        """Initialize with a message and optional HTTP status.

        Args:
            message: Description of the failure
            status: HTTP status code returned by the provider, if any
        """
        super().__init__(message)
        self.status = status

"""
Error taxonomy for PatenteQuiz.

Assessment errors stay local to one session; service errors are raised to the
caller (UI layer) which turns them into user-facing messages.
"""


class PatenteError(Exception):
    """Base class for all application errors."""


class EmptySelection(PatenteError, ValueError):
    """No questions match the chosen lesson/category filter."""

    def __init__(self, message: str = "No questions in this selection"):
        super().__init__(message)


class InvalidTransition(PatenteError, RuntimeError):
    """A session operation was invoked in a state that does not allow it."""

    def __init__(self, operation: str, state: str):
        self.operation = operation
        self.state = state
        super().__init__(f"Cannot {operation} while session is {state}")


class PersistenceWriteFailure(PatenteError, IOError):
    """Writing a record to the store failed."""

    def __init__(self, collection: str, reason: str):
        self.collection = collection
        self.reason = reason
        super().__init__(f"Failed to write to '{collection}': {reason}")


class RecordNotFound(PatenteError, KeyError):
    """A record lookup by id found nothing."""

    def __init__(self, collection: str, record_id: str):
        self.collection = collection
        self.record_id = record_id
        super().__init__(f"{collection}/{record_id} not found")

    def __str__(self) -> str:
        return f"{self.collection}/{self.record_id} not found"


class AuthenticationError(PatenteError):
    """Invalid credentials, token, or registration input."""


class PermissionDenied(PatenteError):
    """The acting user is not allowed to perform the operation."""

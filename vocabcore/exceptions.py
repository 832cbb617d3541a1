from typing import Optional


class PersistenceError(Exception):
    """Base exception for card store errors."""

    def __init__(
        self, message: str, original_exception: Optional[Exception] = None
    ):
        super().__init__(message)
        self.original_exception = original_exception


class DatabaseConnectionError(PersistenceError):
    """Raised for errors connecting to the database."""

    pass


class SchemaInitializationError(PersistenceError):
    """Raised for errors during schema setup."""

    pass


class CardOperationError(PersistenceError):
    """Raised for errors during card operations (CRUD)."""

    pass


class CardNotFoundError(CardOperationError):
    """Raised when a card addressed by UUID does not exist."""

    pass


class MarshallingError(PersistenceError):
    """Indicates an error during data conversion between application models
    and DB format."""

    pass


class CardValidationError(ValueError):
    """Raised when a card draft is missing required content."""

    pass


class InvariantViolation(ValueError):
    """Raised when the scheduler receives a rating or card state that can
    only come from a caller bug."""

    pass


class SessionStateError(RuntimeError):
    """Raised when a study session receives an action its current face
    does not accept."""

    pass

"""Error taxonomy for the counting engine."""


class InventoryError(Exception):
    """Base error carrying a stable machine-readable code."""

    code = "UNKNOWN_ERROR"

    def __init__(
        self, message: str, field_errors: dict[str, str] | None = None
    ) -> None:
        super().__init__(message)
        self.message = message
        self.field_errors = field_errors


class InventoryValidationError(InventoryError):
    """Malformed input rejected before touching the store."""

    code = "VALIDATION_ERROR"


class SessionNotFoundError(InventoryError):
    """A referenced session does not exist."""

    code = "NOT_FOUND"


class SessionStateConflictError(InventoryError):
    """The operation is not legal in the session's lifecycle state."""

    code = "CONFLICT"


class StorageError(InventoryError):
    """The backing store failed to complete an operation."""

    code = "STORAGE_ERROR"

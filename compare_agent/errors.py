"""Exception hierarchy for the comparison pipeline."""


class CompareAgentError(Exception):
    """Base class for errors raised by the compare agent."""


class ValidationError(CompareAgentError, ValueError):
    """Raised when a domain object would be constructed from invalid input."""


class StorageError(CompareAgentError):
    """Raised when the comparison store cannot read or write a record."""


class CorruptRecordError(StorageError):
    """Raised when a stored record exists but cannot be parsed."""

    def __init__(self, path: str, message: str) -> None:
        self.path = path
        super().__init__(f"Corrupt record {path}: {message}")


class OperationCancelled(CompareAgentError):
    """Raised when the shared cancel event is observed before or during an operation."""


class IntakeError(CompareAgentError):
    """Raised when a watched file cannot be turned into a Question."""

class AppError(Exception):
    """Base class for all application exceptions."""
    def __init__(self, message: str, status_code: int = 500, details: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

class SchedulerError(AppError):
    """Raised when the scheduler encounters a logical error or invalid state."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=400, details=details)

class ResourceNotFoundError(AppError):
    """Raised when a requested resource is not found."""
    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(
            f"{resource_type} with id {resource_id} not found",
            status_code=404,
            details={"resource_type": resource_type, "resource_id": resource_id},
        )

class ConfigurationError(AppError):
    """Raised when system configuration is invalid."""
    def __init__(self, message: str):
        super().__init__(message, status_code=500)

class SlotValidationError(AppError):
    """Raised when a proposed slot is malformed. Nothing has been written when this is raised."""
    def __init__(self, message: str, *, field: str, index: int | None = None):
        super().__init__(message, status_code=422, details={"field": field, "index": index, "reason": message})
        self.field = field
        self.index = index

class ScheduleBusyError(AppError):
    """Raised when another write to the schedule holds the lock. Safe to retry."""
    def __init__(self, operation: str, timeout_seconds: float):
        super().__init__(
            f"Schedule is being modified by another operation; {operation} can be retried",
            status_code=409,
            details={"operation": operation, "timeout_seconds": timeout_seconds, "retryable": True},
        )

class ScheduleRevisionConflictError(AppError):
    """Raised when the committed schedule moved past the revision the caller worked from. Safe to retry."""
    def __init__(self, expected: int, actual: int):
        super().__init__(
            f"Schedule revision is {actual}, expected {expected}; reload and retry",
            status_code=409,
            details={"expected_revision": expected, "actual_revision": actual, "retryable": True},
        )

class ScheduleStoreError(AppError):
    """Raised when reading or writing the schedule store fails. The transaction has been rolled back."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=500, details=details)

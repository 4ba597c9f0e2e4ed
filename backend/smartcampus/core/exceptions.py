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
    """Raised when a generation config is rejected before search begins."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=422, details=details)

class GenerationInProgressError(AppError):
    """Raised when another generation run already holds the scope."""
    def __init__(self, academic_year: str, semester_type: str):
        super().__init__(
            f"Timetable generation already in progress for {academic_year} ({semester_type})",
            status_code=409,
            details={"academic_year": academic_year, "semester_type": semester_type},
        )

class PersistenceError(AppError):
    """Raised when a schedule could not be stored; the previous schedule is left intact."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=500, details=details)

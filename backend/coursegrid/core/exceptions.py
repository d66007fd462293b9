class AppError(Exception):
    """Base class for all application exceptions."""

    code = "app_error"

    def __init__(self, message: str, status_code: int = 500, details: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class ResourceNotFoundError(AppError):
    """Raised when a requested resource is not found."""

    code = "not_found"

    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(
            f"{resource_type} with id {resource_id} not found",
            status_code=404,
            details={"resource_type": resource_type, "resource_id": resource_id},
        )


class WrongRoleError(AppError):
    """Raised when a user id exists but does not carry the role an operation expects."""

    code = "wrong_role"

    def __init__(self, user_id: str, expected_role: str, actual_role: str):
        super().__init__(
            f"User {user_id} is a {actual_role}, expected a {expected_role}",
            status_code=400,
            details={"user_id": user_id, "expected_role": expected_role, "actual_role": actual_role},
        )


class AlreadyEnrolledError(AppError):
    code = "already_enrolled"

    def __init__(self, student_id: str, section_id: str):
        super().__init__(
            "Already enrolled in this section",
            status_code=409,
            details={"student_id": student_id, "section_id": section_id},
        )


class NotEnrolledError(AppError):
    code = "not_enrolled"

    def __init__(self, student_id: str, section_id: str):
        super().__init__(
            "Enrollment not found",
            status_code=404,
            details={"student_id": student_id, "section_id": section_id},
        )


class DuplicateMeetingError(AppError):
    """Raised when a section's own meetings overlap each other."""

    code = "duplicate_meeting"

    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=409, details=details)


class InvalidSlotError(AppError):
    code = "invalid_slot"

    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=422, details=details)


class ConflictsDetectedError(AppError):
    """Raised when a candidate section overlaps a party's existing meetings.

    ``details["conflicts"]`` always carries every overlap that was found.
    """

    code = "conflicts_detected"

    def __init__(self, conflicts: list[dict]):
        count = len(conflicts)
        super().__init__(
            f"{count} schedule conflict{'s' if count != 1 else ''} detected",
            status_code=409,
            details={"conflicts": conflicts},
        )
        self.conflicts = conflicts


class SectionFullError(AppError):
    code = "section_full"

    def __init__(self, section_id: str, capacity: int):
        super().__init__(
            "Section is full",
            status_code=409,
            details={"section_id": section_id, "capacity": capacity},
        )


class SectionInUseError(AppError):
    code = "section_in_use"

    def __init__(self, section_id: str, active_enrollments: int):
        super().__init__(
            "Cannot delete section with existing enrollments",
            status_code=409,
            details={"section_id": section_id, "active_enrollments": active_enrollments},
        )


class PermissionDeniedError(AppError):
    code = "forbidden"

    def __init__(self, message: str):
        super().__init__(message, status_code=403)


class StorageFailureError(AppError):
    """Raised when the backing store fails; the enclosing transaction is rolled back."""

    code = "storage_failure"

    def __init__(self, operation: str):
        super().__init__(
            f"Storage failure during {operation}",
            status_code=503,
            details={"operation": operation},
        )


class ConfigurationError(AppError):
    """Raised when system configuration is invalid."""

    code = "configuration_error"

    def __init__(self, message: str):
        super().__init__(message, status_code=500)

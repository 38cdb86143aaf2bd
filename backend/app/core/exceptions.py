class AppError(Exception):
    """Base class for all application exceptions."""
    def __init__(self, message: str, status_code: int = 500, details: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

class ResourceNotFoundError(AppError):
    """Raised when a requested resource is not found."""
    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(f"{resource_type} with id {resource_id} not found", status_code=404)

class ConfigurationError(AppError):
    """Raised when system configuration is invalid."""
    def __init__(self, message: str):
        super().__init__(message, status_code=500)

class PermissionDenied(AppError):
    """Raised for actions that have no pending path, e.g. admin-only maintenance."""
    def __init__(self, message: str = "Insufficient permissions"):
        super().__init__(message, status_code=403)

class TargetOccupied(AppError):
    """Raised when a move names a target cell that already holds a class."""
    def __init__(self, weekday: str, room_number: str, slot_key: str):
        super().__init__(
            f"Target cell {weekday} / {room_number} / {slot_key} is already occupied",
            status_code=409,
            details={"weekday": weekday, "room_number": room_number, "slot_key": slot_key},
        )

class RoomNotFound(AppError):
    def __init__(self, room_number: str, semester_id: str):
        super().__init__(
            f"Room {room_number} is not configured for semester {semester_id}",
            status_code=404,
            details={"room_number": room_number, "semester_id": semester_id},
        )

class VersionNotFound(AppError):
    def __init__(self, semester_id: str, version_id: str):
        super().__init__(
            f"Version {version_id} does not exist for semester {semester_id}",
            status_code=404,
            details={"semester_id": semester_id, "version_id": version_id},
        )

class CannotDeleteActiveVersion(AppError):
    def __init__(self, semester_id: str, version_id: str):
        super().__init__(
            f"Version {version_id} is active for semester {semester_id} and cannot be deleted",
            status_code=409,
            details={"semester_id": semester_id, "version_id": version_id},
        )

class DuplicateAttendanceEntry(AppError):
    def __init__(self, details: dict):
        super().__init__(
            "An attendance entry for this class, time and location already exists",
            status_code=409,
            details=details,
        )

class SemesterDateRangeMissing(AppError):
    """No start/end configured; callers treat this as an empty date list."""
    def __init__(self, semester_id: str, semester_system: str | None):
        super().__init__(
            f"No date range configured for {semester_id} ({semester_system})",
            status_code=404,
        )

class StaleApproval(AppError):
    """The pending change was already resolved; resolvers treat this as a no-op."""
    def __init__(self, change_id: str):
        super().__init__(f"Pending change {change_id} is no longer open", status_code=404)

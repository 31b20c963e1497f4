class DomainError(Exception):
    """Base exception for business rule violations."""

    message = "Request could not be processed"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""

    message = "Invalid input"


class NotFoundError(DomainError):
    """Raised when a referenced entity does not exist."""

    message = "Not found"


class ConflictError(DomainError):
    """Raised when the request conflicts with the current state."""

    message = "Conflict with current state"


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""

    message = "You do not have permission to perform this action"


class InvalidCodeError(ValidationError):
    message = "Invalid code. Please check and try again."


class NoActiveCodeError(ValidationError):
    message = "No active code for this session. Please contact admin."


class CodeForWrongCohortError(ValidationError):
    message = "This code is for a different cohort."


class InvalidSessionError(ValidationError):
    message = "Session is required for half_day leave type"


class InvalidLeaveTypeError(ValidationError):
    message = "Invalid leave type. Use 'late', 'half_day', or 'full_day'"


class CodeExpiredError(ConflictError):
    message = "Code expired. Please contact admin for a new code."


class AlreadySubmittedError(ConflictError):
    message = "You have already submitted attendance for this session."


class SessionLockedError(ConflictError):
    message = "Attendance for this session has been locked. Contact admin."


class LeaveAlreadyProcessedError(ConflictError):
    message = "Leave request already processed"


class StudentNotFoundError(NotFoundError):
    message = "Student not found"


class RecordNotFoundError(NotFoundError):
    message = "Attendance record not found"


class LeaveRequestNotFoundError(NotFoundError):
    message = "Leave request not found"


class DuplicateKeyError(ConflictError):
    """Raised by repositories when a write hits a unique key."""

    message = "Duplicate entry"

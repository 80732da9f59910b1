class AttendanceTrackerError(Exception):
    """Base class for errors raised by the attendance tracker."""


class FileValidationError(AttendanceTrackerError):
    """An uploaded file was rejected before anything was inserted."""


class ConfirmationMismatchError(AttendanceTrackerError):
    """A destructive operation was not confirmed with the expected input."""


class AuthenticationError(AttendanceTrackerError):
    pass


class SignUpError(AttendanceTrackerError):
    pass

"""
Error Taxonomy - QR Attendance Tracking System

Every rejection the token protocol can produce is a subclass of
AttendanceError carrying a stable machine code and the message shown to
clients. Identity failures live here too so the HTTP layer can map all of
them from one place.
"""


class AttendanceError(Exception):
    """Base class for recoverable attendance protocol failures."""

    code = 'attendance_error'
    message = 'Attendance could not be recorded'
    status_code = 400

    def __init__(self, message: str = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)

    def to_dict(self):
        return {'message': self.message, 'error_type': self.code}


class InvalidInput(AttendanceError):
    code = 'invalid_input'
    message = 'Invalid QR code data'


class NoSessionAvailable(AttendanceError):
    code = 'no_session_available'
    message = 'No active sessions found'
    status_code = 404


class InvalidToken(AttendanceError):
    code = 'invalid_token'
    message = 'Invalid QR code'


class TokenExpired(AttendanceError):
    code = 'token_expired'
    message = 'QR code expired'


class StudentNotFound(AttendanceError):
    code = 'student_not_found'
    message = 'Student not found'


class SessionNotFound(AttendanceError):
    code = 'session_not_found'
    message = 'Session not found'


class NotEnrolled(AttendanceError):
    code = 'not_enrolled'
    message = 'Student not enrolled in this course'


class AlreadyRecorded(AttendanceError):
    code = 'already_recorded'
    message = 'Attendance already recorded'


class Unauthenticated(AttendanceError):
    code = 'unauthenticated'
    message = 'Not authenticated'
    status_code = 401


class Unauthorized(AttendanceError):
    code = 'unauthorized'
    message = 'Not authorized'
    status_code = 403


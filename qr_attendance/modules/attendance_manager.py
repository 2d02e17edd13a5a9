"""
Attendance Manager Module - QR Attendance Tracking System
Author: QR Attendance Team
Date: October 2026

This module holds the attendance validation pipeline: the only place where
system state changes in response to a scanned QR code. A presented token
passes, in order, the fingerprint check, the expiry check, the student,
session and enrollment checks and the duplicate check before a single
attendance row is committed. The first failing step decides the rejection.

Features:
- Strictly ordered, short-circuiting validation
- Wall-clock expiry enforcement at scan time
- Duplicate prevention backed by a storage-level uniqueness constraint
- Typed rejections with stable client-visible messages
"""

from datetime import datetime, timedelta
import logging
from typing import Any, Callable, Dict

from qr_attendance.config import QRCodeConfig
from qr_attendance.errors import (
    AttendanceError,
    InvalidToken,
    TokenExpired,
    StudentNotFound,
    SessionNotFound,
    NotEnrolled,
    AlreadyRecorded,
)
from qr_attendance.modules.token_codec import AttendanceToken, TokenCodec
from qr_attendance.utils import as_utc, parse_datetime, utc_now


class AttendanceValidator:
    """
    Validates presented attendance tokens and commits attendance records.
    Holds no state between calls; every check re-reads the record store.
    """

    STUDENT_ROLE = 'student'

    def __init__(self, record_store, codec: TokenCodec = None,
                 clock: Callable[[], datetime] = utc_now,
                 ttl_seconds: int = QRCodeConfig.TOKEN_TTL_SECONDS):
        """
        Initialize the validator.

        Args:
            record_store: RecordStore instance
            codec (TokenCodec): Fingerprint codec
            clock (callable): Returns the current time
            ttl_seconds (int): Maximum token age accepted at scan time
        """
        self.store = record_store
        self.codec = codec or TokenCodec()
        self.clock = clock
        self.ttl = timedelta(seconds=ttl_seconds)
        self.logger = logging.getLogger(__name__)

    def record_attendance(self, token: AttendanceToken):
        """
        Run the validation pipeline and commit on success.

        Args:
            token (AttendanceToken): Token presented by the scanning admin

        Returns:
            AttendanceRecord: The newly created record

        Raises:
            InvalidInput: a token field is malformed
            InvalidToken: fingerprint does not match the fields
            TokenExpired: token is older than the expiry window
            StudentNotFound: student id does not resolve to a student
            SessionNotFound: session id does not resolve
            NotEnrolled: student is not enrolled in the session's course
            AlreadyRecorded: attendance already exists for the pair
        """
        # 1. Fingerprint
        if not self.codec.verify_token(token):
            raise InvalidToken()

        # 2. Expiry; a token exactly ttl old is still accepted
        now = as_utc(self.clock())
        issued_at = as_utc(parse_datetime(token.issued_at))
        if now - issued_at > self.ttl:
            raise TokenExpired()

        # 3. Student
        student = self.store.get_user(token.student_id)
        if student is None or student.role != self.STUDENT_ROLE:
            raise StudentNotFound()

        # 4. Session
        session = self.store.get_session(token.session_id)
        if session is None:
            raise SessionNotFound()

        # 5. Enrollment
        enrollments = self.store.get_enrollments_by_student(token.student_id)
        if not any(enrollment.course_id == session.course_id for enrollment in enrollments):
            raise NotEnrolled()

        # 6. Duplicate
        existing = [
            record for record in self.store.get_attendance_by_session(token.session_id)
            if record.student_id == token.student_id
        ]
        if existing:
            raise AlreadyRecorded()

        # 7. Commit; the store's uniqueness constraint closes the race with step 6
        record = self.store.create_attendance(
            student_id=token.student_id,
            session_id=token.session_id,
            timestamp=now,
            qr_code=token.fingerprint,
        )

        self.logger.info(
            f"Attendance recorded: student {record.student_id}, session {record.session_id}, record {record.id}"
        )
        return record

    def process_scan(self, payload: Any) -> Dict[str, Any]:
        """
        Process a scanned QR payload for attendance recording.

        Args:
            payload: Token JSON object (or its text) as submitted by the client

        Returns:
            Dict[str, Any]: {'success': True, 'message', 'attendance'} or
                            {'success': False, 'message', 'error_type'}
        """
        try:
            token = AttendanceToken.from_payload(payload)
            record = self.record_attendance(token)
        except AttendanceError as e:
            self.logger.warning(f"Attendance scan rejected: {e.code} ({e.message})")
            return {
                'success': False,
                'message': e.message,
                'error_type': e.code
            }

        return {
            'success': True,
            'message': 'Attendance recorded successfully',
            'attendance': record
        }

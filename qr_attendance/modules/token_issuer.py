"""
Token Issuer Module - QR Attendance Tracking System
Author: QR Attendance Team
Date: October 2026

Produces fresh attendance tokens for students. Issuance is stateless:
nothing is stored, and two tokens issued back to back for the same
student are independent and equally valid until they expire.
"""

import logging
from typing import Any, Callable, Dict
from datetime import datetime

from qr_attendance.config import QRCodeConfig
from qr_attendance.errors import NoSessionAvailable
from qr_attendance.modules.token_codec import AttendanceToken, TokenCodec
from qr_attendance.utils import to_iso_utc, utc_now


class TokenIssuer:
    """
    Issues attendance tokens against the most recently dated class session.
    """

    def __init__(self, record_store, codec: TokenCodec = None,
                 clock: Callable[[], datetime] = utc_now,
                 ttl_seconds: int = QRCodeConfig.TOKEN_TTL_SECONDS):
        """
        Args:
            record_store: RecordStore instance
            codec (TokenCodec): Fingerprint codec
            clock (callable): Returns the current time
            ttl_seconds (int): Expiry budget reported to the caller
        """
        self.store = record_store
        self.codec = codec or TokenCodec()
        self.clock = clock
        self.ttl_seconds = ttl_seconds
        self.logger = logging.getLogger(__name__)

    def select_session(self):
        """
        Pick the session with the latest date across all courses.

        Ties keep whichever session the store listed first; the store gives
        no ordering guarantee beyond that.

        Returns:
            ClassSession: The targeted session, or None if there are none
        """
        sessions = self.store.list_sessions()
        if not sessions:
            return None
        return max(sessions, key=lambda session: session.date)

    def issue(self, student_id: int) -> AttendanceToken:
        """
        Issue a token binding the student to the selected session.

        Args:
            student_id (int): Authenticated student's user ID

        Returns:
            AttendanceToken: Freshly fingerprinted token

        Raises:
            NoSessionAvailable: There is no session to target
        """
        session = self.select_session()
        if session is None:
            self.logger.warning(f"No session available for token issuance (student {student_id})")
            raise NoSessionAvailable()

        # Captured once, used for both the fingerprint and the payload
        issued_at = to_iso_utc(self.clock())
        fingerprint = self.codec.compute(student_id, session.id, issued_at)

        token = AttendanceToken(
            student_id=student_id,
            session_id=session.id,
            issued_at=issued_at,
            fingerprint=fingerprint,
        )
        self.logger.info(f"Attendance token issued: student {student_id}, session {session.id}")
        return token

    def issue_payload(self, student_id: int) -> Dict[str, Any]:
        """Issuance response body: {'qrData': token, 'expiresIn': seconds}."""
        token = self.issue(student_id)
        return {
            'qrData': token.to_wire(),
            'expiresIn': self.ttl_seconds,
        }

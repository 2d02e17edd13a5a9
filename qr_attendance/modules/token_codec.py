"""
Token Codec Module - QR Attendance Tracking System
Author: QR Attendance Team
Date: October 2026

Computes and verifies the fingerprint that binds an attendance token's
student id, session id and issue timestamp together. The fingerprint is a
SHA-256 content hash of "studentId:sessionId:issuedAt"; no server key is
mixed in, so anyone who can read the three fields can recompute it.
"""

import hashlib
import json
import math
from dataclasses import dataclass
from typing import Any, Dict, Optional

from qr_attendance.config import QRCodeConfig
from qr_attendance.errors import InvalidInput
from qr_attendance.utils import as_utc, parse_datetime

FIELD_DELIMITER = ':'

# Ids are stored as SQLite INTEGER (signed 64-bit)
MIN_ID = -2 ** 63
MAX_ID = 2 ** 63 - 1

# Legacy clients send the issue time and fingerprint under these names
LEGACY_FIELD_ALIASES = {
    'issuedAt': 'timestamp',
    'fingerprint': 'hash',
}


def _coerce_id(name: str, value: Any) -> int:
    # bool is an int subclass but never a valid id
    if isinstance(value, bool):
        raise InvalidInput(f"{name} must be a number")
    if isinstance(value, float):
        if not math.isfinite(value) or not value.is_integer():
            raise InvalidInput(f"{name} must be a finite integer")
        value = int(value)
    if not isinstance(value, int):
        raise InvalidInput(f"{name} must be a number")
    if not MIN_ID <= value <= MAX_ID:
        raise InvalidInput(f"{name} is out of range")
    return value


def _check_issued_at(value: Any) -> str:
    if not isinstance(value, str):
        raise InvalidInput("issuedAt must be a string")
    try:
        # Offsets near the ends of the calendar overflow once moved to UTC
        as_utc(parse_datetime(value))
    except (ValueError, OverflowError):
        raise InvalidInput("issuedAt must be an ISO-8601 timestamp")
    return value


@dataclass(frozen=True)
class AttendanceToken:
    """Ephemeral, self-verifying attendance credential carried in a QR code."""
    student_id: int
    session_id: int
    issued_at: str
    fingerprint: str

    def to_wire(self) -> Dict[str, Any]:
        """Wire form; key order is fixed so scanned text round-trips verbatim."""
        values = (self.student_id, self.session_id, self.issued_at, self.fingerprint)
        return dict(zip(QRCodeConfig.WIRE_FIELDS, values))

    def to_json(self) -> str:
        return json.dumps(self.to_wire(), separators=(',', ':'))

    @classmethod
    def from_payload(cls, payload: Any) -> 'AttendanceToken':
        """
        Build a token from a submitted JSON object (or its text form).

        Args:
            payload: dict with studentId, sessionId, issuedAt, fingerprint;
                     'timestamp' and 'hash' are accepted for the last two

        Returns:
            AttendanceToken: Token with type-checked fields

        Raises:
            InvalidInput: payload is not an object or a field is missing or malformed
        """
        if isinstance(payload, str):
            try:
                payload = json.loads(payload)
            except ValueError:
                raise InvalidInput("QR code data is not valid JSON")

        if not isinstance(payload, dict):
            raise InvalidInput("QR code data must be a JSON object")

        fields = {}
        for name in QRCodeConfig.WIRE_FIELDS:
            alias = LEGACY_FIELD_ALIASES.get(name)
            if name in payload:
                fields[name] = payload[name]
            elif alias and alias in payload:
                fields[name] = payload[alias]
            else:
                raise InvalidInput(f"{name} is required")

        fingerprint = fields['fingerprint']
        if not isinstance(fingerprint, str):
            raise InvalidInput("fingerprint must be a string")

        return cls(
            student_id=_coerce_id('studentId', fields['studentId']),
            session_id=_coerce_id('sessionId', fields['sessionId']),
            issued_at=_check_issued_at(fields['issuedAt']),
            fingerprint=fingerprint,
        )


class TokenCodec:
    """Pure fingerprint computation and verification for attendance tokens."""

    @staticmethod
    def compute(student_id: int, session_id: int, issued_at: str) -> str:
        """
        Compute the hex SHA-256 fingerprint of the three signed fields.

        Raises:
            InvalidInput: an id is not a finite integer or issued_at does not parse
        """
        student_id = _coerce_id('studentId', student_id)
        session_id = _coerce_id('sessionId', session_id)
        issued_at = _check_issued_at(issued_at)

        data = FIELD_DELIMITER.join((str(student_id), str(session_id), issued_at))
        return hashlib.sha256(data.encode('utf-8')).hexdigest()

    @classmethod
    def verify(cls, student_id: int, session_id: int, issued_at: str,
               fingerprint: Optional[str]) -> bool:
        """Recompute and compare by exact, case-sensitive string equality."""
        if not isinstance(fingerprint, str):
            return False
        return cls.compute(student_id, session_id, issued_at) == fingerprint

    @classmethod
    def verify_token(cls, token: AttendanceToken) -> bool:
        return cls.verify(token.student_id, token.session_id, token.issued_at, token.fingerprint)

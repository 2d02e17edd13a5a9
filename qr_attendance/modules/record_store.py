"""
Record Store Module - QR Attendance Tracking System
Author: QR Attendance Team
Date: October 2026

Keyed access to every persisted entity: users, courses, class sessions,
enrollments and attendance records. Rows come back as dataclasses; the
store never caches, so each call reflects the current database state.

Features:
- Lookups by id and by relation for all entities
- Course/session/enrollment/user creation and course maintenance
- Attendance insert guarded by the (student, session) uniqueness constraint
"""

from datetime import datetime
from typing import Dict, List, Any, Optional
import logging
import sqlite3
from dataclasses import dataclass

from qr_attendance.errors import AlreadyRecorded
from qr_attendance.utils import naive_utc, parse_datetime


@dataclass
class User:
    """Data class for a student or administrator account."""
    id: int
    username: str
    password_hash: str
    email: str
    name: str
    role: str
    faculty_id: Optional[int] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> 'User':
        return cls(
            id=row['id'],
            username=row['username'],
            password_hash=row['password_hash'],
            email=row['email'],
            name=row['name'],
            role=row['role'],
            faculty_id=row.get('faculty_id'),
        )

    def to_dict(self) -> Dict[str, Any]:
        # The password hash never leaves the server
        return {
            'id': self.id,
            'username': self.username,
            'email': self.email,
            'name': self.name,
            'role': self.role,
        }


@dataclass
class Course:
    """Data class for a course."""
    id: int
    course_code: str
    course_name: str
    lecturer: str
    total_sessions: int
    semester: str
    description: Optional[str] = None
    min_attendance_percentage: int = 70

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> 'Course':
        return cls(
            id=row['id'],
            course_code=row['course_code'],
            course_name=row['course_name'],
            lecturer=row['lecturer'],
            total_sessions=row['total_sessions'],
            semester=row['semester'],
            description=row.get('description'),
            min_attendance_percentage=row['min_attendance_percentage'],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'courseCode': self.course_code,
            'courseName': self.course_name,
            'lecturer': self.lecturer,
            'totalSessions': self.total_sessions,
            'semester': self.semester,
            'description': self.description,
            'minAttendancePercentage': self.min_attendance_percentage,
        }


@dataclass
class ClassSession:
    """Data class for a single scheduled meeting of a course."""
    id: int
    course_id: int
    date: datetime
    start_time: str
    end_time: str

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> 'ClassSession':
        return cls(
            id=row['id'],
            course_id=row['course_id'],
            date=naive_utc(parse_datetime(row['date'])),
            start_time=row['start_time'],
            end_time=row['end_time'],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'courseId': self.course_id,
            'date': self.date.isoformat(),
            'startTime': self.start_time,
            'endTime': self.end_time,
        }


@dataclass
class Enrollment:
    """Data class for a student-course enrollment."""
    id: int
    student_id: int
    course_id: int

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> 'Enrollment':
        return cls(id=row['id'], student_id=row['student_id'], course_id=row['course_id'])

    def to_dict(self) -> Dict[str, Any]:
        return {'id': self.id, 'studentId': self.student_id, 'courseId': self.course_id}


@dataclass
class AttendanceRecord:
    """Data class for a committed attendance record."""
    id: int
    student_id: int
    session_id: int
    timestamp: datetime
    qr_code: str

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> 'AttendanceRecord':
        return cls(
            id=row['id'],
            student_id=row['student_id'],
            session_id=row['session_id'],
            timestamp=parse_datetime(row['timestamp']),
            qr_code=row['qr_code'],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'studentId': self.student_id,
            'sessionId': self.session_id,
            'timestamp': self.timestamp.isoformat(),
            'qrCode': self.qr_code,
        }


class RecordStore:
    """
    Durable keyed storage for users, courses, sessions, enrollments and
    attendance, backed by the DatabaseManager.
    """

    def __init__(self, database_manager):
        """
        Initialize the record store with database connection.

        Args:
            database_manager: Database manager instance
        """
        self.db = database_manager
        self.logger = logging.getLogger(__name__)

    # Users

    def get_user(self, user_id: int) -> Optional[User]:
        row = self.db.execute_query("SELECT * FROM users WHERE id = ?", (user_id,), fetch_all=False)
        return User.from_row(row) if row else None

    def get_user_by_username(self, username: str) -> Optional[User]:
        row = self.db.execute_query(
            "SELECT * FROM users WHERE username = ?", (username,), fetch_all=False
        )
        return User.from_row(row) if row else None

    def list_users_by_role(self, role: str) -> List[User]:
        rows = self.db.execute_query("SELECT * FROM users WHERE role = ? ORDER BY id", (role,))
        return [User.from_row(row) for row in rows]

    def create_user(self, username: str, password_hash: str, email: str, name: str,
                    role: str = 'student', faculty_id: Optional[int] = None) -> User:
        """
        Insert a new user account.

        Args:
            username (str): Unique login name
            password_hash (str): Already-hashed password
            email (str): Unique email address
            name (str): Display name
            role (str): 'student' or 'admin'
            faculty_id (int): Optional faculty reference

        Returns:
            User: The created user
        """
        user_id = self.db.execute_update(
            """INSERT INTO users (username, password_hash, email, name, role, faculty_id)
               VALUES (?, ?, ?, ?, ?, ?)""",
            (username, password_hash, email, name, role, faculty_id)
        )
        self.logger.info(f"User created: {username} (ID: {user_id}, role: {role})")
        return self.get_user(user_id)

    # Courses

    def get_course(self, course_id: int) -> Optional[Course]:
        row = self.db.execute_query("SELECT * FROM courses WHERE id = ?", (course_id,), fetch_all=False)
        return Course.from_row(row) if row else None

    def get_course_by_code(self, course_code: str) -> Optional[Course]:
        row = self.db.execute_query(
            "SELECT * FROM courses WHERE course_code = ?", (course_code,), fetch_all=False
        )
        return Course.from_row(row) if row else None

    def list_courses(self) -> List[Course]:
        return [Course.from_row(row) for row in self.db.execute_query("SELECT * FROM courses ORDER BY id")]

    def create_course(self, course_code: str, course_name: str, lecturer: str,
                      total_sessions: int, semester: str, description: Optional[str] = None,
                      min_attendance_percentage: int = 70) -> Course:
        course_id = self.db.execute_update(
            """INSERT INTO courses (course_code, course_name, lecturer, total_sessions,
                                    semester, description, min_attendance_percentage)
               VALUES (?, ?, ?, ?, ?, ?, ?)""",
            (course_code, course_name, lecturer, total_sessions, semester,
             description, min_attendance_percentage)
        )
        self.logger.info(f"Course created: {course_code} (ID: {course_id})")
        return self.get_course(course_id)

    def update_course(self, course_id: int, changes: Dict[str, Any]) -> Optional[Course]:
        """
        Apply a partial update to a course.

        Args:
            course_id (int): Course ID
            changes (Dict[str, Any]): Column name -> new value, already validated

        Returns:
            Course: The updated course, or None if it does not exist
        """
        if not changes:
            return self.get_course(course_id)

        assignments = ', '.join(f"{column} = ?" for column in changes)
        updated = self.db.execute_update(
            f"UPDATE courses SET {assignments} WHERE id = ?",
            tuple(changes.values()) + (course_id,)
        )
        if not updated:
            return None
        return self.get_course(course_id)

    def delete_course(self, course_id: int) -> bool:
        deleted = self.db.execute_update("DELETE FROM courses WHERE id = ?", (course_id,))
        if deleted:
            self.logger.info(f"Course deleted: {course_id}")
        return bool(deleted)

    # Sessions

    def get_session(self, session_id: int) -> Optional[ClassSession]:
        row = self.db.execute_query("SELECT * FROM sessions WHERE id = ?", (session_id,), fetch_all=False)
        return ClassSession.from_row(row) if row else None

    def list_sessions(self) -> List[ClassSession]:
        return [ClassSession.from_row(row) for row in self.db.execute_query("SELECT * FROM sessions ORDER BY id")]

    def list_sessions_by_course(self, course_id: int) -> List[ClassSession]:
        rows = self.db.execute_query(
            "SELECT * FROM sessions WHERE course_id = ? ORDER BY id", (course_id,)
        )
        return [ClassSession.from_row(row) for row in rows]

    def create_session(self, course_id: int, date: datetime, start_time: str, end_time: str) -> ClassSession:
        session_id = self.db.execute_update(
            "INSERT INTO sessions (course_id, date, start_time, end_time) VALUES (?, ?, ?, ?)",
            (course_id, naive_utc(date).isoformat(), start_time, end_time)
        )
        self.logger.info(f"Session created: {session_id} for course {course_id}")
        return self.get_session(session_id)

    # Enrollments

    def get_enrollments_by_student(self, student_id: int) -> List[Enrollment]:
        rows = self.db.execute_query(
            "SELECT * FROM enrollments WHERE student_id = ? ORDER BY id", (student_id,)
        )
        return [Enrollment.from_row(row) for row in rows]

    def get_enrollments_by_course(self, course_id: int) -> List[Enrollment]:
        rows = self.db.execute_query(
            "SELECT * FROM enrollments WHERE course_id = ? ORDER BY id", (course_id,)
        )
        return [Enrollment.from_row(row) for row in rows]

    def create_enrollment(self, student_id: int, course_id: int) -> Enrollment:
        enrollment_id = self.db.execute_update(
            "INSERT INTO enrollments (student_id, course_id) VALUES (?, ?)",
            (student_id, course_id)
        )
        row = self.db.execute_query(
            "SELECT * FROM enrollments WHERE id = ?", (enrollment_id,), fetch_all=False
        )
        return Enrollment.from_row(row)

    # Attendance

    def get_attendance_by_session(self, session_id: int) -> List[AttendanceRecord]:
        rows = self.db.execute_query(
            "SELECT * FROM attendance WHERE session_id = ? ORDER BY id", (session_id,)
        )
        return [AttendanceRecord.from_row(row) for row in rows]

    def get_attendance_by_student(self, student_id: int) -> List[AttendanceRecord]:
        rows = self.db.execute_query(
            "SELECT * FROM attendance WHERE student_id = ? ORDER BY id", (student_id,)
        )
        return [AttendanceRecord.from_row(row) for row in rows]

    def get_attendance_by_student_and_course(self, student_id: int, course_id: int) -> List[AttendanceRecord]:
        rows = self.db.execute_query(
            """SELECT a.* FROM attendance a
               JOIN sessions s ON a.session_id = s.id
               WHERE a.student_id = ? AND s.course_id = ?
               ORDER BY a.id""",
            (student_id, course_id)
        )
        return [AttendanceRecord.from_row(row) for row in rows]

    def list_attendance(self, course_id: Optional[int] = None) -> List[AttendanceRecord]:
        if course_id is None:
            rows = self.db.execute_query("SELECT * FROM attendance ORDER BY id")
        else:
            rows = self.db.execute_query(
                """SELECT a.* FROM attendance a
                   JOIN sessions s ON a.session_id = s.id
                   WHERE s.course_id = ?
                   ORDER BY a.id""",
                (course_id,)
            )
        return [AttendanceRecord.from_row(row) for row in rows]

    def create_attendance(self, student_id: int, session_id: int,
                          timestamp: datetime, qr_code: str) -> AttendanceRecord:
        """
        Insert an attendance record.

        The UNIQUE(student_id, session_id) constraint makes this a conditional
        insert: a concurrent duplicate loses here instead of being stored.

        Args:
            student_id (int): Student user ID
            session_id (int): Class session ID
            timestamp (datetime): Server commit time
            qr_code (str): Fingerprint of the redeemed token

        Returns:
            AttendanceRecord: The created record

        Raises:
            AlreadyRecorded: A record for the pair already exists
        """
        try:
            record_id = self.db.execute_update(
                """INSERT INTO attendance (student_id, session_id, timestamp, qr_code)
                   VALUES (?, ?, ?, ?)""",
                (student_id, session_id, timestamp.isoformat(), qr_code)
            )
        except sqlite3.IntegrityError as e:
            if 'UNIQUE' in str(e):
                raise AlreadyRecorded() from e
            raise

        row = self.db.execute_query(
            "SELECT * FROM attendance WHERE id = ?", (record_id,), fetch_all=False
        )
        return AttendanceRecord.from_row(row)

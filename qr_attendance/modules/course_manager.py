"""
Course Manager Module - QR Attendance Tracking System
Author: QR Attendance Team
Date: October 2026

Administrative maintenance of courses, class sessions and enrollments.
Incoming request data uses the camelCase client field names; this module
validates it and hands clean values to the record store.

Features:
- Course creation, partial update and deletion
- Class session scheduling
- Student enrollment and per-course attendance summaries
"""

from typing import Dict, List, Any, Optional
import logging
import re

from qr_attendance.utils import parse_datetime, percentage

TIME_PATTERN = re.compile(r'^\d{1,2}:\d{2}$')

# Client field -> (column, required, type)
COURSE_FIELDS = {
    'courseCode': ('course_code', True, str),
    'courseName': ('course_name', True, str),
    'lecturer': ('lecturer', True, str),
    'totalSessions': ('total_sessions', True, int),
    'semester': ('semester', True, str),
    'description': ('description', False, str),
    'minAttendancePercentage': ('min_attendance_percentage', False, int),
}


def _validation_error(message: str) -> Dict[str, Any]:
    return {'success': False, 'error': message, 'error_type': 'validation_error'}


def _read_int(data: Dict[str, Any], field: str) -> Optional[int]:
    value = data.get(field)
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value


class CourseManager:
    """
    Course, session and enrollment administration.
    """

    def __init__(self, record_store):
        """
        Initialize the course manager with the record store.

        Args:
            record_store: RecordStore instance
        """
        self.store = record_store
        self.logger = logging.getLogger(__name__)

    def _clean_course_data(self, data: Dict[str, Any], partial: bool = False):
        """
        Validate course fields and map them to column names.

        Args:
            data (Dict[str, Any]): Client payload
            partial (bool): Allow missing required fields (updates)

        Returns:
            tuple: (columns dict, error message or None)
        """
        if not isinstance(data, dict):
            return None, 'Request body must be a JSON object'

        columns = {}
        for field, (column, required, field_type) in COURSE_FIELDS.items():
            if field not in data or data[field] is None:
                if required and not partial:
                    return None, f'{field} is required'
                continue

            value = data[field]
            if field_type is int and (isinstance(value, bool) or not isinstance(value, int)):
                return None, f'{field} must be an integer'
            if field_type is str and not isinstance(value, str):
                return None, f'{field} must be a string'
            if field_type is str and required and not value.strip():
                return None, f'{field} is required'
            columns[column] = value

        min_percentage = columns.get('min_attendance_percentage')
        if min_percentage is not None and not 0 <= min_percentage <= 100:
            return None, 'minAttendancePercentage must be between 0 and 100'
        if columns.get('total_sessions') is not None and columns['total_sessions'] < 0:
            return None, 'totalSessions must not be negative'

        return columns, None

    def create_course(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Create a new course.

        Args:
            data (Dict[str, Any]): Course fields in client naming

        Returns:
            Dict[str, Any]: Creation result with the course on success
        """
        columns, error = self._clean_course_data(data)
        if error:
            return _validation_error(error)

        if self.store.get_course_by_code(columns['course_code']):
            return {
                'success': False,
                'error': 'Course with this code already exists',
                'error_type': 'duplicate'
            }

        course = self.store.create_course(**columns)
        return {'success': True, 'course': course}

    def update_course(self, course_id: int, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Partially update a course.

        Args:
            course_id (int): Course ID
            data (Dict[str, Any]): Fields to change, in client naming

        Returns:
            Dict[str, Any]: Update result with the course on success
        """
        if self.store.get_course(course_id) is None:
            return {'success': False, 'error': 'Course not found', 'error_type': 'not_found'}

        columns, error = self._clean_course_data(data, partial=True)
        if error:
            return _validation_error(error)

        new_code = columns.get('course_code')
        if new_code:
            other = self.store.get_course_by_code(new_code)
            if other and other.id != course_id:
                return {
                    'success': False,
                    'error': 'Course with this code already exists',
                    'error_type': 'duplicate'
                }

        course = self.store.update_course(course_id, columns)
        self.logger.info(f"Course {course_id} updated")
        return {'success': True, 'course': course}

    def delete_course(self, course_id: int) -> bool:
        return self.store.delete_course(course_id)

    def create_session(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Schedule a class session for an existing course.

        Args:
            data (Dict[str, Any]): courseId, date (ISO-8601), startTime, endTime

        Returns:
            Dict[str, Any]: Creation result with the session on success
        """
        if not isinstance(data, dict):
            return _validation_error('Request body must be a JSON object')

        course_id = _read_int(data, 'courseId')
        if course_id is None:
            return _validation_error('courseId must be an integer')

        try:
            date = parse_datetime(data.get('date'))
        except ValueError:
            return _validation_error('date must be an ISO-8601 date')

        for field in ('startTime', 'endTime'):
            value = data.get(field)
            if not isinstance(value, str) or not TIME_PATTERN.match(value):
                return _validation_error(f'{field} must look like HH:MM')

        if self.store.get_course(course_id) is None:
            return _validation_error('Course does not exist')

        session = self.store.create_session(
            course_id=course_id,
            date=date,
            start_time=data['startTime'],
            end_time=data['endTime'],
        )
        return {'success': True, 'session': session}

    def create_enrollment(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Enroll a student in a course.

        Args:
            data (Dict[str, Any]): studentId, courseId

        Returns:
            Dict[str, Any]: Creation result with the enrollment on success
        """
        if not isinstance(data, dict):
            return _validation_error('Request body must be a JSON object')

        student_id = _read_int(data, 'studentId')
        course_id = _read_int(data, 'courseId')
        if student_id is None or course_id is None:
            return _validation_error('studentId and courseId must be integers')

        student = self.store.get_user(student_id)
        if student is None or student.role != 'student':
            return _validation_error('Student does not exist')

        if self.store.get_course(course_id) is None:
            return _validation_error('Course does not exist')

        if any(e.course_id == course_id for e in self.store.get_enrollments_by_student(student_id)):
            return _validation_error('Student already enrolled in this course')

        enrollment = self.store.create_enrollment(student_id, course_id)
        self.logger.info(f"Student {student_id} enrolled in course {course_id}")
        return {'success': True, 'enrollment': enrollment}

    def get_student_enrollments(self, student_id: int) -> List[Dict[str, Any]]:
        """
        Enrollments of a student with attendance progress per course.

        Args:
            student_id (int): Student user ID

        Returns:
            List[Dict[str, Any]]: enrollment, course, totalSessions,
                                  attendedSessions, attendancePercentage
        """
        results = []
        for enrollment in self.store.get_enrollments_by_student(student_id):
            course = self.store.get_course(enrollment.course_id)
            sessions = self.store.list_sessions_by_course(enrollment.course_id)
            attended = self.store.get_attendance_by_student_and_course(student_id, enrollment.course_id)

            results.append({
                'enrollment': enrollment.to_dict(),
                'course': course.to_dict() if course else None,
                'totalSessions': len(sessions),
                'attendedSessions': len(attended),
                'attendancePercentage': percentage(len(attended), len(sessions))
            })

        return results

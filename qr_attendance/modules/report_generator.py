"""
Report Generator Module - QR Attendance Tracking System
Author: QR Attendance Team
Date: October 2026

This module builds the read-only views over attendance data: the admin
dashboard statistics, per-course chart series, a student's attendance
history and the CSV export.

Features:
- Dashboard statistics (students, courses, at-risk students, today's rate)
- Per-session attendance series for charts
- Student attendance history, newest first
- CSV export with an optional course filter
"""

import pandas as pd
from datetime import date
from typing import Dict, List, Any, Optional
import logging

from qr_attendance.utils import percentage, utc_now

CSV_COLUMNS = ['Student Name', 'Student ID', 'Course', 'Session Date', 'Session Time', 'Timestamp']


class ReportGenerator:
    """
    Reporting and export over the record store.
    """

    def __init__(self, record_store):
        """
        Initialize the report generator with the record store.

        Args:
            record_store: RecordStore instance
        """
        self.store = record_store
        self.logger = logging.getLogger(__name__)

    def get_admin_statistics(self, today: Optional[date] = None) -> Dict[str, Any]:
        """
        Summary figures for the admin dashboard.

        A student is at risk when their attendance in any enrolled course is
        below that course's minimum percentage; each student counts once.

        Args:
            today (date): UTC day used for the attendance-today figure

        Returns:
            Dict[str, Any]: totalStudents, activeCourses, atRiskStudents,
                            attendanceToday (e.g. '75%')
        """
        today = today or utc_now().date()
        students = self.store.list_users_by_role('student')
        courses = self.store.list_courses()

        at_risk_count = 0
        for student in students:
            for enrollment in self.store.get_enrollments_by_student(student.id):
                course = self.store.get_course(enrollment.course_id)
                if course is None:
                    continue

                sessions = self.store.list_sessions_by_course(course.id)
                attended = self.store.get_attendance_by_student_and_course(student.id, course.id)
                rate = len(attended) / len(sessions) * 100 if sessions else 0

                if rate < course.min_attendance_percentage:
                    at_risk_count += 1
                    break

        total_possible = 0
        total_actual = 0
        for session in self.store.list_sessions():
            if session.date.date() != today:
                continue
            if self.store.get_course(session.course_id) is None:
                continue
            total_possible += len(self.store.get_enrollments_by_course(session.course_id))
            total_actual += len(self.store.get_attendance_by_session(session.id))

        return {
            'totalStudents': len(students),
            'activeCourses': len(courses),
            'atRiskStudents': at_risk_count,
            'attendanceToday': f"{percentage(total_actual, total_possible)}%"
        }

    def get_course_attendance_data(self, course_id: int) -> List[Dict[str, Any]]:
        """
        Attendance per session of a course, oldest session first.

        Args:
            course_id (int): Course ID

        Returns:
            List[Dict[str, Any]]: session label, attendanceCount,
                                  totalStudents, attendancePercentage
        """
        sessions = sorted(self.store.list_sessions_by_course(course_id), key=lambda s: s.date)
        total_students = len(self.store.get_enrollments_by_course(course_id))

        chart_data = []
        for session in sessions:
            attendance_count = len(self.store.get_attendance_by_session(session.id))
            label = f"{session.date.strftime('%b')} {session.date.day}"
            chart_data.append({
                'session': f"{label} ({session.start_time})",
                'attendanceCount': attendance_count,
                'totalStudents': total_students,
                'attendancePercentage': percentage(attendance_count, total_students)
            })

        return chart_data

    def get_student_attendance(self, student_id: int) -> List[Dict[str, Any]]:
        """
        A student's attendance history, newest first. Records whose session
        has since been deleted are skipped.
        """
        history = []
        for record in self.store.get_attendance_by_student(student_id):
            session = self.store.get_session(record.session_id)
            if session is None:
                continue
            course = self.store.get_course(session.course_id)

            history.append({
                'id': record.id,
                'date': session.date.isoformat(),
                'courseName': course.course_name if course else 'Unknown Course',
                'courseCode': course.course_code if course else 'Unknown',
                'time': f"{session.start_time} - {session.end_time}",
                'status': 'Present',
                'timestamp': record.timestamp
            })

        history.sort(key=lambda item: item['timestamp'], reverse=True)
        for item in history:
            item['timestamp'] = item['timestamp'].isoformat()
        return history

    def export_attendance_csv(self, course_id: Optional[int] = None) -> str:
        """
        Export attendance records as CSV text.

        Args:
            course_id (int): Only include sessions of this course

        Returns:
            str: CSV document with a header row
        """
        rows = []
        for record in self.store.list_attendance(course_id):
            student = self.store.get_user(record.student_id)
            session = self.store.get_session(record.session_id)
            if student is None or session is None:
                continue
            course = self.store.get_course(session.course_id)
            if course is None:
                continue

            rows.append({
                'Student Name': student.name,
                'Student ID': student.id,
                'Course': f"{course.course_name} ({course.course_code})",
                'Session Date': session.date.date().isoformat(),
                'Session Time': f"{session.start_time} - {session.end_time}",
                'Timestamp': record.timestamp.strftime('%Y-%m-%d %H:%M:%S')
            })

        df = pd.DataFrame(rows, columns=CSV_COLUMNS)
        self.logger.info(f"Attendance export generated: {len(df)} rows")
        return df.to_csv(index=False)

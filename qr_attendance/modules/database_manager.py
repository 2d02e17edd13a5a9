"""
Database Manager Module - QR Attendance Tracking System
Author: QR Attendance Team
Date: October 2026

This module handles the SQLite connection and schema for the attendance
system. It owns connection management, table creation, default seed data
and the low-level query helpers every other manager builds on.

Features:
- Thread-local SQLite connection management
- Idempotent schema creation
- Default admin/student/course seed data
- Query, update and transaction helpers
- Storage-level uniqueness for attendance (student, session) pairs
"""

import sqlite3
import logging
from datetime import timedelta
from contextlib import contextmanager
import threading
import os
from werkzeug.security import generate_password_hash

from qr_attendance.utils import naive_utc, utc_now


class DatabaseManager:
    """
    Database management class for the QR attendance system.
    Handles connection management, schema creation and data manipulation
    with error logging and transaction support.
    """

    def __init__(self, db_path, seed_default_data=True):
        """
        Initialize the database manager with the specified database path.

        Args:
            db_path (str): Path to the SQLite database file; ':memory:' is private
                to the thread that opens it
            seed_default_data (bool): Insert demo users/courses when empty
        """
        self.db_path = str(db_path)
        self.seed_default_data = seed_default_data
        self.logger = logging.getLogger(__name__)
        self._local = threading.local()

        # Ensure database directory exists
        directory = os.path.dirname(self.db_path)
        if self.db_path != ':memory:' and directory:
            os.makedirs(directory, exist_ok=True)

        # Initialize database schema if it doesn't exist
        self.initialize_database()

    @contextmanager
    def get_connection(self):
        """
        Context manager for database connections.
        Provides thread-local connections for thread safety.

        Yields:
            sqlite3.Connection: Database connection object
        """
        if not hasattr(self._local, 'connection'):
            self._local.connection = sqlite3.connect(
                self.db_path,
                check_same_thread=False,
                timeout=30.0
            )
            self._local.connection.row_factory = sqlite3.Row
            # Enable foreign key constraints
            self._local.connection.execute("PRAGMA foreign_keys = ON")

        try:
            yield self._local.connection
        except sqlite3.IntegrityError:
            self._local.connection.rollback()
            raise
        except Exception as e:
            self._local.connection.rollback()
            self.logger.error(f"Database operation failed: {str(e)}")
            raise

    def initialize_database(self):
        """
        Create all necessary tables and initial data for the attendance system.
        This method is idempotent and can be called multiple times safely.
        """
        try:
            with self.get_connection() as conn:
                cursor = conn.cursor()

                cursor.execute("""
                    CREATE TABLE IF NOT EXISTS faculties (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        name VARCHAR(100) UNIQUE NOT NULL
                    )
                """)

                # Students and administrators share one table, split by role
                cursor.execute("""
                    CREATE TABLE IF NOT EXISTS users (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        username VARCHAR(50) UNIQUE NOT NULL,
                        password_hash VARCHAR(255) NOT NULL,
                        email VARCHAR(100) UNIQUE NOT NULL,
                        name VARCHAR(100) NOT NULL,
                        role VARCHAR(20) NOT NULL DEFAULT 'student',
                        faculty_id INTEGER,
                        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                        FOREIGN KEY (faculty_id) REFERENCES faculties(id)
                    )
                """)

                cursor.execute("""
                    CREATE TABLE IF NOT EXISTS courses (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        course_code VARCHAR(20) UNIQUE NOT NULL,
                        course_name VARCHAR(100) NOT NULL,
                        lecturer VARCHAR(100) NOT NULL,
                        total_sessions INTEGER NOT NULL,
                        semester VARCHAR(50) NOT NULL,
                        description TEXT,
                        min_attendance_percentage INTEGER NOT NULL DEFAULT 70
                    )
                """)

                # Class sessions; ON DELETE CASCADE keeps course deletion clean
                cursor.execute("""
                    CREATE TABLE IF NOT EXISTS sessions (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        course_id INTEGER NOT NULL,
                        date TIMESTAMP NOT NULL,
                        start_time VARCHAR(10) NOT NULL,
                        end_time VARCHAR(10) NOT NULL,
                        FOREIGN KEY (course_id) REFERENCES courses(id) ON DELETE CASCADE
                    )
                """)

                cursor.execute("""
                    CREATE TABLE IF NOT EXISTS enrollments (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        student_id INTEGER NOT NULL,
                        course_id INTEGER NOT NULL,
                        FOREIGN KEY (student_id) REFERENCES users(id) ON DELETE CASCADE,
                        FOREIGN KEY (course_id) REFERENCES courses(id) ON DELETE CASCADE
                    )
                """)

                cursor.execute("""
                    CREATE TABLE IF NOT EXISTS attendance (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        student_id INTEGER NOT NULL,
                        session_id INTEGER NOT NULL,
                        timestamp TIMESTAMP NOT NULL,
                        qr_code VARCHAR(128) NOT NULL,
                        FOREIGN KEY (student_id) REFERENCES users(id) ON DELETE CASCADE,
                        FOREIGN KEY (session_id) REFERENCES sessions(id) ON DELETE CASCADE,
                        UNIQUE(student_id, session_id)
                    )
                """)

                # Create indexes for better performance
                cursor.execute("CREATE INDEX IF NOT EXISTS idx_sessions_course ON sessions(course_id)")
                cursor.execute("CREATE INDEX IF NOT EXISTS idx_enrollments_student ON enrollments(student_id)")
                cursor.execute("CREATE INDEX IF NOT EXISTS idx_enrollments_course ON enrollments(course_id)")
                cursor.execute("CREATE INDEX IF NOT EXISTS idx_attendance_session ON attendance(session_id)")
                cursor.execute("CREATE INDEX IF NOT EXISTS idx_attendance_student ON attendance(student_id)")

                conn.commit()

                if self.seed_default_data:
                    self._insert_default_data(cursor)
                    conn.commit()

                self.logger.info("Database initialized successfully")

        except Exception as e:
            self.logger.error(f"Failed to initialize database: {str(e)}")
            raise

    def _insert_default_data(self, cursor):
        """
        Insert default demo data: an admin, a student, three courses with
        sessions, and the student's enrollments.

        Args:
            cursor: Database cursor object
        """
        try:
            cursor.execute("SELECT COUNT(*) FROM users")
            if cursor.fetchone()[0] > 0:
                return

            cursor.execute("INSERT INTO faculties (name) VALUES (?)", ('Computer Science',))
            faculty_id = cursor.lastrowid

            cursor.execute("""
                INSERT INTO users (username, password_hash, email, name, role, faculty_id)
                VALUES (?, ?, ?, ?, ?, ?)
            """, ('admin', generate_password_hash('admin123'), 'admin@nutm.edu.ng',
                  'Admin User', 'admin', None))

            cursor.execute("""
                INSERT INTO users (username, password_hash, email, name, role, faculty_id)
                VALUES (?, ?, ?, ?, ?, ?)
            """, ('student', generate_password_hash('student123'), 'student@nutm.edu.ng',
                  'John Doe', 'student', faculty_id))
            student_id = cursor.lastrowid

            sample_courses = [
                ('CSC301', 'Computer Networks', 'Prof. Sarah Johnson', 45, 'Beta Semester',
                 'Introduction to computer networking concepts', 70),
                ('CSC302', 'Database Systems', 'Dr. Michael Wong', 45, 'Beta Semester',
                 'Database design and implementation', 70),
                ('CSC303', 'Software Engineering', 'Prof. David Chen', 45, 'Beta Semester',
                 'Software development life cycle and methodologies', 70),
            ]

            course_ids = []
            for course in sample_courses:
                cursor.execute("""
                    INSERT INTO courses (course_code, course_name, lecturer, total_sessions,
                                         semester, description, min_attendance_percentage)
                    VALUES (?, ?, ?, ?, ?, ?, ?)
                """, course)
                course_ids.append(cursor.lastrowid)

            now = naive_utc(utc_now())
            yesterday = now - timedelta(days=1)
            sample_sessions = [
                (course_ids[0], now.isoformat(), '10:30', '12:30'),
                (course_ids[1], now.isoformat(), '13:15', '15:15'),
                (course_ids[2], yesterday.isoformat(), '09:00', '11:00'),
            ]
            cursor.executemany("""
                INSERT INTO sessions (course_id, date, start_time, end_time)
                VALUES (?, ?, ?, ?)
            """, sample_sessions)

            cursor.executemany("""
                INSERT INTO enrollments (student_id, course_id) VALUES (?, ?)
            """, [(student_id, course_id) for course_id in course_ids])

            self.logger.info("Default data inserted successfully")

        except Exception as e:
            self.logger.error(f"Failed to insert default data: {str(e)}")
            raise

    def execute_query(self, query, params=None, fetch_all=True):
        """
        Execute a SELECT query and return results.

        Args:
            query (str): SQL query string
            params (tuple): Query parameters
            fetch_all (bool): Whether to fetch all results or just one

        Returns:
            list or dict: Query results
        """
        try:
            with self.get_connection() as conn:
                cursor = conn.cursor()

                if params:
                    cursor.execute(query, params)
                else:
                    cursor.execute(query)

                if fetch_all:
                    results = cursor.fetchall()
                    return [dict(row) for row in results]
                else:
                    result = cursor.fetchone()
                    return dict(result) if result else None

        except Exception as e:
            self.logger.error(f"Query execution failed: {str(e)}")
            raise

    def execute_update(self, query, params=None):
        """
        Execute an INSERT, UPDATE, or DELETE query.

        Args:
            query (str): SQL query string
            params (tuple): Query parameters

        Returns:
            int: Number of affected rows or last inserted row ID
        """
        try:
            with self.get_connection() as conn:
                cursor = conn.cursor()

                if params:
                    cursor.execute(query, params)
                else:
                    cursor.execute(query)

                conn.commit()

                # Return last inserted row ID for INSERT statements
                if query.strip().upper().startswith('INSERT'):
                    return cursor.lastrowid
                else:
                    return cursor.rowcount

        except sqlite3.IntegrityError as e:
            # Constraint violations are expected outcomes for callers to map
            self.logger.warning(f"Constraint violation: {str(e)}")
            raise
        except Exception as e:
            self.logger.error(f"Update execution failed: {str(e)}")
            raise

    @contextmanager
    def transaction(self):
        """
        Context manager for database transactions with automatic rollback on error.

        Yields:
            sqlite3.Connection: Database connection within transaction
        """
        with self.get_connection() as conn:
            try:
                yield conn
                conn.commit()
            except Exception as e:
                conn.rollback()
                self.logger.error(f"Transaction rolled back: {str(e)}")
                raise

    def close_all_connections(self):
        """Close the current thread's database connection."""
        try:
            if hasattr(self._local, 'connection'):
                self._local.connection.close()
                del self._local.connection
        except sqlite3.Error as e:
            self.logger.error(f"Error closing connections: {str(e)}")

from datetime import datetime, timedelta, timezone

import pytest
from werkzeug.security import generate_password_hash

from qr_attendance import create_app

T0 = datetime(2026, 10, 18, 9, 0, tzinfo=timezone.utc)

ADMIN_ID = 1
STUDENT_ID = 2
UNENROLLED_STUDENT_ID = 3
COURSE_ID = 9
OTHER_COURSE_ID = 10
SESSION_ID = 5
OTHER_SESSION_ID = 4


class FakeClock:
    """Controllable time source shared by the issuer and the validator."""

    def __init__(self, now=T0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now = self.now + timedelta(seconds=seconds)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def app(tmp_path, clock):
    app = create_app(
        'testing',
        clock=clock,
        DATABASE_PATH=str(tmp_path / 'attendance_test.db'),
        SEED_DEFAULT_DATA=False,
    )
    yield app
    app.extensions['qr_attendance']['db_manager'].close_all_connections()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def managers(app):
    return app.extensions['qr_attendance']


@pytest.fixture
def db(managers):
    return managers['db_manager']


@pytest.fixture
def store(managers):
    return managers['record_store']


@pytest.fixture
def issuer(managers):
    return managers['token_issuer']


@pytest.fixture
def validator(managers):
    return managers['attendance_validator']


@pytest.fixture
def scenario(db):
    """
    Admin 1, student 2 enrolled in course 9, student 3 enrolled nowhere.
    Session 5 (course 9) is the most recent; session 4 belongs to course 10.
    """
    users = [
        (ADMIN_ID, 'admin', generate_password_hash('admin123'), 'admin@example.edu', 'Admin User', 'admin'),
        (STUDENT_ID, 'student', generate_password_hash('student123'), 'student@example.edu', 'John Doe', 'student'),
        (UNENROLLED_STUDENT_ID, 'jane', generate_password_hash('jane123'), 'jane@example.edu', 'Jane Roe', 'student'),
    ]
    for user in users:
        db.execute_update(
            "INSERT INTO users (id, username, password_hash, email, name, role) VALUES (?, ?, ?, ?, ?, ?)",
            user
        )

    db.execute_update(
        """INSERT INTO courses (id, course_code, course_name, lecturer, total_sessions, semester,
                                min_attendance_percentage)
           VALUES (?, ?, ?, ?, ?, ?, ?)""",
        (COURSE_ID, 'CSC301', 'Computer Networks', 'Prof. Sarah Johnson', 45, 'Beta Semester', 70)
    )
    db.execute_update(
        """INSERT INTO courses (id, course_code, course_name, lecturer, total_sessions, semester,
                                min_attendance_percentage)
           VALUES (?, ?, ?, ?, ?, ?, ?)""",
        (OTHER_COURSE_ID, 'CSC302', 'Database Systems', 'Dr. Michael Wong', 45, 'Beta Semester', 70)
    )

    db.execute_update(
        "INSERT INTO sessions (id, course_id, date, start_time, end_time) VALUES (?, ?, ?, ?, ?)",
        (OTHER_SESSION_ID, OTHER_COURSE_ID, '2026-10-17T00:00:00', '13:15', '15:15')
    )
    db.execute_update(
        "INSERT INTO sessions (id, course_id, date, start_time, end_time) VALUES (?, ?, ?, ?, ?)",
        (SESSION_ID, COURSE_ID, '2026-10-18T00:00:00', '10:30', '12:30')
    )

    db.execute_update(
        "INSERT INTO enrollments (student_id, course_id) VALUES (?, ?)",
        (STUDENT_ID, COURSE_ID)
    )
    return db


def login(client, username, password):
    return client.post('/api/auth/login', json={'username': username, 'password': password})


@pytest.fixture
def admin_client(client, scenario):
    response = login(client, 'admin', 'admin123')
    assert response.status_code == 200
    return client


@pytest.fixture
def student_client(app, scenario):
    client = app.test_client()
    response = login(client, 'student', 'student123')
    assert response.status_code == 200
    return client

import csv
import io

from conftest import COURSE_ID, OTHER_COURSE_ID, SESSION_ID, STUDENT_ID, T0, UNENROLLED_STUDENT_ID

NEW_COURSE = {
    'courseCode': 'CSC401',
    'courseName': 'Distributed Systems',
    'lecturer': 'Dr. Ada Obi',
    'totalSessions': 30,
    'semester': 'Alpha Semester',
}


def test_course_admin_endpoints_require_admin(student_client):
    assert student_client.post('/api/courses', json=NEW_COURSE).status_code == 403
    assert student_client.get('/api/admin/statistics').status_code == 403
    assert student_client.get('/api/admin/export-attendance').status_code == 403


def test_list_and_get_courses(student_client):
    courses = student_client.get('/api/courses').get_json()
    assert [c['courseCode'] for c in courses] == ['CSC301', 'CSC302']

    course = student_client.get(f'/api/courses/{COURSE_ID}').get_json()
    assert course['courseName'] == 'Computer Networks'
    assert course['minAttendancePercentage'] == 70

    assert student_client.get('/api/courses/999').status_code == 404
    response = student_client.get('/api/courses/abc')
    assert response.status_code == 400
    assert response.get_json()['message'] == 'Invalid course ID'


def test_create_course(admin_client):
    response = admin_client.post('/api/courses', json=NEW_COURSE)
    assert response.status_code == 201
    course = response.get_json()
    assert course['courseCode'] == 'CSC401'
    assert course['minAttendancePercentage'] == 70

    duplicate = admin_client.post('/api/courses', json=NEW_COURSE)
    assert duplicate.status_code == 400
    assert duplicate.get_json()['message'] == 'Course with this code already exists'


def test_create_course_validation(admin_client):
    missing = dict(NEW_COURSE)
    del missing['lecturer']
    response = admin_client.post('/api/courses', json=missing)
    assert response.status_code == 400
    assert response.get_json()['message'] == 'lecturer is required'

    bad_percentage = dict(NEW_COURSE, minAttendancePercentage=150)
    response = admin_client.post('/api/courses', json=bad_percentage)
    assert response.get_json()['message'] == 'minAttendancePercentage must be between 0 and 100'


def test_update_course(admin_client):
    response = admin_client.put(f'/api/courses/{COURSE_ID}', json={'minAttendancePercentage': 80})
    assert response.status_code == 200
    assert response.get_json()['minAttendancePercentage'] == 80
    assert response.get_json()['courseCode'] == 'CSC301'

    clash = admin_client.put(f'/api/courses/{COURSE_ID}', json={'courseCode': 'CSC302'})
    assert clash.status_code == 400

    assert admin_client.put('/api/courses/999', json={'lecturer': 'x'}).status_code == 404


def test_delete_course(admin_client):
    assert admin_client.delete(f'/api/courses/{OTHER_COURSE_ID}').status_code == 204
    assert admin_client.get(f'/api/courses/{OTHER_COURSE_ID}').status_code == 404
    assert admin_client.delete(f'/api/courses/{OTHER_COURSE_ID}').status_code == 404


def test_create_and_list_sessions(admin_client):
    response = admin_client.post('/api/sessions', json={
        'courseId': COURSE_ID,
        'date': '2026-10-20T00:00:00.000Z',
        'startTime': '10:30',
        'endTime': '12:30',
    })
    assert response.status_code == 201
    assert response.get_json()['courseId'] == COURSE_ID

    sessions = admin_client.get(f'/api/courses/{COURSE_ID}/sessions').get_json()
    assert len(sessions) == 2
    assert sessions[-1]['date'] == '2026-10-20T00:00:00'


def test_create_session_for_unknown_course(admin_client):
    response = admin_client.post('/api/sessions', json={
        'courseId': 999,
        'date': '2026-10-20',
        'startTime': '10:30',
        'endTime': '12:30',
    })
    assert response.status_code == 400
    assert response.get_json()['message'] == 'Course does not exist'


def test_create_session_rejects_bad_times(admin_client):
    response = admin_client.post('/api/sessions', json={
        'courseId': COURSE_ID,
        'date': '2026-10-20',
        'startTime': 'noon',
        'endTime': '12:30',
    })
    assert response.status_code == 400
    assert response.get_json()['message'] == 'startTime must look like HH:MM'


def test_enroll_student(admin_client):
    response = admin_client.post('/api/enrollments', json={
        'studentId': UNENROLLED_STUDENT_ID,
        'courseId': COURSE_ID,
    })
    assert response.status_code == 201
    assert response.get_json()['studentId'] == UNENROLLED_STUDENT_ID

    again = admin_client.post('/api/enrollments', json={
        'studentId': UNENROLLED_STUDENT_ID,
        'courseId': COURSE_ID,
    })
    assert again.status_code == 400
    assert again.get_json()['message'] == 'Student already enrolled in this course'

    missing = admin_client.post('/api/enrollments', json={'studentId': 999, 'courseId': COURSE_ID})
    assert missing.get_json()['message'] == 'Student does not exist'


def test_course_attendance_data(admin_client, store):
    store.create_attendance(STUDENT_ID, SESSION_ID, T0, 'abc')

    data = admin_client.get(f'/api/admin/courses/{COURSE_ID}/attendance-data').get_json()
    assert data == [{
        'session': 'Oct 18 (10:30)',
        'attendanceCount': 1,
        'totalStudents': 1,
        'attendancePercentage': 100,
    }]


def test_export_attendance_csv(admin_client, store):
    store.create_attendance(STUDENT_ID, SESSION_ID, T0, 'abc')

    response = admin_client.get('/api/admin/export-attendance')
    assert response.status_code == 200
    assert response.mimetype == 'text/csv'
    assert 'attendance-report.csv' in response.headers['Content-Disposition']

    rows = list(csv.DictReader(io.StringIO(response.get_data(as_text=True))))
    assert rows == [{
        'Student Name': 'John Doe',
        'Student ID': str(STUDENT_ID),
        'Course': 'Computer Networks (CSC301)',
        'Session Date': '2026-10-18',
        'Session Time': '10:30 - 12:30',
        'Timestamp': '2026-10-18 09:00:00',
    }]


def test_export_attendance_filters_by_course(admin_client, store):
    store.create_attendance(STUDENT_ID, SESSION_ID, T0, 'abc')

    response = admin_client.get(f'/api/admin/export-attendance?courseId={OTHER_COURSE_ID}')
    lines = response.get_data(as_text=True).strip().splitlines()
    assert lines == ['Student Name,Student ID,Course,Session Date,Session Time,Timestamp']

    assert admin_client.get('/api/admin/export-attendance?courseId=x').status_code == 400

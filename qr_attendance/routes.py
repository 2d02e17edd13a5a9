"""
HTTP API - QR Attendance Tracking System

JSON endpoints for authentication, token issuance, attendance scanning and
the course/session/enrollment administration around them.
"""

import logging

from flask import Blueprint, Response, current_app, jsonify, request
from werkzeug.exceptions import HTTPException

from qr_attendance.errors import AttendanceError
from qr_attendance.modules.auth_manager import ROLE_ADMIN, ROLE_STUDENT, role_required
from qr_attendance.modules.token_codec import AttendanceToken

logger = logging.getLogger(__name__)

api_bp = Blueprint('api', __name__, url_prefix='/api')


def _managers():
    return current_app.extensions['qr_attendance']


def _json_body():
    return request.get_json(silent=True)


def _parse_id(value, label):
    try:
        return int(value), None
    except (TypeError, ValueError):
        return None, (jsonify({'message': f'Invalid {label} ID'}), 400)


@api_bp.errorhandler(AttendanceError)
def handle_attendance_error(error):
    return jsonify(error.to_dict()), error.status_code


@api_bp.errorhandler(Exception)
def handle_unexpected_error(error):
    if isinstance(error, HTTPException):
        return error
    logger.error(f"Unhandled error on {request.path}: {str(error)}", exc_info=error)
    return jsonify({'message': 'Server error'}), 500


# -------------------- Auth --------------------

@api_bp.route('/auth/login', methods=['POST'])
def login():
    """Authenticate with username and password and start a session"""
    data = _json_body() or {}
    username = data.get('username')
    password = data.get('password')

    if not isinstance(username, str) or not username.strip():
        return jsonify({'message': 'Username is required'}), 400
    if not isinstance(password, str) or not password:
        return jsonify({'message': 'Password is required'}), 400

    auth_manager = _managers()['auth_manager']
    user = auth_manager.authenticate_user(username.strip(), password)
    if not user:
        return jsonify({'message': 'Invalid username or password'}), 401

    auth_manager.login(user)
    return jsonify({'user': user}), 200


@api_bp.route('/auth/logout', methods=['POST'])
def logout():
    _managers()['auth_manager'].logout()
    return jsonify({'message': 'Logged out successfully'}), 200


@api_bp.route('/auth/me')
@role_required()
def me(identity):
    user = _managers()['record_store'].get_user(identity.subject_id)
    return jsonify({'user': user.to_dict()}), 200


# -------------------- Attendance tokens --------------------

@api_bp.route('/student/generate-qr')
@role_required(ROLE_STUDENT)
def generate_qr(identity):
    """Issue an attendance token for the signed-in student"""
    managers = _managers()
    payload = managers['token_issuer'].issue_payload(identity.subject_id)

    token = AttendanceToken.from_payload(payload['qrData'])
    payload['qrImage'] = managers['qr_generator'].render_token(token)['image_base64']
    return jsonify(payload), 200


@api_bp.route('/attendance/scan', methods=['POST'])
@role_required(ROLE_ADMIN)
def scan_attendance(identity):
    """Validate a scanned attendance token and record attendance"""
    payload = _json_body()
    if payload is None:
        return jsonify({'success': False, 'message': 'No QR code data provided'}), 400

    result = _managers()['attendance_validator'].process_scan(payload)

    if not result['success']:
        return jsonify({
            'success': False,
            'message': result['message'],
            'error_type': result['error_type']
        }), 400

    logger.info(f"Admin {identity.subject_id} recorded attendance {result['attendance'].id}")
    return jsonify({
        'success': True,
        'message': result['message'],
        'attendance': result['attendance'].to_dict()
    }), 201


@api_bp.route('/student/attendance')
@role_required(ROLE_STUDENT)
def student_attendance(identity):
    history = _managers()['report_generator'].get_student_attendance(identity.subject_id)
    return jsonify(history), 200


@api_bp.route('/student/enrollments')
@role_required()
def student_enrollments(identity):
    enrollments = _managers()['course_manager'].get_student_enrollments(identity.subject_id)
    return jsonify(enrollments), 200


# -------------------- Courses --------------------

@api_bp.route('/courses')
@role_required()
def list_courses(identity):
    courses = _managers()['record_store'].list_courses()
    return jsonify([course.to_dict() for course in courses]), 200


@api_bp.route('/courses', methods=['POST'])
@role_required(ROLE_ADMIN)
def create_course(identity):
    result = _managers()['course_manager'].create_course(_json_body())
    if not result['success']:
        return jsonify({'message': result['error']}), 400
    return jsonify(result['course'].to_dict()), 201


@api_bp.route('/courses/<course_id>')
@role_required()
def get_course(course_id, identity):
    course_id, error = _parse_id(course_id, 'course')
    if error:
        return error

    course = _managers()['record_store'].get_course(course_id)
    if course is None:
        return jsonify({'message': 'Course not found'}), 404
    return jsonify(course.to_dict()), 200


@api_bp.route('/courses/<course_id>', methods=['PUT'])
@role_required(ROLE_ADMIN)
def update_course(course_id, identity):
    course_id, error = _parse_id(course_id, 'course')
    if error:
        return error

    result = _managers()['course_manager'].update_course(course_id, _json_body())
    if not result['success']:
        status = 404 if result['error_type'] == 'not_found' else 400
        return jsonify({'message': result['error']}), status
    return jsonify(result['course'].to_dict()), 200


@api_bp.route('/courses/<course_id>', methods=['DELETE'])
@role_required(ROLE_ADMIN)
def delete_course(course_id, identity):
    course_id, error = _parse_id(course_id, 'course')
    if error:
        return error

    if not _managers()['course_manager'].delete_course(course_id):
        return jsonify({'message': 'Course not found'}), 404
    return '', 204


@api_bp.route('/courses/<course_id>/sessions')
@role_required()
def list_course_sessions(course_id, identity):
    course_id, error = _parse_id(course_id, 'course')
    if error:
        return error

    store = _managers()['record_store']
    if store.get_course(course_id) is None:
        return jsonify({'message': 'Course not found'}), 404
    return jsonify([s.to_dict() for s in store.list_sessions_by_course(course_id)]), 200


# -------------------- Sessions & enrollments --------------------

@api_bp.route('/sessions', methods=['POST'])
@role_required(ROLE_ADMIN)
def create_session(identity):
    result = _managers()['course_manager'].create_session(_json_body())
    if not result['success']:
        return jsonify({'message': result['error']}), 400
    return jsonify(result['session'].to_dict()), 201


@api_bp.route('/enrollments', methods=['POST'])
@role_required(ROLE_ADMIN)
def create_enrollment(identity):
    result = _managers()['course_manager'].create_enrollment(_json_body())
    if not result['success']:
        return jsonify({'message': result['error']}), 400
    return jsonify(result['enrollment'].to_dict()), 201


# -------------------- Admin reports --------------------

@api_bp.route('/admin/statistics')
@role_required(ROLE_ADMIN)
def admin_statistics(identity):
    return jsonify(_managers()['report_generator'].get_admin_statistics()), 200


@api_bp.route('/admin/courses/<course_id>/attendance-data')
@role_required(ROLE_ADMIN)
def course_attendance_data(course_id, identity):
    course_id, error = _parse_id(course_id, 'course')
    if error:
        return error

    managers = _managers()
    if managers['record_store'].get_course(course_id) is None:
        return jsonify({'message': 'Course not found'}), 404
    return jsonify(managers['report_generator'].get_course_attendance_data(course_id)), 200


@api_bp.route('/admin/export-attendance')
@role_required(ROLE_ADMIN)
def export_attendance(identity):
    """Download attendance as CSV, optionally for one course"""
    course_id = request.args.get('courseId')
    if course_id is not None:
        course_id, error = _parse_id(course_id, 'course')
        if error:
            return error
        if _managers()['record_store'].get_course(course_id) is None:
            return jsonify({'message': 'Course not found'}), 404

    csv_content = _managers()['report_generator'].export_attendance_csv(course_id)
    return Response(
        csv_content,
        status=200,
        mimetype='text/csv',
        headers={'Content-Disposition': 'attachment; filename=attendance-report.csv'}
    )

# QR Attendance Tracking System - Modules Package
"""
Core business logic modules for the QR attendance tracking system.
"""

# Module descriptions
MODULES = {
    'database_manager': 'SQLite connection and schema management',
    'record_store': 'Keyed access to users, courses, sessions, enrollments and attendance',
    'token_codec': 'Attendance token fingerprint computation and verification',
    'token_issuer': 'Attendance token issuance',
    'attendance_manager': 'Attendance token validation and recording',
    'qr_generator': 'QR code image rendering',
    'auth_manager': 'Authentication and role checks',
    'course_manager': 'Course, session and enrollment administration',
    'report_generator': 'Statistics, history and CSV export'
}


def get_module_info():
    """Get information about available modules"""
    return MODULES

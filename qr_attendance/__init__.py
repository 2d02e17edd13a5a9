# QR Attendance Tracking System - App Package
"""
Role-based attendance tracking with short-lived QR tokens.

Students request a QR token tied to a class session; an administrator
scans it and the token is validated before attendance is recorded.
"""

import logging

from flask import Flask

__version__ = "1.0.0"
__author__ = "QR Attendance Team"
__description__ = "Flask attendance tracking service built on self-verifying QR tokens"

# Import core components for easy access
from .config import init_config
from .modules.database_manager import DatabaseManager
from .modules.record_store import RecordStore
from .modules.token_codec import AttendanceToken, TokenCodec
from .modules.token_issuer import TokenIssuer
from .modules.attendance_manager import AttendanceValidator
from .modules.qr_generator import QRGenerator
from .modules.auth_manager import AuthManager
from .modules.course_manager import CourseManager
from .modules.report_generator import ReportGenerator

__all__ = [
    'create_app',
    'DatabaseManager',
    'RecordStore',
    'AttendanceToken',
    'TokenCodec',
    'TokenIssuer',
    'AttendanceValidator',
    'QRGenerator',
    'AuthManager',
    'CourseManager',
    'ReportGenerator'
]

logger = logging.getLogger(__name__)


def create_app(config_name=None, clock=None, **overrides):
    """
    Application factory.

    Args:
        config_name (str): Key of the config dict; defaults to FLASK_ENV
        clock (callable): Time source for token issuance and validation
        **overrides: Values applied to app.config after the config class

    Returns:
        Flask: Configured application with all managers wired in
    """
    app = Flask(__name__)
    config_class = init_config(app, config_name)
    app.config.update(overrides)
    logging.getLogger('qr_attendance').setLevel(config_class.LOG_LEVEL)

    db_manager = DatabaseManager(
        app.config['DATABASE_PATH'],
        seed_default_data=app.config['SEED_DEFAULT_DATA']
    )
    record_store = RecordStore(db_manager)
    codec = TokenCodec()

    time_kwargs = {'clock': clock} if clock is not None else {}

    app.extensions['qr_attendance'] = {
        'db_manager': db_manager,
        'record_store': record_store,
        'token_issuer': TokenIssuer(record_store, codec, **time_kwargs),
        'attendance_validator': AttendanceValidator(record_store, codec, **time_kwargs),
        'qr_generator': QRGenerator(),
        'auth_manager': AuthManager(record_store),
        'course_manager': CourseManager(record_store),
        'report_generator': ReportGenerator(record_store),
    }

    from .routes import api_bp
    app.register_blueprint(api_bp)

    logger.info(f"Application created with {config_class.__name__}")
    return app

# QR Attendance Tracking System Configuration

import os
import tempfile
from datetime import timedelta
from pathlib import Path

# Base directory (repository root)
BASE_DIR = Path(__file__).parent.parent.absolute()

DEFAULT_SECRET_KEY = 'qr-attendance-secret-key-change-me'


def _env_flag(name, default='False'):
    return os.environ.get(name, default).lower() in ['true', 'on', '1']


class Config:
    """Base configuration class"""

    # Flask Configuration
    SECRET_KEY = os.environ.get('SECRET_KEY') or DEFAULT_SECRET_KEY

    # Database Configuration
    DATABASE_PATH = Path(os.environ.get('DATABASE_PATH') or BASE_DIR / 'database' / 'attendance.db')
    SEED_DEFAULT_DATA = _env_flag('SEED_DEFAULT_DATA', 'True')

    # Session Configuration
    PERMANENT_SESSION_LIFETIME = timedelta(days=1)
    SESSION_COOKIE_SECURE = False  # Set to True in production with HTTPS
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = 'Lax'

    # Logging Configuration
    LOG_LEVEL = os.environ.get('LOG_LEVEL') or 'INFO'
    LOG_FILE = BASE_DIR / 'logs' / 'attendance.log'
    LOG_MAX_BYTES = 10 * 1024 * 1024  # 10MB
    LOG_BACKUP_COUNT = 5

    # Development Configuration
    DEBUG = _env_flag('DEBUG')
    TESTING = False

    @classmethod
    def init_app(cls, app):
        """Initialize application configuration"""
        # Create necessary directories
        directories = [cls.LOG_FILE.parent]
        if str(cls.DATABASE_PATH) != ':memory:':
            directories.append(Path(cls.DATABASE_PATH).parent)

        for directory in directories:
            directory.mkdir(parents=True, exist_ok=True)

        # Set Flask configuration
        app.config.update({
            'SECRET_KEY': cls.SECRET_KEY,
            'DEBUG': cls.DEBUG,
            'TESTING': cls.TESTING,
            'PERMANENT_SESSION_LIFETIME': cls.PERMANENT_SESSION_LIFETIME,
            'SESSION_COOKIE_SECURE': cls.SESSION_COOKIE_SECURE,
            'SESSION_COOKIE_HTTPONLY': cls.SESSION_COOKIE_HTTPONLY,
            'SESSION_COOKIE_SAMESITE': cls.SESSION_COOKIE_SAMESITE,
            'DATABASE_PATH': str(cls.DATABASE_PATH),
            'SEED_DEFAULT_DATA': cls.SEED_DEFAULT_DATA,
        })


class DevelopmentConfig(Config):
    """Development configuration"""
    DEBUG = True
    TESTING = False

    DATABASE_PATH = Path(os.environ.get('DATABASE_PATH') or BASE_DIR / 'database' / 'attendance_dev.db')

    # More verbose logging
    LOG_LEVEL = 'DEBUG'


class TestingConfig(Config):
    """Testing configuration"""
    TESTING = True
    DEBUG = True

    # Connections are per thread, so all threads must share one file
    DATABASE_PATH = Path(os.environ.get('DATABASE_PATH') or Path(tempfile.gettempdir()) / 'qr_attendance_test.db')
    SEED_DEFAULT_DATA = False


class ProductionConfig(Config):
    """Production configuration"""
    DEBUG = False
    TESTING = False

    # Enhanced security for production
    SESSION_COOKIE_SECURE = True  # Requires HTTPS

    DATABASE_PATH = Path(os.environ.get('DATABASE_PATH') or BASE_DIR / 'database' / 'attendance_prod.db')

    # Production logging
    LOG_LEVEL = 'WARNING'

    @classmethod
    def init_app(cls, app):
        super().init_app(app)

        # Production-specific initialization
        import logging
        from logging.handlers import RotatingFileHandler

        # Setup file logging
        if not app.debug:
            file_handler = RotatingFileHandler(
                cls.LOG_FILE,
                maxBytes=cls.LOG_MAX_BYTES,
                backupCount=cls.LOG_BACKUP_COUNT
            )
            file_handler.setFormatter(logging.Formatter(
                '%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]'
            ))
            file_handler.setLevel(logging.INFO)
            app.logger.addHandler(file_handler)

            app.logger.setLevel(logging.INFO)
            app.logger.info('QR Attendance startup')


# Configuration dictionary
config = {
    'development': DevelopmentConfig,
    'testing': TestingConfig,
    'production': ProductionConfig,
    'default': DevelopmentConfig
}


class QRCodeConfig:
    """QR code and attendance token configuration"""

    # Expiry budget handed to clients and enforced at scan time
    TOKEN_TTL_SECONDS = 600

    # QR image generation settings
    VERSION = 1
    ERROR_CORRECT = 'M'  # ~15% error correction
    BOX_SIZE = 10
    BORDER = 4

    # QR image styling
    FILL_COLOR = "black"
    BACK_COLOR = "white"

    # Key order of the JSON wire form; clients must round-trip it verbatim
    WIRE_FIELDS = ('studentId', 'sessionId', 'issuedAt', 'fingerprint')


def get_config(config_name=None):
    """Get configuration based on name or the FLASK_ENV environment variable"""
    if config_name is None:
        config_name = os.environ.get('FLASK_ENV', 'default')
    return config.get(config_name, DevelopmentConfig)


def validate_config(config_class):
    """Validate configuration settings"""
    errors = []

    database_path = str(config_class.DATABASE_PATH)
    if database_path != ':memory:' and not Path(database_path).parent.exists():
        errors.append(f"Database directory does not exist: {Path(database_path).parent}")

    if issubclass(config_class, ProductionConfig) and config_class.SECRET_KEY == DEFAULT_SECRET_KEY:
        errors.append("SECRET_KEY must be set in production")

    if QRCodeConfig.TOKEN_TTL_SECONDS <= 0:
        errors.append("TOKEN_TTL_SECONDS must be positive")

    return errors


def init_config(app, config_name=None):
    """Initialize application with configuration"""
    config_class = get_config(config_name)
    config_class.init_app(app)

    # Validate configuration
    errors = validate_config(config_class)
    if errors:
        for error in errors:
            app.logger.error(f"Configuration error: {error}")
        raise RuntimeError("Configuration validation failed")

    return config_class

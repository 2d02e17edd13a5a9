import threading

from qr_attendance import create_app
from qr_attendance.config import (
    DEFAULT_SECRET_KEY,
    DevelopmentConfig,
    ProductionConfig,
    QRCodeConfig,
    TestingConfig,
    get_config,
    validate_config,
)


def test_get_config_by_name():
    assert get_config('testing') is TestingConfig
    assert get_config('production') is ProductionConfig
    assert get_config('unknown') is DevelopmentConfig


def test_testing_config_is_valid():
    assert validate_config(TestingConfig) == []


def test_production_requires_a_real_secret(monkeypatch):
    monkeypatch.setattr(ProductionConfig, 'SECRET_KEY', DEFAULT_SECRET_KEY)
    assert "SECRET_KEY must be set in production" in validate_config(ProductionConfig)


def test_token_lifetime():
    assert QRCodeConfig.TOKEN_TTL_SECONDS == 600
    assert QRCodeConfig.WIRE_FIELDS == ('studentId', 'sessionId', 'issuedAt', 'fingerprint')


def test_app_config_reflects_overrides(app, tmp_path):
    assert app.config['TESTING'] is True
    assert app.config['SEED_DEFAULT_DATA'] is False
    assert app.config['DATABASE_PATH'] == str(tmp_path / 'attendance_test.db')


def test_testing_database_is_a_shared_file():
    assert str(TestingConfig.DATABASE_PATH) != ':memory:'


def test_testing_app_schema_is_visible_from_other_threads(tmp_path, monkeypatch):
    monkeypatch.setattr(TestingConfig, 'DATABASE_PATH', tmp_path / 'threads.db')
    app = create_app('testing')
    store = app.extensions['qr_attendance']['record_store']
    results = []

    def list_courses_in_worker():
        try:
            results.append(store.list_courses())
        finally:
            store.db.close_all_connections()

    worker = threading.Thread(target=list_courses_in_worker)
    worker.start()
    worker.join()

    assert results == [[]]
    store.db.close_all_connections()

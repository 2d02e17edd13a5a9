"""
QR Attendance Tracking System - Development Entry Point

Creates the Flask application from the environment's configuration
(FLASK_ENV, DATABASE_PATH, SECRET_KEY, ...) and runs the development
server. Use a WSGI server with `qr_attendance:create_app()` in production.
"""

import logging
import os

from qr_attendance import create_app

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]'
)
logger = logging.getLogger(__name__)

app = create_app()

if __name__ == '__main__':
    port = int(os.environ.get('PORT', 5000))
    logger.info(f"Starting QR attendance server on port {port}")
    app.run(host='0.0.0.0', port=port, debug=app.config['DEBUG'])

"""
QR Code Generator Module - QR Attendance Tracking System
Author: QR Attendance Team
Date: October 2026

This module renders attendance tokens into QR code images. The QR payload
is the token's compact JSON wire form, so the text a scanner reads back is
exactly what the validation endpoint expects.

Features:
- PNG QR code generation from attendance tokens
- Configurable size, border, colors and error correction
- Base64 encoding for inline delivery to clients
"""

import qrcode
import io
import base64
import logging
from typing import Any, Dict

from qr_attendance.config import QRCodeConfig

ERROR_CORRECTION_LEVELS = {
    'L': qrcode.constants.ERROR_CORRECT_L,  # ~7% error correction
    'M': qrcode.constants.ERROR_CORRECT_M,  # ~15% error correction
    'Q': qrcode.constants.ERROR_CORRECT_Q,  # ~25% error correction
    'H': qrcode.constants.ERROR_CORRECT_H,  # ~30% error correction
}


class QRGenerator:
    """
    QR code renderer for attendance tokens.
    """

    def __init__(self, settings: Dict[str, Any] = None):
        """
        Initialize the QR code generator with default settings.

        Args:
            settings (dict): Overrides for the default image settings
        """
        self.logger = logging.getLogger(__name__)

        self.default_settings = {
            'version': QRCodeConfig.VERSION,
            'error_correction': ERROR_CORRECTION_LEVELS[QRCodeConfig.ERROR_CORRECT],
            'box_size': QRCodeConfig.BOX_SIZE,
            'border': QRCodeConfig.BORDER,
            'fill_color': QRCodeConfig.FILL_COLOR,
            'back_color': QRCodeConfig.BACK_COLOR
        }
        if settings:
            self.default_settings.update(settings)

    def render_text(self, qr_data: str) -> Dict[str, Any]:
        """
        Render arbitrary text into a PNG QR code.

        Args:
            qr_data (str): Text to encode

        Returns:
            dict: image_base64 (PNG, base64) and image_size (width, height)
        """
        settings = self.default_settings

        qr = qrcode.QRCode(
            version=settings['version'],
            error_correction=settings['error_correction'],
            box_size=settings['box_size'],
            border=settings['border']
        )

        qr.add_data(qr_data)
        qr.make(fit=True)

        img = qr.make_image(
            fill_color=settings['fill_color'],
            back_color=settings['back_color']
        )

        # Convert image to base64 string
        buffer = io.BytesIO()
        img.save(buffer, format='PNG')
        img_base64 = base64.b64encode(buffer.getvalue()).decode()

        return {
            'image_base64': img_base64,
            'image_size': img.size,
        }

    def render_token(self, token) -> Dict[str, Any]:
        """
        Render an AttendanceToken as a QR code.

        Args:
            token (AttendanceToken): Token to encode

        Returns:
            dict: image_base64, image_size and the encoded qr_data text
        """
        qr_data = token.to_json()
        result = self.render_text(qr_data)
        result['qr_data'] = qr_data

        self.logger.debug(f"QR code rendered for student {token.student_id}, session {token.session_id}")
        return result

# loyalty/qr.py
import base64
import io
import logging

import qrcode
from django.conf import settings

logger = logging.getLogger(__name__)


def client_dashboard_url(business_slug, client_id):
    """Public dashboard URL encoded in a client's QR code"""
    base_url = getattr(settings, 'CLIENT_DASHBOARD_URL', 'http://localhost:4000').rstrip('/')
    return f"{base_url}/{business_slug}/client/{client_id}"


def generate_qr_png(business_slug, client_id, box_size=10, border=2):
    """PNG bytes of the dashboard QR code (high error correction for printed cards)"""
    qr = qrcode.QRCode(
        version=None,
        error_correction=qrcode.constants.ERROR_CORRECT_H,
        box_size=box_size,
        border=border,
    )
    qr.add_data(client_dashboard_url(business_slug, client_id))
    qr.make(fit=True)

    img = qr.make_image(fill_color="black", back_color="white")
    buffer = io.BytesIO()
    img.save(buffer, 'PNG')
    return buffer.getvalue()


def generate_qr_data_url(business_slug, client_id, **options):
    """data:image/png;base64,... for embedding in JSON responses"""
    try:
        png = generate_qr_png(business_slug, client_id, **options)
    except Exception as e:
        logger.error(f"Failed to generate QR code for {business_slug}/{client_id}: {e}")
        raise
    return "data:image/png;base64," + base64.b64encode(png).decode()

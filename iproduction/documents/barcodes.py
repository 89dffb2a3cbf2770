"""
Code128 barcode images for printed documents
Uses python-barcode's ImageWriter (Pillow) and returns inline PNG data URLs
"""
import base64
import io
import logging

import barcode
from barcode.writer import ImageWriter

logger = logging.getLogger(__name__)

RENDER_OPTIONS = {
    'module_width': 0.3,
    'module_height': 12.0,
    'quiet_zone': 2.0,
    'font_size': 8,
    'text_distance': 3.0,
    'background': 'white',
    'foreground': 'black',
    'write_text': True,
}


def code128_data_url(value):
    """
    Render `value` as a Code128 barcode

    Returns:
        'data:image/png;base64,...' string
    """
    code128 = barcode.get_barcode_class('code128')
    image = code128(str(value), writer=ImageWriter()).render(RENDER_OPTIONS)

    buffer = io.BytesIO()
    image.save(buffer, format='PNG', optimize=False, compress_level=1)
    encoded = base64.b64encode(buffer.getvalue()).decode('utf-8')
    buffer.close()
    image.close()
    logger.debug(f"Rendered Code128 barcode for {value!r}")
    return f'data:image/png;base64,{encoded}'

# calsync/integrations/google/colors.py
"""
Translation between application colors (hex strings) and Google Calendar's
fixed event palette (color ids "1".."11").

The mapping is lossy on purpose: any hex value outside the palette becomes
Peacock ("7"), and Peacock maps back to "#46d6db". Only palette colors survive
a round trip.
"""
from typing import Optional

from calsync.core.constants import (
    DEFAULT_EVENT_COLOR,
    DEFAULT_GOOGLE_COLOR_ID,
    GOOGLE_EVENT_PALETTE,
)

_HEX_TO_ID = {hex_value: color_id for color_id, hex_value, _ in GOOGLE_EVENT_PALETTE}
_ID_TO_HEX = {color_id: hex_value for color_id, hex_value, _ in GOOGLE_EVENT_PALETTE}


def to_external(color: Optional[str]) -> str:
    """Hex color -> Google color id."""
    if not color:
        return DEFAULT_GOOGLE_COLOR_ID
    return _HEX_TO_ID.get(color.strip().lower(), DEFAULT_GOOGLE_COLOR_ID)


def to_internal(color_id: Optional[str]) -> str:
    """Google color id -> hex color."""
    if color_id is None:
        return DEFAULT_EVENT_COLOR
    return _ID_TO_HEX.get(str(color_id).strip(), DEFAULT_EVENT_COLOR)

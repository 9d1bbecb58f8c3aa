"""Normalization helpers.

Centralizes parsing of loosely typed payload values.
"""

from __future__ import annotations

import math
from typing import Any

from pylivetrack.models.geo import Coordinate


def safe_float(value: Any) -> float | None:
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(result) or math.isinf(result):
        return None
    return result


def safe_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text if text else None


def coordinate_from_lng_lat(value: Any) -> Coordinate | None:
    """GeoJSON ``[lng, lat]`` pair to a coordinate, or ``None`` when unusable."""
    if not isinstance(value, (list, tuple)) or len(value) != 2:
        return None
    lng, lat = safe_float(value[0]), safe_float(value[1])
    if lng is None or lat is None:
        return None
    if not (-90.0 <= lat <= 90.0 and -180.0 <= lng <= 180.0):
        return None
    return Coordinate(latitude=lat, longitude=lng)

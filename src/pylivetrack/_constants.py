"""Internal constants shared across the library."""

USER_AGENT = "pylivetrack/1"

ORS_BASE_URL = "https://api.openrouteservice.org"
ORS_PROFILE = "driving-car"

# ------------------------------------------------------------------
# Location stream wire format
# ------------------------------------------------------------------

INBOUND_EVENT = "newLocation"
OUTBOUND_EVENT = "locationUpdate"
TOPIC_PREFIX = "livetrack"


def locations_topic(prefix: str, user_id: str = "+") -> str:
    """Topic carrying location messages for *user_id* (``+`` matches every user)."""
    return f"{prefix.rstrip('/')}/locations/{user_id}"


# ------------------------------------------------------------------
# Default routing region (approximate India bounding box)
# ------------------------------------------------------------------

DEFAULT_REGION: tuple[float, float, float, float] = (6.55, 35.675, 68.11, 97.4)

"""Stream ingestion helpers.

This module translates decoded stream messages into normalized state events.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from pylivetrack._constants import INBOUND_EVENT, OUTBOUND_EVENT
from pylivetrack.models.entity import TrackedEntity
from pylivetrack.models.stream import LocationMessage
from pylivetrack.state.events import EntityUpdate, IngestionSource

_logger = logging.getLogger(__name__)

# Peers relay each other's outbound messages on shared brokers, so both names are accepted.
_LOCATION_EVENTS = frozenset({INBOUND_EVENT, OUTBOUND_EVENT})


def parse_location_message(payload: dict[str, Any]) -> LocationMessage | None:
    """Validate a decoded payload; ``None`` when it is not a usable location event."""
    event_name = payload.get("event", INBOUND_EVENT)
    if event_name not in _LOCATION_EVENTS:
        return None
    try:
        return LocationMessage.model_validate(payload)
    except ValidationError:
        _logger.debug("Discarding malformed location message", exc_info=True)
        return None


def build_event_from_location(
    payload: dict[str, Any],
    *,
    local_user_id: str | None,
) -> EntityUpdate | None:
    """Build an :class:`EntityUpdate` from a stream payload.

    Returns ``None`` for malformed payloads and for the local user's own
    echoed position.
    """
    message = parse_location_message(payload)
    if message is None:
        return None
    if local_user_id is not None and message.user_id == local_user_id:
        return None

    entity_kwargs: dict[str, Any] = {
        "id": message.user_id,
        "username": message.username,
        "coordinate": message.coords,
    }
    if message.timestamp is not None:
        entity_kwargs["last_updated"] = message.timestamp
    return EntityUpdate(entity=TrackedEntity(**entity_kwargs), source=IngestionSource.STREAM)

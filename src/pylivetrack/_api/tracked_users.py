"""Backend tracked-users endpoint.

Endpoint:
  - ``GET {api_base_url}/users/tracked-users`` (bearer token)
"""

from __future__ import annotations

import logging

from pylivetrack._transport import Transport
from pylivetrack.ingestion.tracked_users import build_events_from_tracked_users
from pylivetrack.session import Session
from pylivetrack.state.events import EntityUpdate

_logger = logging.getLogger(__name__)

ENDPOINT = "/users/tracked-users"


async def fetch_tracked_users(
    transport: Transport,
    session: Session,
    *,
    api_base_url: str,
    timeout: float,
) -> list[EntityUpdate]:
    """Fetch the users the local user tracks as entity updates.

    Raises
    ------
    SessionError
        If the session carries no token.
    LiveTrackTransportError
        On network or HTTP failure.
    """
    url = f"{api_base_url.rstrip('/')}{ENDPOINT}"
    records = await transport.get_json(url, headers=session.authorization_header(), timeout=timeout)
    events = build_events_from_tracked_users(records, local_user_id=session.user_id)
    _logger.debug(
        "Tracked users: %d records, %d usable",
        len(records) if isinstance(records, list) else 0,
        len(events),
    )
    return events

"""JSON-over-HTTP transport shared by the directions provider and backend API."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any, Protocol

import aiohttp

from pylivetrack._constants import USER_AGENT
from pylivetrack._redact import redact_for_log
from pylivetrack.exceptions import LiveTrackTransportError

_logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Structural transport interface used by the provider and API modules.

    Having a protocol here makes it easy to pass test doubles while
    keeping the production implementation (`JsonTransport`) concrete.
    """

    async def get_json(
        self,
        url: str,
        *,
        params: Mapping[str, str] | None = None,
        headers: Mapping[str, str] | None = None,
        timeout: float | None = None,
    ) -> Any:
        ...


class JsonTransport:
    """aiohttp-backed GET transport that decodes JSON bodies."""

    def __init__(self, http_session: aiohttp.ClientSession) -> None:
        self._http = http_session

    async def get_json(
        self,
        url: str,
        *,
        params: Mapping[str, str] | None = None,
        headers: Mapping[str, str] | None = None,
        timeout: float | None = None,
    ) -> Any:
        """GET *url* and return the decoded JSON body.

        Raises
        ------
        LiveTrackTransportError
            On network failure, non-2xx status or a body that is not JSON.
            Timeouts surface as :class:`TimeoutError` so callers can tell
            them apart.
        """
        request_headers: dict[str, str] = {
            "accept": "application/json",
            "user-agent": USER_AGENT,
        }
        if headers:
            request_headers.update(headers)

        _logger.debug("GET %s params=%s", url, redact_for_log(dict(params or {})))

        client_timeout = aiohttp.ClientTimeout(total=timeout) if timeout is not None else None
        try:
            async with self._http.get(
                url,
                params=params,
                headers=request_headers,
                timeout=client_timeout,
            ) as resp:
                text = await resp.text()
                if not 200 <= resp.status < 300:
                    raise LiveTrackTransportError(
                        f"HTTP {resp.status} from {url}: {text[:200]}",
                        status_code=resp.status,
                        url=url,
                    )
        except LiveTrackTransportError:
            raise
        except aiohttp.ClientError as exc:
            raise LiveTrackTransportError(f"Request to {url} failed: {exc}", url=url) from exc

        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            raise LiveTrackTransportError(f"Invalid JSON from {url}: {text[:200]}", url=url) from exc

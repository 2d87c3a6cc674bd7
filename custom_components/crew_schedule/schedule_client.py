"""Schedule endpoint client.

POSTs a small JSON body identifying the user and returns the raw response
body. One request per call; retrying is the caller's business.
"""
from __future__ import annotations

import asyncio
from dataclasses import dataclass
import logging
from typing import Any

import aiohttp
from homeassistant.core import HomeAssistant
from homeassistant.helpers.aiohttp_client import async_get_clientsession

from .const import DEFAULT_REQUEST_TIMEOUT, DEFAULT_URL
from .errors import NetworkError

_LOGGER = logging.getLogger(__name__)


@dataclass
class ScheduleClient:
    hass: HomeAssistant
    user_id: str
    url: str = DEFAULT_URL
    timeout: float = DEFAULT_REQUEST_TIMEOUT

    def request_body(self) -> dict[str, Any]:
        return {"userId": self.user_id}

    async def async_fetch(self, body: dict[str, Any] | None = None) -> bytes:
        session = async_get_clientsession(self.hass)
        payload = body if body is not None else self.request_body()
        headers = {"Accept": "application/json"}

        _LOGGER.debug("POST %s", self.url)
        try:
            async with session.post(
                self.url,
                json=payload,
                headers=headers,
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            ) as resp:
                data = await resp.read()
                if resp.status >= 400:
                    text = data.decode("utf-8", errors="replace")
                    raise NetworkError(f"HTTP {resp.status}: {text[:300]}")
        except (aiohttp.ClientError, asyncio.TimeoutError) as err:
            raise NetworkError(f"Request to {self.url} failed: {err!r}") from err

        _LOGGER.debug("Received %d bytes of schedule data", len(data))
        return data

"""
Command Dispatcher
One-shot HTTP requests to the cane's control surface.
"""

import asyncio
import json
import logging
from typing import Any, Dict, Optional

import aiohttp

from ..core.exceptions import CommandError, CommandErrorKind
from ..models.telemetry_models import Endpoint

DEFAULT_COMMAND_TIMEOUT = 5.0   # seconds


class CommandDispatcher:
    """
    Issues single request/response calls to the device.

    Every call opens its own ClientSession, so commands never share state with
    the telemetry stream or with each other. There is no retry; callers decide.
    """

    def __init__(self, endpoint: Endpoint, timeout: float = DEFAULT_COMMAND_TIMEOUT):
        self.endpoint = endpoint
        self.timeout = timeout
        self.logger = logging.getLogger(self.__class__.__name__)

    async def send(self, path: str, payload: Optional[Dict[str, Any]] = None,
                   method: str = "POST") -> Dict[str, Any]:
        """Send a JSON command and return the decoded JSON reply."""
        return await self._request(method, path, json_body=payload if payload is not None else {})

    async def fetch(self, path: str) -> Dict[str, Any]:
        """GET ``path`` and return the decoded JSON reply."""
        return await self._request("GET", path)

    async def fetch_text(self, path: str) -> str:
        """GET ``path`` and return the raw body; used for reachability checks."""
        _, body = await self._call("GET", path)
        return body

    # ---- Transport helpers ----
    async def _request(self, method: str, path: str,
                       json_body: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        url, body = await self._call(method, path, json_body)
        if not body.strip():
            return {}
        try:
            return json.loads(body)
        except json.JSONDecodeError as e:
            raise CommandError(CommandErrorKind.INVALID_RESPONSE,
                               f"{method} {url} returned a non-JSON body: {body[:80]!r}") from e

    async def _call(self, method: str, path: str,
                    json_body: Optional[Dict[str, Any]] = None):
        url = f"{self.endpoint.command_url}{_normalise(path)}"
        self.logger.debug(f"{method} {url} {json_body if json_body is not None else ''}")
        try:
            async with aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self.timeout)) as session:
                async with session.request(method, url, json=json_body) as response:
                    body = await response.text()
                    if not 200 <= response.status < 300:
                        raise CommandError(CommandErrorKind.HTTP_STATUS,
                                           f"{method} {url} returned HTTP {response.status}",
                                           status=response.status)
                    return url, body
        except CommandError:
            raise
        except asyncio.TimeoutError as e:
            self.logger.error(f"Command {method} {url} timed out after {self.timeout}s")
            raise CommandError(CommandErrorKind.TIMEOUT,
                               f"{method} {url} timed out after {self.timeout}s") from e
        except (aiohttp.ClientError, OSError) as e:
            self.logger.error(f"Command {method} {url} failed: {e}")
            raise CommandError(CommandErrorKind.NETWORK, f"{method} {url} failed: {e}") from e


def _normalise(path: str) -> str:
    return path if path.startswith("/") else f"/{path}"

from __future__ import annotations

import asyncio
import json
from typing import Any, Mapping

import aiohttp
import structlog
import yarl

from pvesdn.errors import NOT_FOUND_MARKER, NotFoundError, TransportError

logger = structlog.getLogger(__name__)

API_PATH = "/api2/json"


class ProxmoxAPI:
    def __init__(
        self,
        endpoint: str,
        api_token: str,
        insecure: bool = False,
        timeout: float | None = None,
    ) -> None:
        self.endpoint: yarl.URL = yarl.URL(f"https://{endpoint}" if not endpoint.startswith("http") else endpoint)
        self.api_token = api_token
        self.insecure = insecure
        self.timeout = timeout
        self._session: aiohttp.ClientSession | None = None

    def _new_session(self, **kwargs) -> aiohttp.ClientSession:
        return aiohttp.ClientSession(
            base_url=self.endpoint.origin(),
            headers={"Authorization": f"PVEAPIToken={self.api_token}"},
            connector=aiohttp.TCPConnector(ssl=False) if self.insecure else None,
            timeout=aiohttp.ClientTimeout(total=self.timeout),
            **kwargs,
        )

    @property
    def session(self) -> aiohttp.ClientSession:
        if self._session is None:
            raise Exception("Not connected")
        return self._session

    async def __aenter__(self) -> ProxmoxAPI:
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    async def connect(self):
        self._session = self._new_session()
        try:
            version = await self.do_request("GET", "version")
        except Exception:
            await self.close()
            raise
        logger.debug("Connected to Proxmox API", endpoint=str(self.endpoint), version=(version or {}).get("data"))

    async def close(self):
        if self._session:
            await self._session.close()
            self._session = None

    async def do_request(self, method: str, path: str, data: Mapping[str, str] | None = None) -> dict[str, Any] | None:
        """Perform a single request against the API and return the decoded JSON body.

        ``data`` is sent form-encoded. Responses with status >= 400 raise ``TransportError``
        (``NotFoundError`` when the server reports the object as missing); connection failures and
        timeouts are wrapped in ``TransportError`` as well.
        """
        url = f"{API_PATH}/{path}"
        log = logger.bind(method=method, path=path)
        log.debug("Proxmox API request", params=sorted(data) if data else None)

        try:
            async with self.session.request(method, url, data=data) as resp:
                body = await resp.text()
                if resp.status >= 400:
                    raise _response_error(resp.status, resp.reason, body)
        except aiohttp.ClientError as err:
            raise TransportError(f"failed to perform HTTP {method} request (path: {path}) - {err}") from err
        except asyncio.TimeoutError as err:
            raise TransportError(f"HTTP {method} request timed out (path: {path})") from err

        if not body:
            return None
        try:
            return json.loads(body)
        except ValueError as err:
            raise TransportError(f"failed to decode HTTP {method} response (path: {path})") from err


def _response_error(status: int, reason: str | None, body: str) -> TransportError:
    message = f"received an HTTP {status} response - Reason: {reason}"

    try:
        payload = json.loads(body) if body else None
    except ValueError:
        payload = None

    if isinstance(payload, dict):
        errors = payload.get("errors")
        if isinstance(errors, dict) and errors:
            details = ", ".join(f"{key}: {value}" for key, value in sorted(errors.items()))
            message = f"{message} ({details})"
        elif payload.get("message"):
            message = f"{message} ({payload['message'].strip()})"

    if NOT_FOUND_MARKER in message:
        return NotFoundError(message, status=status)
    return TransportError(message, status=status)

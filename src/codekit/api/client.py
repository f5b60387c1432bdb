"""Async REST client that unwraps the backend's response envelope."""

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Any
from urllib.parse import urljoin

import aiohttp
from pydantic import ValidationError

from .envelope import FailureEnvelope, SuccessEnvelope, decode_envelope, error_fields
from .errors import APIError, NetworkError

logger = logging.getLogger(__name__)

HTTP_METHODS = {"GET", "POST", "PUT", "PATCH", "DELETE"}


@dataclass
class ApiResponse:
    """Normalized result of an API call."""

    data: Any
    status: int
    status_text: str


class ApiClient:
    """Credential-bearing JSON client for the CodeKit REST backend."""

    def __init__(
        self,
        base_url: str = "",
        timeout_seconds: int = 30,
        api_token: str | None = None,
        cookies: dict[str, str] | None = None,
        user_agent: str = "CodeKitClient/1.0",
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        self.api_token = api_token
        self.cookies = dict(cookies or {})
        self.user_agent = user_agent

    def url_for(self, path: str) -> str:
        """Resolve a resource path against the configured base URL."""
        if not self.base_url or path.startswith(("http://", "https://")):
            return path
        return urljoin(self.base_url + "/", path.lstrip("/"))

    def _headers(self, has_body: bool) -> dict[str, str]:
        headers = {"User-Agent": self.user_agent, "Accept": "application/json"}
        if has_body:
            headers["Content-Type"] = "application/json"
        if self.api_token:
            headers["Authorization"] = f"Bearer {self.api_token}"
        if self.cookies:
            headers["Cookie"] = "; ".join(f"{k}={v}" for k, v in self.cookies.items())
        return headers

    async def request(self, method: str, url: str, data: Any = None) -> ApiResponse:
        """Perform a request and normalize the response.

        Raises:
            APIError: on a non-2xx status or a `{success: false}` body
            NetworkError: when the server could not be reached
        """
        method = method.upper()
        if method not in HTTP_METHODS:
            raise ValueError(f"Unsupported HTTP method: {method}")

        body = json.dumps(data) if data is not None else None

        try:
            async with aiohttp.ClientSession(timeout=self.timeout) as session:
                async with session.request(
                    method,
                    self.url_for(url),
                    data=body,
                    headers=self._headers(body is not None),
                ) as response:
                    return await self._normalize(response)

        except APIError:
            raise
        except (aiohttp.ClientConnectionError, asyncio.TimeoutError) as e:
            logger.warning(f"{method} {url} failed to connect: {e}")
            raise NetworkError("Could not connect to server") from e
        except Exception as e:
            logger.warning(f"{method} {url} failed: {e}")
            raise NetworkError(str(e) or "Unknown error") from e

    async def _normalize(self, response: aiohttp.ClientResponse) -> ApiResponse:
        status = response.status
        status_text = response.reason or ""

        if not 200 <= status < 300:
            message, code, details = status_text, None, None
            try:
                parsed = json.loads(await response.text())
                msg, code, details = error_fields(parsed)
                message = msg or message
            except (ValueError, ValidationError):
                pass
            raise APIError(message or f"HTTP {status}", status, code, details)

        content_type = response.headers.get("content-type", "")
        if "application/json" not in content_type.lower():
            return ApiResponse(data=None, status=status, status_text=status_text)

        payload = json.loads(await response.text())
        envelope = decode_envelope(payload)

        if isinstance(envelope, FailureEnvelope):
            error = envelope.error
            raise APIError(
                (error.message if error else None) or status_text,
                status,
                str(status),
                {
                    "code": str(error.code) if error and error.code is not None else None,
                    "details": error.details if error else None,
                },
            )
        if isinstance(envelope, SuccessEnvelope):
            return ApiResponse(data=envelope.data, status=status, status_text=status_text)

        return ApiResponse(data=envelope.raw, status=status, status_text=status_text)

    async def get(self, url: str) -> ApiResponse:
        return await self.request("GET", url)

    async def post(self, url: str, data: Any = None) -> ApiResponse:
        return await self.request("POST", url, data)

    async def put(self, url: str, data: Any = None) -> ApiResponse:
        return await self.request("PUT", url, data)

    async def patch(self, url: str, data: Any = None) -> ApiResponse:
        return await self.request("PATCH", url, data)

    async def delete(self, url: str) -> ApiResponse:
        return await self.request("DELETE", url)

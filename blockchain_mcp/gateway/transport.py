"""
Network execution of outbound requests.

:class:`TransportExecutor` never raises: every outcome, including network
failures, is returned as a :class:`ResponseEnvelope`.
"""

from __future__ import annotations

import base64
import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from blockchain_mcp.chains import ChainApiConfig, DEFAULT_API_CONFIG, ErrorHandling, ResponseFormat
from blockchain_mcp.gateway.request_builder import OutboundRequest

logger = logging.getLogger(__name__)

API_KEY_HEADER = "X-API-Key"
NETWORK_ERROR_STATUS = 500
NETWORK_ERROR_TEXT = "Network Error"


@dataclass(slots=True)
class ResponseEnvelope:
    status: int
    status_text: str
    data: Any = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None and 200 <= self.status < 300

    def to_dict(self) -> Dict[str, Any]:
        return {
            "data": self.data,
            "error": self.error,
            "status": self.status,
            "statusText": self.status_text,
        }

    @classmethod
    def failure(cls, message: str, status: int, status_text: str) -> "ResponseEnvelope":
        return cls(status=status, status_text=status_text, data=None, error=message)


def _is_json_content(content_type: str) -> bool:
    lowered = content_type.lower()
    return "application/json" in lowered or "+json" in lowered


def _parse_body(response: httpx.Response, response_format: ResponseFormat) -> Any:
    if response_format is ResponseFormat.BINARY:
        return base64.b64encode(response.content).decode("ascii")
    text = response.text
    if response_format is ResponseFormat.TEXT:
        return text
    if not _is_json_content(response.headers.get("content-type", "")):
        return text
    if not text.strip():
        return None
    try:
        return json.loads(text)
    except ValueError:
        logger.debug("Response declared JSON but did not parse; returning raw text")
        return text


def extract_error_message(data: Any, status: int, status_text: str) -> str:
    """Prefer ``message``, then ``error``, then a synthesized HTTP status line."""
    if isinstance(data, dict):
        message = data.get("message")
        if isinstance(message, str) and message:
            return message
        error = data.get("error")
        if isinstance(error, str) and error:
            return error
        if isinstance(error, dict):
            nested = error.get("message")
            if isinstance(nested, str) and nested:
                return nested
    return f"HTTP {status}: {status_text}"


def _in_band_error(data: Any) -> Optional[str]:
    if isinstance(data, dict) and data.get("error"):
        error = data["error"]
        if isinstance(error, dict):
            return str(error.get("message") or error)
        return str(error)
    return None


class TransportExecutor:
    """Send :class:`OutboundRequest` objects and classify the outcome."""

    def __init__(
        self,
        *,
        api_key: Optional[str] = None,
        timeout: float = 30.0,
        async_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._api_key = api_key
        self._timeout = timeout
        self._client: Optional[httpx.AsyncClient] = async_client
        self._owns_client = async_client is None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
            self._owns_client = True
        return self._client

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    def build_headers(self, request: OutboundRequest) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        # Override targets are the caller's own nodes; vendor credentials stay home.
        if self._api_key and not request.is_custom_override:
            headers[API_KEY_HEADER] = self._api_key
        return headers

    async def send(
        self, request: OutboundRequest, api_config: ChainApiConfig = DEFAULT_API_CONFIG
    ) -> ResponseEnvelope:
        url = request.url
        logger.debug("[API Request] %s %s", request.http_method, url)
        try:
            client = await self._get_client()
            response = await client.request(
                request.http_method,
                url,
                headers=self.build_headers(request),
                content=request.body.encode("utf-8") if request.body is not None else None,
            )
        except httpx.RequestError as exc:
            logger.warning("Network error for %s %s: %s", request.http_method, url, exc)
            return ResponseEnvelope.failure(
                f"Network error: {exc}", NETWORK_ERROR_STATUS, NETWORK_ERROR_TEXT
            )
        except Exception as exc:
            logger.exception("Unexpected transport failure for %s %s", request.http_method, url)
            return ResponseEnvelope.failure(f"Request failed: {exc}", 0, "Error")

        return self.classify(response, api_config)

    def classify(self, response: httpx.Response, api_config: ChainApiConfig) -> ResponseEnvelope:
        status = response.status_code
        status_text = response.reason_phrase or ""
        data = _parse_body(response, api_config.response_format)

        if not 200 <= status < 300:
            logger.info("[API Response] %s %s", status, status_text)
            return ResponseEnvelope(
                status=status,
                status_text=status_text,
                data=data,
                error=extract_error_message(data, status, status_text),
            )

        error = None
        if api_config.error_handling is ErrorHandling.STRICT:
            error = _in_band_error(data)
        return ResponseEnvelope(status=status, status_text=status_text, data=data, error=error)

"""
Hunter.io API client used by the MCP tools
"""
from typing import Any, Dict, Optional

import httpx
from loguru import logger


class HunterAPIError(Exception):
    """Custom exception for Hunter.io API errors"""

    def __init__(self, message: str, status_code: Optional[int] = None, body: Any = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.body = body


class HunterRateLimitError(HunterAPIError):
    """Exception for rate limit errors"""
    pass


def _message_from_body(body: Any) -> Optional[str]:
    """Pull a human message out of a Hunter.io error body"""
    if not isinstance(body, dict):
        return None

    message = body.get("message")
    if isinstance(message, str) and message:
        return message

    # Hunter.io reports errors as {"errors": [{"id": ..., "code": ..., "details": ...}]}
    errors = body.get("errors")
    if isinstance(errors, list) and errors and isinstance(errors[0], dict):
        details = errors[0].get("details")
        if isinstance(details, str) and details:
            return details

    return None


def remote_error_message(error: BaseException) -> Optional[str]:
    """
    Extract the remote service's own message from a failure, if it carries one

    Args:
        error: Exception raised while calling Hunter.io

    Returns:
        The message found in the remote response body, or None
    """
    if isinstance(error, HunterAPIError):
        return _message_from_body(error.body)

    if isinstance(error, httpx.HTTPStatusError):
        try:
            return _message_from_body(error.response.json())
        except ValueError:
            return None

    return None


class HunterClient:
    """Hunter.io API client sharing one HTTP connection pool across calls"""

    BASE_URL = "https://api.hunter.io/v2"

    def __init__(
        self,
        api_key: str,
        base_url: str = BASE_URL,
        timeout: float = 30,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

        # HTTP client
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client"""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                params={"api_key": self.api_key},
                timeout=self.timeout,
                transport=self._transport,
                headers={
                    "User-Agent": "hunter-io-mcp/1.0"
                }
            )
        return self._client

    def _handle_api_error(self, response: httpx.Response) -> None:
        """Handle API errors and raise appropriate exceptions"""
        if response.is_success:
            return

        try:
            body = response.json()
        except ValueError:
            body = response.text or None

        remote_message = _message_from_body(body)
        status = response.status_code

        if status == 429:
            raise HunterRateLimitError(remote_message or "Rate limit exceeded", status, body)

        if remote_message:
            message = remote_message
        elif status == 401:
            message = "Invalid API key"
        elif status == 403:
            message = "API access forbidden - check your plan"
        elif status == 404:
            message = "Resource not found"
        elif status >= 500:
            message = f"Server error: {status}"
        else:
            message = f"API error: {status}"

        raise HunterAPIError(message, status, body)

    async def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """
        Perform a GET request against a Hunter.io endpoint

        Args:
            path: Endpoint path relative to the API base URL (e.g. "/email-finder")
            params: Query parameters added alongside the API key

        Returns:
            Decoded JSON response body
        """
        client = await self._get_client()

        logger.debug(f"GET {path} with params {sorted((params or {}).keys())}")
        response = await client.get(path, params=params or None)
        self._handle_api_error(response)

        return response.json()

    async def close(self):
        """Close HTTP client connections"""
        if self._client:
            await self._client.aclose()
            self._client = None
            logger.info("Hunter.io client closed")

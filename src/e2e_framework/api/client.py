"""HTTP client for API tests."""

import asyncio
import logging
import time
from typing import Any, Dict, List, Literal, Optional, Union

import httpx

from e2e_framework.models.test_data import ApiResponse
from e2e_framework.utils.logger import TestLogger

logger = logging.getLogger(__name__)


class ApiClient:
    """
    Async API client with retries and response validation helpers.

    PATTERN: HTTP-based API communication with async httpx
    GOTCHA: Timeouts are configured in milliseconds, httpx expects seconds
    """

    RETRY_BACKOFF_SECONDS = 0.5

    def __init__(
        self,
        base_url: str,
        timeout: int = 30000,
        retries: int = 3,
        headers: Optional[Dict[str, str]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the API client.

        Args:
            base_url: Base URL prepended to relative endpoints
            timeout: Default request timeout in milliseconds
            retries: Number of retries on transport errors
            headers: Headers sent with every request
            transport: Custom httpx transport (e.g. httpx.MockTransport)
        """
        self.base_url = base_url
        self.timeout = timeout
        self.retries = retries
        self.headers: Dict[str, str] = dict(headers or {})
        self.transport = transport
        self.logger = TestLogger("ApiClient")
        self.client: Optional[httpx.AsyncClient] = None

    async def initialize(self) -> None:
        self.logger.info("Initializing API client")
        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout / 1000,
            transport=self.transport,
        )

    async def _get_client(self) -> httpx.AsyncClient:
        if self.client is None:
            await self.initialize()
        return self.client

    async def _request(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        data: Any = None,
        headers: Optional[Dict[str, str]] = None,
        timeout: Optional[int] = None,
    ) -> ApiResponse:
        self.logger.info(f"{method} request to: {endpoint}")
        client = await self._get_client()
        request_headers = {**self.headers, **(headers or {})}
        request_timeout = (timeout or self.timeout) / 1000

        attempt = 0
        while True:
            start_time = time.perf_counter()
            try:
                response = await client.request(
                    method,
                    endpoint,
                    params=params,
                    json=data,
                    headers=request_headers,
                    timeout=request_timeout,
                )
                break
            except httpx.TransportError as e:
                if attempt >= self.retries:
                    self.logger.error(f"{method} {endpoint} failed: {e}")
                    raise
                attempt += 1
                self.logger.warn(
                    f"{method} {endpoint} failed ({e}), retry {attempt}/{self.retries}"
                )
                await asyncio.sleep(self.RETRY_BACKOFF_SECONDS * attempt)

        result = self._process_response(response, start_time)
        self.logger.success(f"{method} {endpoint} completed in {result.response_time}ms")
        return result

    def _process_response(self, response: httpx.Response, start_time: float) -> ApiResponse:
        response_time = round((time.perf_counter() - start_time) * 1000, 2)

        try:
            content_type = response.headers.get("content-type", "")
            if "application/json" in content_type:
                data = response.json()
            else:
                data = response.text
        except ValueError as e:
            logger.debug(f"Could not parse response body: {e}")
            data = None

        return ApiResponse(
            status=response.status_code,
            status_text=response.reason_phrase,
            headers=dict(response.headers),
            data=data,
            response_time=response_time,
        )

    async def get(
        self,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        timeout: Optional[int] = None,
    ) -> ApiResponse:
        return await self._request("GET", endpoint, params=params, headers=headers, timeout=timeout)

    async def post(
        self,
        endpoint: str,
        data: Any = None,
        headers: Optional[Dict[str, str]] = None,
        timeout: Optional[int] = None,
    ) -> ApiResponse:
        return await self._request("POST", endpoint, data=data, headers=headers, timeout=timeout)

    async def put(
        self,
        endpoint: str,
        data: Any = None,
        headers: Optional[Dict[str, str]] = None,
        timeout: Optional[int] = None,
    ) -> ApiResponse:
        return await self._request("PUT", endpoint, data=data, headers=headers, timeout=timeout)

    async def patch(
        self,
        endpoint: str,
        data: Any = None,
        headers: Optional[Dict[str, str]] = None,
        timeout: Optional[int] = None,
    ) -> ApiResponse:
        return await self._request("PATCH", endpoint, data=data, headers=headers, timeout=timeout)

    async def delete(
        self,
        endpoint: str,
        headers: Optional[Dict[str, str]] = None,
        timeout: Optional[int] = None,
    ) -> ApiResponse:
        return await self._request("DELETE", endpoint, headers=headers, timeout=timeout)

    def validate_status(self, response: ApiResponse, expected: Union[int, List[int]]) -> bool:
        expected_statuses = expected if isinstance(expected, list) else [expected]
        is_valid = response.status in expected_statuses

        if is_valid:
            self.logger.success(f"Status validation passed: {response.status}")
        else:
            self.logger.error(
                f"Status validation failed. Expected: {expected_statuses}, Got: {response.status}"
            )
        return is_valid

    def validate_response_time(self, response: ApiResponse, max_time: float) -> bool:
        is_valid = response.response_time <= max_time

        if is_valid:
            self.logger.success(
                f"Response time validation passed: {response.response_time}ms <= {max_time}ms"
            )
        else:
            self.logger.error(
                f"Response time validation failed: {response.response_time}ms > {max_time}ms"
            )
        return is_valid

    def validate_schema(self, response: ApiResponse, schema: Dict[str, Any]) -> bool:
        """Check that every top-level schema key is present in the body."""
        if not isinstance(response.data, dict):
            self.logger.error("Schema validation failed: response body is not an object")
            return False

        for key in schema:
            if key not in response.data:
                self.logger.error(f"Schema validation failed: Missing property '{key}'")
                return False

        self.logger.success("Schema validation passed")
        return True

    def set_auth_token(self, token: str, auth_type: Literal["Bearer", "Basic"] = "Bearer") -> None:
        self.headers["Authorization"] = f"{auth_type} {token}"
        self.logger.info(f"Authentication header set: {auth_type}")

    def set_header(self, name: str, value: str) -> None:
        self.headers[name] = value
        self.logger.info(f"Custom header set: {name}")

    def remove_header(self, name: str) -> None:
        self.headers.pop(name, None)
        self.logger.info(f"Header removed: {name}")

    def get_response_headers(self, response: ApiResponse) -> Dict[str, str]:
        return response.headers

    def extract_value(self, response: ApiResponse, path: str) -> Any:
        """Follow a dot path such as ``"user.addresses.0.city"`` into the body.

        Numeric segments index into lists. Returns None when the path is missing.
        """
        value = response.data
        for key in path.split("."):
            if isinstance(value, dict) and key in value:
                value = value[key]
            elif isinstance(value, list) and key.lstrip("-").isdigit():
                index = int(key)
                if not -len(value) <= index < len(value):
                    return None
                value = value[index]
            else:
                return None
        return value

    async def cleanup(self) -> None:
        self.logger.info("Cleaning up API client")
        if self.client is not None:
            await self.client.aclose()
            self.client = None

    def get_base_url(self) -> str:
        return self.base_url

    def get_headers(self) -> Dict[str, str]:
        return dict(self.headers)

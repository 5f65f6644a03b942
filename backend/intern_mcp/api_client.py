# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Recruiting API Client

Thin async REST client for the external recruiting service that the
tool handlers act on.
"""
import logging
from typing import Any, Dict, Optional

import httpx

logger = logging.getLogger(__name__)


class RecruitingAPIError(Exception):
    """API communication error (network, HTTP errors)."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class RecruitingAPIClient:
    """
    Recruiting API client.

    Wraps one httpx.AsyncClient bound to the API base URL. A transport can be
    injected for tests.
    """

    def __init__(
        self,
        base_url: str,
        timeout: Optional[float] = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
            headers={"Content-Type": "application/json"}
        )

    async def request(
        self,
        endpoint: str,
        method: str = "GET",
        data: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None
    ) -> Any:
        """
        Make an API call and return the decoded JSON body.

        Raises:
            RecruitingAPIError: On network failure or non-2xx status
        """
        url = f"{self.base_url}{endpoint}"
        json_body = data if data is not None and method != "GET" else None

        try:
            response = await self._client.request(method, endpoint, json=json_body, params=params)
        except httpx.HTTPError as e:
            logger.error(f"API call to {url} failed: {e}")
            raise RecruitingAPIError(f"Failed to make API call to {url}: {e}")

        if response.is_error:
            raise RecruitingAPIError(
                f"API call failed: {response.status_code} {response.reason_phrase}",
                status_code=response.status_code
            )

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError:
            return {"raw": response.text}

    async def get(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return await self.request(endpoint, "GET", params=params)

    async def post(self, endpoint: str, data: Dict[str, Any]) -> Any:
        return await self.request(endpoint, "POST", data=data)

    async def put(self, endpoint: str, data: Dict[str, Any]) -> Any:
        return await self.request(endpoint, "PUT", data=data)

    async def aclose(self) -> None:
        await self._client.aclose()

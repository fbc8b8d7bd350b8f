"""
Adobe Sign agreements REST client.
Issues bearer-authenticated JSON requests against /api/rest/{version}/agreements.
"""
import logging
from typing import Any, Dict, Optional

import httpx

from esign_errors import RemoteCallError
from settings import Settings

logger = logging.getLogger(__name__)


def build_http_client(settings: Settings) -> httpx.AsyncClient:
    """Create the shared non-blocking HTTP client for the configured Adobe Sign shard."""
    logger.info(f"Configuring Adobe Sign HTTP client with base URL: {settings.base_url}")
    return httpx.AsyncClient(
        base_url=settings.base_url,
        timeout=httpx.Timeout(settings.read_timeout, connect=settings.connection_timeout),
        headers={"Accept": "application/json"},
    )


def _error_detail(response: httpx.Response) -> str:
    try:
        detail = response.json()
    except ValueError:
        return response.text
    if isinstance(detail, dict):
        return detail.get("message", detail.get("code", response.text))
    return response.text


class AgreementClient:
    """Thin wrapper around the Adobe Sign agreement endpoints."""

    def __init__(self, http_client: httpx.AsyncClient, settings: Settings):
        self._http = http_client
        self._base_path = settings.get_api_base_path()

    def _agreements_path(self, agreement_id: Optional[str] = None) -> str:
        path = f"{self._base_path}/agreements"
        if agreement_id is not None:
            path += f"/{agreement_id}"
        return path

    async def _request(self, method: str, path: str, token: str, **kwargs) -> Dict[str, Any]:
        headers = {"Authorization": f"Bearer {token}", "Content-Type": "application/json"}
        try:
            response = await self._http.request(method, path, headers=headers, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"Adobe Sign {method} {path} failed: {e}")
            raise RemoteCallError(f"Adobe Sign request failed: {e}") from e

        if response.status_code >= 400:
            message = _error_detail(response)
            logger.error(f"Adobe Sign API error (HTTP {response.status_code}) on {method} {path}: {message}")
            raise RemoteCallError(
                f"Adobe Sign API error (HTTP {response.status_code}): {message}",
                status_code=response.status_code,
            )

        try:
            body = response.json()
        except ValueError as e:
            raise RemoteCallError(
                f"Adobe Sign returned a non-JSON response for {method} {path}",
                status_code=response.status_code,
            ) from e
        if not isinstance(body, dict):
            raise RemoteCallError(
                f"Adobe Sign returned an unexpected response for {method} {path}",
                status_code=response.status_code,
            )
        return body

    async def create_agreement(self, token: str, payload: Dict[str, Any]) -> str:
        """
        Create an agreement.

        Args:
            token: Bearer access token
            payload: Agreement creation body

        Returns:
            The Adobe Sign agreement id

        Raises:
            RemoteCallError: If the call fails or the response carries no id
        """
        body = await self._request("POST", self._agreements_path(), token, json=payload)
        agreement_id = body.get("id")
        if not agreement_id:
            raise RemoteCallError("Adobe Sign agreement response did not include an id")
        logger.info(f"Adobe Sign agreement created: {agreement_id}")
        return str(agreement_id)

    async def get_agreement(self, token: str, agreement_id: str) -> Dict[str, Any]:
        """Fetch the agreement resource as a dict."""
        return await self._request("GET", self._agreements_path(agreement_id), token)

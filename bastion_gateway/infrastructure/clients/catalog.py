"""Catalog API HTTP client for fetching offered circles and loan listings"""

import httpx
from bastion_gateway.domain.catalog import StaticCatalog, catalog_from_payload
from bastion_gateway.domain.exceptions import CatalogUnavailableError, InvalidParametersError
from bastion_gateway.config import settings


class CatalogClient:
    """Client for external catalog API"""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url or settings.catalog_api_base
        self.timeout = timeout or settings.http_timeout_seconds
        self._transport = transport

    async def fetch_catalog(self) -> StaticCatalog:
        """
        Fetch the catalog and return it as a read-only snapshot.

        Raises:
            CatalogUnavailableError: On timeout, HTTP errors, or invalid response
        """
        if not self.base_url:
            raise CatalogUnavailableError("Catalog API base URL is not configured")

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            try:
                response = await client.get(f"{self.base_url}/catalog")
                response.raise_for_status()
                return catalog_from_payload(response.json())

            except httpx.TimeoutException as e:
                raise CatalogUnavailableError(f"Catalog API timeout after {self.timeout}s") from e
            except httpx.HTTPStatusError as e:
                raise CatalogUnavailableError(f"Catalog API error: {e.response.status_code}") from e
            except httpx.RequestError as e:
                raise CatalogUnavailableError(f"Catalog API unreachable: {e}") from e
            except (InvalidParametersError, ValueError) as e:
                raise CatalogUnavailableError(f"Invalid catalog data: {e}") from e

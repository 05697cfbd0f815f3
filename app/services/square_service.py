"""
app/services/square_service.py

Purpose: Square integration

- Builds the OAuth authorization URL
- Exchanges an authorization code for merchant tokens
- Searches the merchant's catalog for items
"""

import asyncio
from typing import Any, Dict, List, Optional
from urllib.parse import urlencode, quote

import httpx

from app.core.config import settings
from app.core.exceptions import ExternalServiceError
from app.core.logging import get_logger
from app.schemas.square import CatalogItem, SquareTokens
from utils.constants import SQUARE_API_VERSION, SQUARE_CATALOG_SEARCH_LIMIT, SQUARE_OAUTH_SCOPES

logger = get_logger(__name__)


class SquareTokenError(Exception):
    """Square's token endpoint rejected the authorization code."""

    def __init__(self, status_code: int, payload: Any):
        self.status_code = status_code
        self.payload = payload
        super().__init__(f"Square token exchange rejected ({status_code})")


class SquareService:
    """
    Thin client over Square's OAuth and Catalog REST endpoints.
    """

    def __init__(self, base_url: Optional[str] = None, timeout: Optional[float] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.base_url = (base_url or settings.SQUARE_BASE_URL).rstrip("/")
        self._timeout = timeout or float(settings.SQUARE_TIMEOUT)
        self._transport = transport

    def _client(self, access_token: Optional[str] = None) -> httpx.AsyncClient:
        headers = {
            "Content-Type": "application/json",
            "Square-Version": SQUARE_API_VERSION,
        }
        if access_token:
            headers["Authorization"] = f"Bearer {access_token}"
        return httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=self._timeout,
            transport=self._transport,
        )

    def build_authorization_url(self, app_id: str, state: str) -> str:
        """
        URL the merchant is sent to for granting access.

        Args:
            app_id: Square application ID
            state: Opaque value echoed back to the callback (the user ID)
        """
        query = urlencode(
            {
                "client_id": app_id,
                "scope": " ".join(SQUARE_OAUTH_SCOPES),
                "response_type": "code",
                "redirect_uri": settings.SQUARE_REDIRECT_URI,
                "state": state,
            },
            quote_via=quote,
        )
        return f"{self.base_url}/oauth2/authorize?{query}"

    async def exchange_code(self, app_id: str, app_secret: str, code: str) -> SquareTokens:
        """
        Exchanges an OAuth authorization code for access and refresh tokens.

        Raises:
            SquareTokenError: If Square rejects the code or credentials
            ExternalServiceError: On network failure
        """
        payload = {
            "client_id": app_id,
            "client_secret": app_secret,
            "code": code,
            "grant_type": "authorization_code",
            "redirect_uri": settings.SQUARE_REDIRECT_URI,
        }

        try:
            async with self._client() as client:
                response = await client.post("/oauth2/token", json=payload)
        except httpx.TimeoutException:
            logger.error("Square token endpoint timed out")
            raise ExternalServiceError("Square is taking too long to respond")
        except httpx.RequestError as e:
            logger.error(f"Network error exchanging Square code: {e}")
            raise ExternalServiceError("Unable to connect to Square")

        try:
            data = response.json()
        except ValueError:
            data = {"raw": response.text}

        if response.status_code != 200 or not data.get("access_token"):
            logger.error(f"Error exchanging code for token: {response.status_code} {data}")
            raise SquareTokenError(response.status_code, data)

        tokens = SquareTokens.model_validate(data)
        logger.info("Square tokens obtained", extra={"merchant_id": tokens.merchant_id})
        return tokens

    async def search_catalog_items(self, access_token: str, item_name: str) -> Optional[List[CatalogItem]]:
        """
        Finds catalog items whose text matches item_name.

        Returns:
            Up to five items with their first image URL, an empty list when
            nothing matched, or None if Square could not be queried
        """
        try:
            async with self._client(access_token) as client:
                response = await client.post(
                    "/v2/catalog/search-catalog-items",
                    json={"text_filter": item_name, "limit": SQUARE_CATALOG_SEARCH_LIMIT},
                )
                response.raise_for_status()
                objects = response.json().get("items") or []

                items = await asyncio.gather(
                    *(self._to_catalog_item(client, obj) for obj in objects)
                )
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Square catalog search failed: {e}")
            return None

        return [item for item in items if item is not None]

    async def _to_catalog_item(self, client: httpx.AsyncClient, obj: Dict[str, Any]) -> Optional[CatalogItem]:
        if not obj.get("id") or obj.get("type") != "ITEM":
            return None

        item_data = obj.get("item_data") or {}
        image_ids = item_data.get("image_ids") or []

        image_url = ""
        if image_ids:
            response = await client.get(f"/v2/catalog/object/{image_ids[0]}")
            if response.status_code == 200:
                image = response.json().get("object") or {}
                if image.get("type") == "IMAGE":
                    image_url = (image.get("image_data") or {}).get("url", "")
            else:
                logger.warning(f"Image lookup failed for item {obj['id']}: {response.status_code}")

        return CatalogItem(
            id=obj["id"],
            name=item_data.get("name"),
            description=item_data.get("description"),
            image=image_url,
        )


# Global Square service instance
_square_service: Optional[SquareService] = None


def get_square_service() -> SquareService:
    """Get or create the global Square service instance."""
    global _square_service
    if _square_service is None:
        _square_service = SquareService()
    return _square_service

"""
Shopify Admin REST Connector
Handles paginated collection fetches and single-record lookups for one shop

Author: TM3
Date: 2025-10-03
Updated: 2025-11-04 (REST cursor pagination, per-tenant credentials)
"""
import re
import logging
from typing import Dict, List, Optional, Any

import httpx

from shopsync.core.config import settings

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 250

# resource type -> (collection path, response key for the collection, response key for one record)
RESOURCES = {
    'customers': ('customers', 'customers', 'customer'),
    'products': ('products', 'products', 'product'),
    'orders': ('orders', 'orders', 'order'),
}

# Lookups answering with these codes mean the record is gone or hidden upstream
ABSENT_STATUS_CODES = {403, 404, 410}

_NEXT_LINK = re.compile(r'<([^>]+)>\s*;\s*rel="next"')
_PAGE_INFO = re.compile(r'[?&]page_info=([^&]+)')


class ShopifyAPIError(Exception):
    """Transport failure or non-2xx answer from the Shopify Admin API"""

    def __init__(self, message: str, resource: str = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.resource = resource
        self.status_code = status_code


def parse_next_page_info(link_header: Optional[str]) -> Optional[str]:
    """
    Extract the next-page cursor from a Link header

    Shopify answers with:
        <https://shop/admin/api/2024-01/orders.json?limit=250&page_info=abc>; rel="next",
        <...page_info=xyz>; rel="previous"

    Returns:
        The page_info token of the rel="next" link, or None on the last page
    """
    if not link_header:
        return None

    for part in link_header.split(','):
        match = _NEXT_LINK.search(part)
        if not match:
            continue
        page_info = _PAGE_INFO.search(match.group(1))
        if page_info:
            return page_info.group(1)

    return None


class ShopifyConnector:
    """
    Connector for the Shopify Admin REST API, bound to one tenant's shop

    Handles:
    - Full collection fetches (customers, products, orders) following cursors
    - Single-record lookups
    - Connection test

    Page failures are not retried here; re-running the whole fetch is the
    recovery path, since retrying mid-cursor can stitch inconsistent pages.
    """

    def __init__(
        self,
        shop_domain: str,
        access_token: str,
        api_version: str = None,
        timeout: float = None,
        transport: httpx.AsyncBaseTransport = None,
    ):
        """
        Initialize Shopify connector

        Args:
            shop_domain: Shop domain (e.g., 'acme.myshopify.com')
            access_token: Shopify Admin API access token
            api_version: Admin API version (defaults to SHOPIFY_API_VERSION)
            timeout: Request timeout in seconds
            transport: Optional httpx transport (tests plug a MockTransport here)
        """
        if not shop_domain or not access_token:
            raise ValueError("Shopify credentials not configured: shop_domain and access_token are required")

        self.shop_domain = shop_domain
        self.access_token = access_token
        self.api_version = api_version or settings.SHOPIFY_API_VERSION
        self.timeout = timeout or settings.SHOPIFY_REQUEST_TIMEOUT
        self.base_url = f"https://{shop_domain}/admin/api/{self.api_version}"
        self.headers = {
            'Content-Type': 'application/json',
            'X-Shopify-Access-Token': access_token,
        }
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            headers=self.headers,
            timeout=self.timeout,
            transport=self._transport,
        )

    @staticmethod
    def _resource(resource: str):
        try:
            return RESOURCES[resource]
        except KeyError:
            raise ValueError(f"Unknown Shopify resource: {resource}") from None

    async def _get(self, client: httpx.AsyncClient, resource: str, path: str, params: Dict = None) -> httpx.Response:
        """GET one page, turning transport and HTTP failures into ShopifyAPIError"""
        try:
            response = await client.get(path, params=params)
        except httpx.TransportError as e:
            raise ShopifyAPIError(f"Shopify request failed for {resource}: {e}", resource=resource) from e

        if response.status_code >= 400:
            raise ShopifyAPIError(
                f"Shopify returned {response.status_code} for {resource}: {response.text[:200]}",
                resource=resource,
                status_code=response.status_code,
            )
        return response

    async def fetch_all(self, resource: str, page_size: int = MAX_PAGE_SIZE, params: Dict = None) -> List[Dict[str, Any]]:
        """
        Fetch a complete collection, following page_info cursors to the end

        Args:
            resource: 'customers', 'products' or 'orders'
            page_size: Records per page (1..250)
            params: Extra filters for the first page only; Shopify rejects
                anything but limit and page_info once a cursor is in play

        Returns:
            Every raw record of the collection, in remote order

        Raises:
            ValueError: page_size out of range or unknown resource
            ShopifyAPIError: any page failed, or the cursor chain looped
        """
        path, collection_key, _ = self._resource(resource)
        if page_size < 1 or page_size > MAX_PAGE_SIZE:
            raise ValueError(f"page_size must be between 1 and {MAX_PAGE_SIZE}, got {page_size}")

        records: List[Dict[str, Any]] = []
        page_info = None
        seen_cursors = set()
        pages = 0

        async with self._client() as client:
            while True:
                if page_info:
                    query = {'limit': page_size, 'page_info': page_info}
                else:
                    query = {'limit': page_size, **(params or {})}

                response = await self._get(client, resource, f"/{path}.json", params=query)
                records.extend(response.json().get(collection_key) or [])
                pages += 1

                page_info = parse_next_page_info(response.headers.get('link'))
                if not page_info:
                    break
                if page_info in seen_cursors:
                    raise ShopifyAPIError(
                        f"Shopify repeated page cursor for {resource} after {pages} page(s)",
                        resource=resource,
                    )
                seen_cursors.add(page_info)

        logger.debug(f"Fetched {len(records)} {resource} from {self.shop_domain} in {pages} page(s)")
        return records

    async def fetch_one(self, resource: str, remote_id: str) -> Optional[Dict[str, Any]]:
        """
        Get a single record by remote ID

        Returns:
            The raw record, or None when it no longer exists or is not accessible
        """
        path, _, record_key = self._resource(resource)

        async with self._client() as client:
            try:
                response = await self._get(client, resource, f"/{path}/{remote_id}.json")
            except ShopifyAPIError as e:
                if e.status_code in ABSENT_STATUS_CODES:
                    logger.info(f"{resource} {remote_id} not available on {self.shop_domain} ({e.status_code})")
                    return None
                raise

        return response.json().get(record_key) or None

    async def get_customers(self, limit: int = MAX_PAGE_SIZE) -> List[Dict]:
        """All customers of the shop"""
        return await self.fetch_all('customers', page_size=limit)

    async def get_products(self, limit: int = MAX_PAGE_SIZE) -> List[Dict]:
        """All products of the shop"""
        return await self.fetch_all('products', page_size=limit)

    async def get_orders(self, limit: int = MAX_PAGE_SIZE, status: str = 'any') -> List[Dict]:
        """All orders of the shop (every status by default)"""
        return await self.fetch_all('orders', page_size=limit, params={'status': status})

    async def test_connection(self) -> Dict:
        """Test Shopify connection"""
        try:
            async with self._client() as client:
                response = await self._get(client, 'shop', '/shop.json')
            shop = response.json().get('shop', {})
            return {
                'success': True,
                'shop_name': shop.get('name'),
                'email': shop.get('email'),
                'currency': shop.get('currency'),
                'domain': shop.get('domain'),
            }
        except ShopifyAPIError as e:
            return {
                'success': False,
                'error': str(e)
            }

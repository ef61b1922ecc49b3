#!/usr/bin/env python3
"""
Shopify Order Fetcher
Pages through the Shopify Admin GraphQL API and collects every order that
matches a search expression.

Usage:
    from shopify_order_fetcher import ShopifyOrderFetcher

    fetcher = ShopifyOrderFetcher(channel, api_version='2023-10')
    result = fetcher.fetch_orders(query_string, date_range)
    print(len(result.orders), result.truncated)
"""

import json
import logging
import time
from typing import Any, Dict, Iterator, List, NamedTuple, Optional

import requests

from date_ranges import DateRange, parse_instant
from order_query import ORDERS_QUERY, SHOP_INFO_QUERY
from order_records import normalize_order
from shop_registry import ShopChannel, ShopRegistry

logger = logging.getLogger(__name__)

PAGE_SIZE = 100
MAX_PAGES = 25


class ShopifyAPIError(Exception):
    """Base exception for Shopify API failures"""
    pass


class UpstreamTransportError(ShopifyAPIError):
    """Network failure or non-success HTTP status"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class FetchDeadlineExceeded(UpstreamTransportError):
    """The whole fetch ran past its deadline"""
    pass


class UpstreamProtocolError(ShopifyAPIError):
    """HTTP succeeded but the payload carries GraphQL errors or is not JSON"""

    def __init__(self, message: str, errors: Optional[List[Any]] = None):
        super().__init__(message)
        self.errors = errors or []


class FetchResult(NamedTuple):
    orders: List[Dict[str, Any]]
    truncated: bool
    pages: int


class ShopifyOrderFetcher:
    def __init__(self,
                 channel: ShopChannel,
                 api_version: str = '2023-10',
                 timeout: float = 30,
                 page_size: int = PAGE_SIZE,
                 max_pages: int = MAX_PAGES,
                 deadline: Optional[float] = None,
                 session: Optional[requests.Session] = None):
        """
        Initialize a fetcher for one channel.

        Args:
            channel: Channel whose store is queried
            api_version: Admin API version segment of the endpoint URL
            timeout: Seconds allowed for each HTTP request
            page_size: Orders requested per page
            max_pages: Hard cap on page requests per fetch
            deadline: Seconds allowed for a whole fetch (None for no limit)
            session: Optional requests.Session to reuse

        Raises:
            ConfigurationError: If the channel has no store host or token
        """
        ShopRegistry.require_usable(channel)
        self.channel = channel
        self.api_version = api_version
        self.timeout = timeout
        self.page_size = page_size
        self.max_pages = max_pages
        self.deadline = deadline
        self.base_url = f'https://{channel.endpoint_host}/admin/api/{api_version}/graphql.json'
        self.session = session or requests.Session()
        self.headers = {
            'X-Shopify-Access-Token': channel.credential,
            'Content-Type': 'application/json',
        }

    def query(self,
              document: str,
              variables: Optional[Dict[str, Any]] = None,
              timeout: Optional[float] = None) -> Dict[str, Any]:
        """
        Execute one GraphQL request. No retries.

        Returns:
            The 'data' member of the response

        Raises:
            UpstreamTransportError: On network failure or non-2xx status
            UpstreamProtocolError: On GraphQL errors or a non-JSON body
        """
        try:
            response = self.session.post(
                self.base_url,
                headers=self.headers,
                json={'query': document, 'variables': variables or {}},
                timeout=timeout or self.timeout,
            )
        except requests.exceptions.RequestException as e:
            raise UpstreamTransportError(f"Request to {self.channel.endpoint_host} failed: {e}")

        if not response.ok:
            raise UpstreamTransportError(
                f"HTTP error! status: {response.status_code}",
                status_code=response.status_code,
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise UpstreamProtocolError(f"Invalid API response: {e}")

        if not isinstance(payload, dict):
            raise UpstreamProtocolError('Invalid API response: expected a JSON object')
        if payload.get('errors'):
            errors = payload['errors']
            raise UpstreamProtocolError(f"GraphQL errors: {json.dumps(errors, indent=2)}", errors=errors)

        return payload.get('data') or {}

    def fetch_shop_info(self) -> Dict[str, Any]:
        """Get the store's name, currency and plan."""
        return self.query(SHOP_INFO_QUERY).get('shop') or {}

    def _remaining(self, started: float) -> Optional[float]:
        if self.deadline is None:
            return None
        remaining = self.deadline - (time.monotonic() - started)
        if remaining <= 0:
            raise FetchDeadlineExceeded(
                f"Fetch for {self.channel.id} exceeded its {self.deadline:g}s deadline"
            )
        return remaining

    def iter_pages(self, query_string: str) -> Iterator[Dict[str, Any]]:
        """
        Yield raw order connections page by page, following the cursor.

        Stops when Shopify reports no next page or after max_pages requests.
        Each yielded page is {'nodes': [...], 'has_next_page': bool, 'number': int}.
        """
        started = time.monotonic()
        cursor = None
        page = 0

        while page < self.max_pages:
            remaining = self._remaining(started)
            timeout = min(self.timeout, remaining) if remaining is not None else self.timeout

            page += 1
            variables = {'cursor': cursor, 'q': query_string, 'first': self.page_size}
            data = self.query(ORDERS_QUERY, variables, timeout=timeout)

            connection = data.get('orders')
            if not isinstance(connection, dict):
                raise UpstreamProtocolError("Invalid API response: missing 'orders' connection")
            page_info = connection.get('pageInfo') or {}
            has_next = bool(page_info.get('hasNextPage'))
            if has_next and not page_info.get('endCursor'):
                raise UpstreamProtocolError('Invalid API response: hasNextPage without endCursor')

            yield {'nodes': connection.get('nodes') or [], 'has_next_page': has_next, 'number': page}

            if not has_next:
                return
            cursor = page_info.get('endCursor')

    def fetch_orders(self, query_string: str, date_range: Optional[DateRange] = None) -> FetchResult:
        """
        Fetch and normalize every order matching the search expression.

        Orders whose createdAt lies outside date_range are dropped, since the
        upstream search is string based and loose at the boundaries.
        """
        logger.info('📥 [%s] Fetching orders from %s', self.channel.id, self.channel.endpoint_host)
        logger.debug('   Query string: %s', query_string)

        all_orders: List[Dict[str, Any]] = []
        pages = 0
        truncated = False

        for page in self.iter_pages(query_string):
            pages = page['number']
            kept = 0
            for node in page['nodes']:
                order = normalize_order(node)
                if date_range is not None and not self._in_range(order, date_range):
                    continue
                all_orders.append(order)
                kept += 1

            logger.info('   Page %d: %d orders (Total: %d)', pages, kept, len(all_orders))
            if page['has_next_page'] and pages >= self.max_pages:
                truncated = True

        if truncated:
            logger.warning('⚠️  [%s] Reached maximum of %d page requests - some orders may be missing',
                           self.channel.id, self.max_pages)
        else:
            logger.info('✅ [%s] Total orders fetched: %d', self.channel.id, len(all_orders))

        return FetchResult(orders=all_orders, truncated=truncated, pages=pages)

    def _in_range(self, order: Dict[str, Any], date_range: DateRange) -> bool:
        try:
            created = parse_instant(order['created_at'])
        except ValueError:
            logger.warning('⚠️  Skipping order %s with unreadable createdAt %r',
                           order.get('name') or order.get('id'), order['created_at'])
            return False
        return date_range.contains(created)

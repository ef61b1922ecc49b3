"""
Sales Pipeline

The one fetch-and-aggregate path every report goes through:
channel + date range -> search string -> paginated fetch -> optional source
filter -> summary and product analysis.

Errors are not caught here; the CLI and HTTP layers decide how to present them.
"""

import logging
import time
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Tuple

from capsule_catalog import CapsuleCatalog
from date_ranges import UTC, DateRange, InvalidRange, day_range, enumerate_days
from order_query import build_query_string
from sales_config import Settings
from sales_metrics import analyze_products, summarize
from shop_registry import ShopChannel, ShopRegistry
from shopify_order_fetcher import FetchResult, ShopifyOrderFetcher
from source_classifier import SOURCES, filter_by_source, split_by_source, validate_source

logger = logging.getLogger(__name__)

SOURCE_LABELS = {None: 'General Ecom', 'online': 'Ecom', 'pos': 'Brand Stores'}


def default_fetcher_factory(channel: ShopChannel, settings: Settings) -> ShopifyOrderFetcher:
    return ShopifyOrderFetcher(
        channel,
        api_version=settings.api_version,
        timeout=settings.request_timeout,
        page_size=settings.page_size,
        max_pages=settings.max_pages,
        deadline=settings.fetch_deadline or None,
    )


class SalesPipeline:
    def __init__(self,
                 registry: ShopRegistry,
                 settings: Optional[Settings] = None,
                 catalog: Optional[CapsuleCatalog] = None,
                 fetcher_factory: Callable[[ShopChannel, Settings], Any] = default_fetcher_factory,
                 sleep: Callable[[float], None] = time.sleep):
        self.registry = registry
        self.settings = settings or Settings()
        self.catalog = catalog
        self.fetcher_factory = fetcher_factory
        self.sleep = sleep

    def fetch(self, channel_id: Optional[str], date_range: DateRange) -> Tuple[ShopChannel, FetchResult]:
        """Resolve the channel and fetch every order in the range."""
        channel = self.registry.require_usable(self.registry.resolve(channel_id))
        query_string = build_query_string(date_range, channel)

        logger.info('📊 %s - Starting data fetch for %s to %s',
                    channel.id.upper(), date_range.label()['from'], date_range.label()['to'])

        fetcher = self.fetcher_factory(channel, self.settings)
        return channel, fetcher.fetch_orders(query_string, date_range)

    def _report(self,
                channel: ShopChannel,
                date_range: DateRange,
                source: Optional[str],
                orders: List[Dict[str, Any]],
                truncated: bool,
                top_n: int) -> Dict[str, Any]:
        summary = summarize(orders, date_range, self.catalog)
        logger.info('✅ %s %s - %.2f %s (%d orders)',
                    channel.id.upper(), SOURCE_LABELS[source], summary['total_sales'],
                    summary['currency_code'] or '', summary['total_orders'])
        return {
            'shop_type': channel.id,
            'shop': channel.endpoint_host,
            'source': source,
            'source_label': SOURCE_LABELS[source],
            'date_range': dict(date_range.label(), last_updated=datetime.now(UTC).isoformat()),
            'truncated': truncated,
            'summary': summary,
            'product_analysis': analyze_products(orders, top_n),
        }

    def run(self,
            channel_id: Optional[str],
            date_range: DateRange,
            source_filter: Optional[str] = None,
            top_n: int = 10) -> Dict[str, Any]:
        """
        Build a sales report for one channel and date range.

        Args:
            channel_id: Channel id; unknown or None uses the default channel
            date_range: Range of order creation dates
            source_filter: 'online', 'pos' or None for all orders
            top_n: Products per popularity list

        Returns:
            Report dict with summary, product_analysis and a truncated flag
        """
        source = validate_source(source_filter)
        channel, result = self.fetch(channel_id, date_range)
        orders = filter_by_source(result.orders, source)
        return self._report(channel, date_range, source, orders, result.truncated, top_n)

    def run_by_source(self,
                      channel_id: Optional[str],
                      date_range: DateRange,
                      top_n: int = 10) -> Dict[str, Any]:
        """Fetch once and report online and point-of-sale orders separately."""
        channel, result = self.fetch(channel_id, date_range)
        buckets = split_by_source(result.orders)
        return {
            'shop_type': channel.id,
            'date_range': date_range.label(),
            'truncated': result.truncated,
            'total_orders': len(result.orders),
            'sources': {
                source: self._report(channel, date_range, source, buckets[source], result.truncated, top_n)
                for source in SOURCES
            },
        }

    def run_daily(self,
                  channel_id: Optional[str],
                  date_range: DateRange,
                  source_filter: Optional[str] = None,
                  top_n: int = 10) -> Dict[str, Any]:
        """
        Sweep the range one day at a time, pausing between days so the
        upstream rate limit is not tripped.
        """
        source = validate_source(source_filter)
        all_days = enumerate_days(date_range)
        if len(all_days) > self.settings.max_daily_days:
            raise InvalidRange(
                f"Daily breakdown covers {len(all_days)} days, limit is {self.settings.max_daily_days}"
            )
        channel = self.registry.require_usable(self.registry.resolve(channel_id))

        days = []
        all_orders: List[Dict[str, Any]] = []
        truncated = False

        for index, day in enumerate(all_days):
            if index and self.settings.pacing_delay:
                self.sleep(self.settings.pacing_delay)

            current = day_range(day)
            _, result = self.fetch(channel.id, current)
            orders = filter_by_source(result.orders, source)
            all_orders.extend(orders)
            truncated = truncated or result.truncated
            days.append({
                'date': day.isoformat(),
                'truncated': result.truncated,
                'summary': summarize(orders, current, self.catalog),
            })

        report = self._report(channel, date_range, source, all_orders, truncated, top_n)
        report['days'] = days
        return report

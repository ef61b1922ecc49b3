#!/usr/bin/env python3
"""
Check Shopify API connectivity for every configured channel.

Usage:
  python3 check_shopify_connection.py
"""

import sys

from dotenv import load_dotenv

from sales_config import load_settings
from shop_registry import ConfigurationError, ShopRegistry
from shopify_order_fetcher import ShopifyAPIError, ShopifyOrderFetcher


def check_channels(registry: ShopRegistry, api_version: str, timeout: float = 30) -> int:
    """Query shop info on each channel and print the outcome. Returns the failure count."""
    print("=" * 70)
    print("SHOPIFY API CONNECTION CHECK")
    print("=" * 70)
    print()

    failures = 0
    for channel_id in registry.list_channel_ids():
        channel = registry.resolve(channel_id)
        print(f"{channel_id}:")
        try:
            fetcher = ShopifyOrderFetcher(channel, api_version=api_version, timeout=timeout)
            shop = fetcher.fetch_shop_info()
        except ConfigurationError as e:
            print(f"   ⚠️  Not configured: {e}")
            print()
            continue
        except ShopifyAPIError as e:
            print(f"   ❌ API Error: {e}")
            print()
            failures += 1
            continue

        print(f"   ✅ Connected to {shop.get('name')} ({channel.endpoint_host})")
        print(f"   Currency: {shop.get('currencyCode')}")
        print(f"   Timezone: {shop.get('timezone')}")
        if channel.channel_tag:
            print(f"   Channel filter: {channel.channel_tag}")
        print()

    print("=" * 70)
    if failures:
        print(f"❌ {failures} channel(s) failed")
    else:
        print("✅ ALL CONFIGURED CHANNELS REACHABLE")
    print("=" * 70)
    return failures


if __name__ == '__main__':
    load_dotenv()
    settings = load_settings()
    registry = ShopRegistry.from_env(default_id=settings.default_shop)
    sys.exit(1 if check_channels(registry, settings.api_version, settings.request_timeout) else 0)

#!/usr/bin/env python3
"""
Sales Report
Pull order metrics for one or all Shopify channels and save them as JSON.

Usage:
  python3 sales_report.py [--shop ecommerce|vending|...|all] [PERIOD] [OPTIONS]

Examples:
  # Yesterday's metrics for the ecommerce store (default)
  python3 sales_report.py

  # Yesterday's metrics for every configured store
  python3 sales_report.py --shop all

  # A single day, point-of-sale orders only
  python3 sales_report.py --shop brandstores --date 2025-01-15 --source pos

  # Day-by-day sweep of a range
  python3 sales_report.py --shop vending --from-date 2025-01-01 --to-date 2025-01-07 --daily

  # Last three months, online vs POS side by side
  python3 sales_report.py --past-months 3 --by-source

Credentials come from SHOPIFY_* environment variables (or a .env file).
"""

import argparse
import json
import os
import sys
from datetime import datetime
from typing import Any, Dict, Optional

from dotenv import load_dotenv

import date_ranges
from capsule_catalog import CapsuleCatalog
from date_ranges import UTC, DateRange, InvalidDateFormat, InvalidRange
from sales_config import configure_logging, load_settings
from sales_pipeline import SalesPipeline
from shop_registry import ConfigurationError, ShopRegistry
from shopify_order_fetcher import ShopifyAPIError
from source_classifier import InvalidSourceFilter

FALLBACK_CURRENCY = 'GEL'


def resolve_period(args: argparse.Namespace) -> DateRange:
    """Turn the period flags into a DateRange. Yesterday when none is given."""
    if bool(args.from_date) != bool(args.to_date):
        raise InvalidRange('--from-date and --to-date must be used together')
    if args.today:
        return date_ranges.today()
    if args.date:
        return date_ranges.single_day(args.date)
    if args.from_date:
        return date_ranges.explicit_range(args.from_date, args.to_date)
    if args.past_months is not None:
        return date_ranges.past_months_range(args.past_months)
    if args.last_month:
        return date_ranges.past_calendar_month_complete()
    if args.month_to_date:
        return date_ranges.past_calendar_month_including_current()
    return date_ranges.yesterday()


def report_filename(shop: str, date_range: DateRange, kind: str = 'metrics') -> str:
    label = date_range.label()
    if label['from'] == label['to']:
        return f"{kind}-{shop}-{label['from']}.json"
    return f"{kind}-{shop}-{label['from']}_{label['to']}.json"


def save_report(data: Dict[str, Any], output_dir: str, filename: str) -> str:
    """Write a report as pretty JSON, creating the directory if needed."""
    os.makedirs(output_dir, exist_ok=True)
    filepath = os.path.join(output_dir, filename)
    with open(filepath, 'w', encoding='utf-8') as f:
        json.dump(data, f, indent=2, ensure_ascii=False)
    print(f"💾 Data saved to: {filepath}")
    return filepath


def print_report(report: Dict[str, Any]):
    """Print the console summary for one report."""
    summary = report['summary']
    currency = summary.get('currency_code') or FALLBACK_CURRENCY
    date_label = report['date_range']

    print("=" * 70)
    print(f"📊 {report['shop_type'].upper()} - {report['source_label']}")
    print("=" * 70)
    print(f"Shop: {report.get('shop')}")
    print(f"Date Range: {date_label['from']} to {date_label['to']}")
    if report.get('truncated'):
        print("⚠️  Page limit reached - totals may be incomplete")
    print()

    print("💰 FINANCIAL METRICS")
    print(f"  Total Sales:          {summary['total_sales']:,.2f} {currency}")
    print(f"  Gross Sales:          {summary['gross_sales']:,.2f} {currency}")
    print(f"  Gross Profit:         {summary['gross_profit']:,.2f} {currency}")
    print(f"  Gross Profit Margin:  {summary['gross_profit_margin']:.2f}%")
    print(f"  COGS:                 {summary['total_cogs']:,.2f} {currency}")
    print()

    print("📈 ORDER METRICS")
    print(f"  Orders:               {summary['total_orders']:,}")
    print(f"  AOV:                  {summary['average_order_value']:,.2f} {currency}")
    print()

    print("📦 PRODUCT METRICS")
    print(f"  Units Sold:           {summary['total_units_sold']:,}")
    print(f"  Capsules Sold:        {summary['total_capsules_sold']:,}")
    by_category = summary['capsules_by_category']
    print(f"    Multicapsule: {by_category['multicapsule']:,}  |  European: {by_category['european']:,}"
          f"  |  Tea: {by_category['tea']:,}")
    print(f"  Capsules (keyword):   {summary['keyword_capsules_sold']:,}")
    print()

    print("💸 OTHER METRICS")
    print(f"  Total Refunded:       {summary['total_refunds']:,.2f} {currency} ({summary['refunded_orders']} orders)")
    print(f"  Total Discounts:      {summary['total_discounts']:,.2f} {currency}")
    print(f"  Total Tax:            {summary['total_tax']:,.2f} {currency}")
    print(f"  Total Shipping:       {summary['total_shipping']:,.2f} {currency}")
    print()

    most_popular = report['product_analysis']['most_popular']
    if most_popular:
        print(f"🏆 TOP {len(most_popular)} PRODUCTS BY REVENUE")
        print("-" * 40)
        for product in most_popular:
            title = product['title']
            print(f"  {title[:50]}{'...' if len(title) > 50 else ''}")
            print(f"    {product['quantity']:,} units  |  {product['total_sales']:,.2f} {currency}")
        print()

    days = report.get('days')
    if days:
        print("📅 DAILY BREAKDOWN")
        print("-" * 40)
        for day in days:
            day_summary = day['summary']
            print(f"  {day['date']}: {day_summary['total_orders']:4d} orders  |  "
                  f"{day_summary['total_sales']:,.2f} {currency}")
        print()


def run_shop(pipeline: SalesPipeline, shop: str, date_range: DateRange, args: argparse.Namespace) -> Dict[str, Any]:
    if args.by_source:
        result = pipeline.run_by_source(shop, date_range, top_n=args.top)
        for source_report in result['sources'].values():
            print_report(source_report)
        kind = 'by-source'
    elif args.daily:
        result = pipeline.run_daily(shop, date_range, args.source, top_n=args.top)
        print_report(result)
        kind = 'daily'
    else:
        result = pipeline.run(shop, date_range, args.source, top_n=args.top)
        print_report(result)
        kind = 'metrics'

    if not args.no_save:
        save_report(result, args.output_dir, report_filename(result['shop_type'], date_range, kind))
    return result


def run_all_shops(pipeline: SalesPipeline, date_range: DateRange, args: argparse.Namespace) -> Dict[str, Any]:
    """Report every configured shop; a failing shop is recorded, not fatal."""
    shops = pipeline.registry.list_channel_ids()
    print(f"🏪 Getting metrics for all shops: {', '.join(shops)}")

    results = {}
    for shop in shops:
        print(f"\n🔄 Processing {shop}...")
        try:
            results[shop] = run_shop(pipeline, shop, date_range, args)
        except (ConfigurationError, ShopifyAPIError) as e:
            print(f"❌ Error processing {shop}: {e}")
            results[shop] = {'error': str(e)}

    if not args.no_save:
        stamp = datetime.now(UTC).strftime('%Y-%m-%d')
        save_report(results, args.output_dir, f'all-metrics-{stamp}.json')
    return results


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Sales metrics for Shopify channels',
        formatter_class=argparse.RawDescriptionHelpFormatter
    )

    parser.add_argument('--shop', default=None,
                        help="Channel id (ecommerce, vending, collect, franchise, b2b, brandstores) or 'all'")

    period = parser.add_mutually_exclusive_group()
    period.add_argument('--today', action='store_true', help="Today's orders (UTC)")
    period.add_argument('--yesterday', action='store_true', help="Yesterday's orders (UTC, default)")
    period.add_argument('--date', help='Single day (YYYY-MM-DD)')
    period.add_argument('--from-date', help='Range start (YYYY-MM-DD), with --to-date')
    period.add_argument('--past-months', type=int, help='From the first of the month N months ago through yesterday')
    period.add_argument('--last-month', action='store_true', help='The whole previous calendar month')
    period.add_argument('--month-to-date', action='store_true',
                        help='Previous calendar month start through yesterday')
    parser.add_argument('--to-date', help='Range end (YYYY-MM-DD), with --from-date')

    parser.add_argument('--source', choices=['online', 'pos'], help='Only online or only POS orders')
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument('--daily', action='store_true', help='Fetch and report each day separately')
    mode.add_argument('--by-source', action='store_true', help='Report online and POS orders side by side')
    parser.add_argument('--top', type=int, default=10, help='Products per popularity list (default: 10)')

    parser.add_argument('--output-dir', default='data', help='Directory for JSON reports (default: data)')
    parser.add_argument('--no-save', action='store_true', help='Print only, do not write JSON files')
    return parser


def main(argv: Optional[list] = None, pipeline: Optional[SalesPipeline] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        if pipeline is None:
            load_dotenv()
            settings = load_settings()
            configure_logging(settings.log_level)
            pipeline = SalesPipeline(
                ShopRegistry.from_env(default_id=settings.default_shop),
                settings,
                CapsuleCatalog.load(settings.catalog_path),
            )
        date_range = resolve_period(args)

        if args.shop in ('all', 'all-shops'):
            run_all_shops(pipeline, date_range, args)
        else:
            run_shop(pipeline, args.shop, date_range, args)

    except (InvalidDateFormat, InvalidRange, InvalidSourceFilter, ConfigurationError) as e:
        print(f"❌ Error: {e}")
        return 1
    except ShopifyAPIError as e:
        print(f"❌ Shopify API error: {e}")
        return 1

    return 0


if __name__ == '__main__':
    sys.exit(main())

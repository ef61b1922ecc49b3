#!/usr/bin/env python3
"""
Sales Metrics Server
JSON endpoints over the sales pipeline.

Usage:
  python3 sales_server.py

  GET /sales/yesterday?shop=vending
  GET /sales/date/2025-01-15?shop=brandstores&source=pos
  GET /sales/range?start=2025-01-01&end=2025-01-31
"""

import logging
from datetime import datetime
from typing import Optional

from dotenv import load_dotenv
from flask import Flask, current_app, jsonify, redirect, request

import date_ranges
from capsule_catalog import CapsuleCatalog
from date_ranges import UTC, DateRange, InvalidDateFormat, InvalidRange
from sales_config import configure_logging, load_settings
from sales_pipeline import SalesPipeline
from shop_registry import ConfigurationError, ShopRegistry
from shopify_order_fetcher import ShopifyAPIError
from source_classifier import InvalidSourceFilter

logger = logging.getLogger(__name__)

ENDPOINTS = [
    'GET /health - Health check and environment status',
    'GET /shops - List available shops and their configuration',
    'GET /sales/today?shop=ecommerce&source=online|pos',
    'GET /sales/yesterday?shop=ecommerce&source=online|pos',
    'GET /sales/date/<YYYY-MM-DD>?shop=ecommerce',
    'GET /sales/range?start=YYYY-MM-DD&end=YYYY-MM-DD&shop=ecommerce',
    'GET /sales/past-months?months=N&shop=ecommerce',
    'GET /sales/last-month?shop=ecommerce',
    'GET /sales/month-to-date?shop=ecommerce',
    'GET /sales/by-source?period=today|yesterday&shop=ecommerce',
    'GET /sales/daily?start=YYYY-MM-DD&end=YYYY-MM-DD&shop=ecommerce',
]


def build_pipeline() -> SalesPipeline:
    """Pipeline wired from environment variables and the bundled catalog."""
    settings = load_settings()
    configure_logging(settings.log_level)
    registry = ShopRegistry.from_env(default_id=settings.default_shop)
    return SalesPipeline(registry, settings, CapsuleCatalog.load(settings.catalog_path))


def _pipeline() -> SalesPipeline:
    return current_app.config['SALES_PIPELINE']


def _range_from_args() -> DateRange:
    start, end = request.args.get('start'), request.args.get('end')
    if not start or not end:
        raise InvalidRange("Query parameters 'start' and 'end' are required (YYYY-MM-DD)")
    return date_ranges.explicit_range(start, end)


def _report(date_range: DateRange):
    report = _pipeline().run(
        request.args.get('shop'),
        date_range,
        request.args.get('source'),
        top_n=request.args.get('top', 10, type=int),
    )
    return jsonify(report)


def create_app(pipeline: Optional[SalesPipeline] = None) -> Flask:
    app = Flask(__name__)
    app.json.sort_keys = False
    app.config['SALES_PIPELINE'] = pipeline or build_pipeline()

    @app.errorhandler(InvalidDateFormat)
    @app.errorhandler(InvalidRange)
    @app.errorhandler(InvalidSourceFilter)
    @app.errorhandler(ConfigurationError)
    def client_error(error):
        return jsonify({'error': type(error).__name__, 'message': str(error)}), 400

    @app.errorhandler(ShopifyAPIError)
    def upstream_error(error):
        logger.error('❌ Shopify request failed: %s', error)
        return jsonify({'error': 'Failed to calculate sales metrics', 'message': str(error)}), 500

    @app.errorhandler(404)
    def not_found(error):
        return jsonify({
            'success': False,
            'error': 'Endpoint not found',
            'available_endpoints': ENDPOINTS,
            'available_shops': _pipeline().registry.list_channel_ids(),
        }), 404

    @app.route('/health')
    def health():
        registry = _pipeline().registry
        table = registry.describe()
        missing = [shop for shop, status in table.items() if status['status'] != 'configured']
        return jsonify({
            'status': 'ok',
            'timestamp': datetime.now(UTC).isoformat(),
            'environment': {
                'valid': registry.default_id not in missing,
                'missing': missing,
                'available_shops': registry.list_channel_ids(),
            },
        })

    @app.route('/shops')
    def shops():
        registry = _pipeline().registry
        return jsonify({
            'available_shops': registry.list_channel_ids(),
            'configurations': registry.describe(),
        })

    @app.route('/sales/today')
    def sales_today():
        return _report(date_ranges.today())

    @app.route('/sales/yesterday')
    def sales_yesterday():
        return _report(date_ranges.yesterday())

    @app.route('/sales/date/<day>')
    def sales_for_date(day):
        return _report(date_ranges.single_day(day))

    @app.route('/sales/range')
    def sales_range():
        return _report(_range_from_args())

    @app.route('/sales/past-months')
    def sales_past_months():
        months = request.args.get('months', type=int)
        if months is None:
            raise InvalidRange("Query parameter 'months' must be a whole number")
        return _report(date_ranges.past_months_range(months))

    @app.route('/sales/last-month')
    def sales_last_month():
        return _report(date_ranges.past_calendar_month_complete())

    @app.route('/sales/month-to-date')
    def sales_month_to_date():
        return _report(date_ranges.past_calendar_month_including_current())

    @app.route('/sales/by-source')
    def sales_by_source():
        if request.args.get('start') or request.args.get('end'):
            date_range = _range_from_args()
        elif request.args.get('period', 'yesterday') == 'today':
            date_range = date_ranges.today()
        else:
            date_range = date_ranges.yesterday()
        result = _pipeline().run_by_source(
            request.args.get('shop'), date_range, top_n=request.args.get('top', 10, type=int)
        )
        return jsonify(result)

    @app.route('/sales/daily')
    def sales_daily():
        result = _pipeline().run_daily(
            request.args.get('shop'),
            _range_from_args(),
            request.args.get('source'),
            top_n=request.args.get('top', 10, type=int),
        )
        return jsonify(result)

    @app.route('/sales-today')
    def legacy_sales_today():
        return redirect(_with_query('/sales/today'))

    @app.route('/sales-yesterday')
    def legacy_sales_yesterday():
        return redirect(_with_query('/sales/yesterday'))

    return app


def _with_query(path: str) -> str:
    query = request.query_string.decode('utf-8')
    return f'{path}?{query}' if query else path


if __name__ == '__main__':
    load_dotenv()
    app = create_app()
    port = load_settings().port
    logger.info('🚀 Sales metrics server listening on port %d', port)
    app.run(host='0.0.0.0', port=port)

"""
Sales Metrics

Folds normalized orders into a sales summary and a product popularity
ranking. Money is accumulated as full-precision floats and rounded half-up
to cents only when the result dict is built.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List, Optional

from capsule_catalog import CapsuleCatalog, category_bucket, keyword_capsule_units
from date_ranges import DateRange

CENT = Decimal('0.01')


def round_money(value: float) -> float:
    """Round half-up to 2 decimals (0.125 -> 0.13, unlike round())."""
    return float(Decimal(repr(float(value))).quantize(CENT, rounding=ROUND_HALF_UP))


def _amount(order: Dict[str, Any], kind: str) -> Optional[float]:
    total = (order.get('totals') or {}).get(kind)
    return total['amount'] if total else None


def summarize(orders: List[Dict[str, Any]],
              date_range: Optional[DateRange] = None,
              catalog: Optional[CapsuleCatalog] = None) -> Dict[str, Any]:
    """
    Build the sales summary for a set of orders.

    Args:
        orders: Normalized orders (see order_records.normalize_order)
        date_range: Range echoed back in the summary
        catalog: Capsule catalog for SKU lookups (None counts no catalog capsules)

    Returns:
        Summary dict; money rounded to cents, margin in percent
    """
    total_sales = 0.0
    total_refunds = 0.0
    gross_sales = 0.0
    total_discounts = 0.0
    total_tax = 0.0
    total_shipping = 0.0
    total_cogs = 0.0
    refunded_orders = 0
    total_units = 0
    total_capsules = 0
    keyword_capsules = 0
    capsules_by_category = {'multicapsule': 0, 'european': 0, 'tea': 0}
    unmatched_skus = set()
    currency_code = None

    for order in orders:
        current = _amount(order, 'current') or 0.0
        refunded = _amount(order, 'refunded') or 0.0
        discounts = _amount(order, 'discounts') or 0.0
        subtotal = _amount(order, 'subtotal')

        total_sales += current
        total_refunds += refunded
        if refunded > 0:
            refunded_orders += 1
        if subtotal is not None:
            gross_sales += subtotal
        else:
            gross_sales += (_amount(order, 'original') or 0.0) + discounts
        total_discounts += discounts
        total_tax += _amount(order, 'tax') or 0.0
        total_shipping += _amount(order, 'shipping') or 0.0

        if currency_code is None and order.get('currency_code'):
            currency_code = order['currency_code']

        for item in order.get('line_items') or []:
            quantity = item.get('quantity') or 0
            total_units += quantity
            total_cogs += quantity * (item.get('unit_cost') or 0.0)
            keyword_capsules += keyword_capsule_units(item)

            entry = catalog.lookup(item.get('sku')) if catalog is not None else None
            if entry is None:
                if item.get('sku'):
                    unmatched_skus.add(item['sku'])
                continue

            capsules = quantity * entry['capsule_count']
            total_capsules += capsules
            bucket = category_bucket(entry['category'])
            if bucket:
                capsules_by_category[bucket] += capsules

    total_orders = len(orders)
    average_order_value = total_sales / total_orders if total_orders > 0 else 0.0
    gross_profit = gross_sales - total_cogs
    gross_profit_margin = gross_profit / gross_sales * 100 if gross_sales != 0 else 0.0

    return {
        'total_sales': round_money(total_sales),
        'gross_sales': round_money(gross_sales),
        'total_refunds': round_money(total_refunds),
        'refunded_orders': refunded_orders,
        'total_discounts': round_money(total_discounts),
        'total_tax': round_money(total_tax),
        'total_shipping': round_money(total_shipping),
        'total_cogs': round_money(total_cogs),
        'gross_profit': round_money(gross_profit),
        'gross_profit_margin': round_money(gross_profit_margin),
        'total_orders': total_orders,
        'average_order_value': round_money(average_order_value),
        'total_units_sold': total_units,
        'total_capsules_sold': total_capsules,
        'capsules_by_category': capsules_by_category,
        'keyword_capsules_sold': keyword_capsules,
        'unmatched_capsule_skus': sorted(unmatched_skus),
        'currency_code': currency_code,
        'date_range': date_range.label() if date_range is not None else None,
    }


def _unit_price(item: Dict[str, Any]) -> float:
    for key in ('unit_price_original', 'unit_price_discounted'):
        if item.get(key) is not None:
            return item[key]
    return 0.0


def _product_row(product: Dict[str, Any]) -> Dict[str, Any]:
    return {
        'product_id': product['product_id'],
        'title': product['full_title'],
        'description': product['description'],
        'quantity': product['quantity'],
        'total_sales': round_money(product['total_sales']),
        'total_cost': round_money(product['total_cost']),
        'unit_price': round_money(product['unit_price']),
        'unit_cost': round_money(product['unit_cost']),
        'orders': product['orders'],
        'sku': product['sku'],
        'product_type': product['product_type'],
        'vendor': product['vendor'],
    }


def analyze_products(orders: List[Dict[str, Any]], top_n: int = 10) -> Dict[str, List[Dict[str, Any]]]:
    """
    Rank products by revenue.

    Line items without a product id are skipped. 'orders' counts line item
    occurrences, not distinct orders. With fewer than 2 * top_n products the
    two lists overlap.
    """
    products: Dict[str, Dict[str, Any]] = {}

    for order in orders:
        for item in order.get('line_items') or []:
            product_id = item.get('product_id')
            if not product_id:
                continue

            quantity = item.get('quantity') or 0
            unit_price = _unit_price(item)
            unit_cost = item.get('unit_cost') or 0.0

            if product_id in products:
                existing = products[product_id]
                existing['quantity'] += quantity
                existing['total_sales'] += quantity * unit_price
                existing['total_cost'] += quantity * unit_cost
                existing['orders'] += 1
                continue

            title = item.get('product_title') or item.get('title') or ''
            variant_title = item.get('variant_title') or ''
            products[product_id] = {
                'product_id': product_id,
                'title': title,
                'full_title': f'{title} - {variant_title}' if variant_title else title,
                'description': item.get('product_description') or '',
                'sku': item.get('sku') or '',
                'product_type': item.get('product_type') or '',
                'vendor': item.get('vendor') or '',
                'quantity': quantity,
                'total_sales': quantity * unit_price,
                'total_cost': quantity * unit_cost,
                'unit_price': unit_price,
                'unit_cost': unit_cost,
                'orders': 1,
            }

    ranked = sorted(products.values(), key=lambda p: p['total_sales'], reverse=True)
    if top_n <= 0:
        return {'most_popular': [], 'least_popular': []}

    return {
        'most_popular': [_product_row(p) for p in ranked[:top_n]],
        'least_popular': [_product_row(p) for p in reversed(ranked[-top_n:])],
    }


"""
Flatten Shopify GraphQL order nodes into plain order and line item dicts.

The metrics code only ever sees the normalized shape, so missing nested
fields are resolved here once: money is a float or None, text is a string,
quantities are non-negative ints.
"""

from typing import Any, Dict, Optional

# normalized total name -> GraphQL money set field
TOTAL_FIELDS = {
    'original': 'totalPriceSet',
    'current': 'currentTotalPriceSet',
    'refunded': 'totalRefundedSet',
    'subtotal': 'subtotalPriceSet',
    'discounts': 'totalDiscountsSet',
    'tax': 'totalTaxSet',
    'shipping': 'totalShippingPriceSet',
}


def parse_amount(value: Any) -> Optional[float]:
    if value is None or value == '':
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def parse_money_set(money_set: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """{'shopMoney': {'amount': '12.50', 'currencyCode': 'GEL'}} -> {'amount': 12.5, 'currency_code': 'GEL'}"""
    shop_money = (money_set or {}).get('shopMoney') or {}
    amount = parse_amount(shop_money.get('amount'))
    if amount is None:
        return None
    return {'amount': amount, 'currency_code': shop_money.get('currencyCode')}


def _money_amount(money_set: Optional[Dict[str, Any]]) -> Optional[float]:
    parsed = parse_money_set(money_set)
    return parsed['amount'] if parsed else None


def _quantity(value: Any) -> int:
    try:
        quantity = int(value or 0)
    except (TypeError, ValueError):
        return 0
    return max(quantity, 0)


def normalize_line_item(node: Dict[str, Any]) -> Dict[str, Any]:
    variant = node.get('variant') or {}
    product = variant.get('product') or {}
    unit_cost = ((variant.get('inventoryItem') or {}).get('unitCost') or {}).get('amount')

    return {
        'quantity': _quantity(node.get('quantity')),
        'title': node.get('title') or '',
        'variant_title': node.get('variantTitle') or variant.get('title') or '',
        'unit_price_original': _money_amount(node.get('originalUnitPriceSet')),
        'unit_price_discounted': _money_amount(node.get('discountedUnitPriceSet')),
        'sku': variant.get('sku') or '',
        'unit_cost': parse_amount(unit_cost),
        'product_id': product.get('id'),
        'product_title': product.get('title') or '',
        'product_description': product.get('description') or '',
        'product_type': product.get('productType') or '',
        'vendor': product.get('vendor') or '',
    }


def normalize_order(node: Dict[str, Any]) -> Dict[str, Any]:
    totals = {kind: parse_money_set(node.get(field)) for kind, field in TOTAL_FIELDS.items()}

    currency_code = None
    for kind in ('original', 'current', 'subtotal'):
        if totals[kind] and totals[kind]['currency_code']:
            currency_code = totals[kind]['currency_code']
            break

    line_item_nodes = (node.get('lineItems') or {}).get('nodes') or []

    return {
        'id': node.get('id'),
        'name': node.get('name') or '',
        'created_at': node.get('createdAt') or '',
        'financial_status': node.get('displayFinancialStatus') or '',
        'source_name': node.get('sourceName'),
        'currency_code': currency_code,
        'totals': totals,
        'line_items': [normalize_line_item(item) for item in line_item_nodes],
    }

"""
Split orders into online and point-of-sale by their sourceName.

Anything that is not a known POS source, including orders with no source at
all, counts as online.
"""

from typing import Any, Dict, List, Optional

ONLINE = 'online'
POS = 'pos'
SOURCES = (ONLINE, POS)

POS_SOURCE_TAGS = frozenset(['pos', 'point_of_sale'])


class InvalidSourceFilter(ValueError):
    """Source filter is not 'online' or 'pos'"""
    pass


def classify(order: Dict[str, Any]) -> str:
    source_name = order.get('source_name')
    if isinstance(source_name, str) and source_name.strip().lower() in POS_SOURCE_TAGS:
        return POS
    return ONLINE


def validate_source(source: Optional[str]) -> Optional[str]:
    if source is None or source == '':
        return None
    normalized = source.strip().lower()
    if normalized not in SOURCES:
        raise InvalidSourceFilter(f"Unknown source filter {source!r}. Use 'online' or 'pos'")
    return normalized


def filter_by_source(orders: List[Dict[str, Any]], source: Optional[str]) -> List[Dict[str, Any]]:
    """Orders from the given source; None means no filtering."""
    wanted = validate_source(source)
    if wanted is None:
        return list(orders)
    return [order for order in orders if classify(order) == wanted]


def split_by_source(orders: List[Dict[str, Any]]) -> Dict[str, List[Dict[str, Any]]]:
    buckets: Dict[str, List[Dict[str, Any]]] = {ONLINE: [], POS: []}
    for order in orders:
        buckets[classify(order)].append(order)
    return buckets

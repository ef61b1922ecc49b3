"""
Capsule Catalog

Static SKU -> capsule count/category table used to turn line items into
capsules sold. Loaded once at start-up and only read afterwards.

Two counting strategies exist and they disagree for the same orders:
  - catalog lookup (CapsuleCatalog.lookup): exact, case-insensitive SKU match
  - keyword heuristic (keyword_capsule_units): item quantity counts when the
    title or product type mentions "capsule" or "pod"
Reports carry both numbers; pick one per integration.
"""

import json
import logging
import os
from typing import Any, Dict, Iterable, Optional

logger = logging.getLogger(__name__)

DEFAULT_CATALOG_PATH = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'capsule_catalog.json')

UNKNOWN_CATEGORY = 'Unknown'
# catalog category (lower-cased) -> summary bucket
CATEGORY_BUCKETS = {
    'multicapsule': 'multicapsule',
    'european': 'european',
    'tea': 'tea',
}
CAPSULE_KEYWORDS = ('capsule', 'pod')


class CapsuleCatalog:
    def __init__(self, entries: Iterable[Dict[str, Any]]):
        self._by_sku: Dict[str, Dict[str, Any]] = {}
        for entry in entries:
            sku = (entry.get('sku') or '').strip()
            if not sku:
                continue
            self._by_sku[sku.lower()] = {
                'sku': sku,
                'capsule_count': int(entry.get('capsule_count') or 0),
                'category': entry.get('category') or UNKNOWN_CATEGORY,
            }

    @classmethod
    def load(cls, path: Optional[str] = None) -> 'CapsuleCatalog':
        """Read the catalog JSON file (a list of {sku, capsule_count, category})."""
        path = path or DEFAULT_CATALOG_PATH
        with open(path, 'r', encoding='utf-8') as f:
            entries = json.load(f)
        catalog = cls(entries)
        logger.info('📦 Loaded %d capsule catalog entries from %s', len(catalog), path)
        return catalog

    def __len__(self) -> int:
        return len(self._by_sku)

    def lookup(self, sku: Optional[str]) -> Optional[Dict[str, Any]]:
        if not sku:
            return None
        return self._by_sku.get(sku.strip().lower())


def category_bucket(category: str) -> Optional[str]:
    return CATEGORY_BUCKETS.get((category or '').strip().lower())


def keyword_capsule_units(line_item: Dict[str, Any]) -> int:
    """Quantity of the item if its title or product type names capsules/pods, else 0."""
    product_type = (line_item.get('product_type') or '').lower()
    title = (line_item.get('title') or '').lower()
    for keyword in CAPSULE_KEYWORDS:
        if keyword in product_type or keyword in title:
            return line_item.get('quantity') or 0
    return 0

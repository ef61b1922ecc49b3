"""
Shopify order search strings and GraphQL documents.
"""

import logging

from date_ranges import DateRange
from shop_registry import ShopChannel

logger = logging.getLogger(__name__)


ORDERS_QUERY = """
query GetOrders($cursor: String, $q: String!, $first: Int!) {
  orders(first: $first, after: $cursor, query: $q, sortKey: CREATED_AT) {
    pageInfo { hasNextPage endCursor }
    nodes {
      id
      name
      createdAt
      displayFinancialStatus
      sourceName
      totalPriceSet { shopMoney { amount currencyCode } }
      currentTotalPriceSet { shopMoney { amount currencyCode } }
      totalRefundedSet { shopMoney { amount currencyCode } }
      subtotalPriceSet { shopMoney { amount currencyCode } }
      totalDiscountsSet { shopMoney { amount currencyCode } }
      totalTaxSet { shopMoney { amount currencyCode } }
      totalShippingPriceSet { shopMoney { amount currencyCode } }
      lineItems(first: 50) {
        nodes {
          quantity
          title
          variantTitle
          originalUnitPriceSet { shopMoney { amount currencyCode } }
          discountedUnitPriceSet { shopMoney { amount currencyCode } }
          variant {
            id
            title
            sku
            inventoryItem {
              unitCost { amount }
            }
            product {
              id
              title
              description
              handle
              productType
              vendor
            }
          }
        }
      }
    }
  }
}
"""

SHOP_INFO_QUERY = """
query {
  shop {
    id
    name
    email
    currencyCode
    timezone
    plan { displayName }
  }
}
"""


def build_query_parts(date_range: DateRange, channel: ShopChannel) -> list:
    parts = [
        f'created_at:>={date_range.start_iso()}',
        f'created_at:<={date_range.end_iso()}',
        '-cancelled_status:cancelled',
        '-test:true',
    ]
    if channel.channel_tag:
        parts.append(f'channel:"{channel.channel_tag}"')
        logger.debug('🔍 [%s] Added channel filter: channel:"%s"', channel.id, channel.channel_tag)
    return parts


def build_query_string(date_range: DateRange, channel: ShopChannel) -> str:
    """Order search expression for the date range, scoped to the channel tag if any."""
    return ' '.join(build_query_parts(date_range, channel))

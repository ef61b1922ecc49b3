"""
Shop Registry

Maps a channel id (ecommerce, vending, b2b, ...) to the Shopify store that
serves it, its Admin API token and an optional sales-channel tag used to scope
order searches.

Usage:
    from shop_registry import ShopRegistry

    registry = ShopRegistry.from_env()
    channel = registry.resolve('vending')
"""

import os
from typing import Dict, Iterable, List, Mapping, NamedTuple, Optional


class ConfigurationError(Exception):
    """A channel or setting is missing required configuration"""
    pass


class ShopChannel(NamedTuple):
    id: str
    endpoint_host: Optional[str]
    credential: Optional[str]
    channel_tag: Optional[str] = None

    @property
    def is_usable(self) -> bool:
        return bool(self.endpoint_host) and bool(self.credential)


# (channel id, shop env vars, token env vars, channel tag); first set variable wins
CHANNEL_ENV = [
    ('ecommerce', ['SHOPIFY_SHOP', 'SHOPIFY_MEAMA_B2B_SHOP'],
     ['SHOPIFY_ACCESS_TOKEN', 'SHOPIFY_MEAMA_B2B_ACCESS_TOKEN'], None),
    ('vending', ['SHOPIFY_VENDING_SHOP'], ['SHOPIFY_MEAMA_VENDING_ACCESS_TOKEN'], None),
    ('collect', ['SHOPIFY_MEAMA_COLLECT_SHOP'], ['SHOPIFY_MEAMA_COLLECT_ACCESS_TOKEN'], None),
    ('franchise', ['SHOPIFY_MEAMA_FRANCHISE_SHOP'], ['SHOPIFY_MEAMA_FRANCHISE_ACCESS_TOKEN'], None),
    ('b2b', ['SHOPIFY_MEAMA_B2B_SHOP'], ['SHOPIFY_MEAMA_B2B_ACCESS_TOKEN'], None),
    ('brandstores', ['SHOPIFY_SHOP', 'SHOPIFY_MEAMA_B2B_SHOP'],
     ['SHOPIFY_ACCESS_TOKEN', 'SHOPIFY_MEAMA_B2B_ACCESS_TOKEN'], 'Point of Sale'),
]


def _first_set(environ: Mapping[str, str], keys: List[str]) -> Optional[str]:
    for key in keys:
        value = environ.get(key)
        if value:
            return value
    return None


def clean_host(shop_url: Optional[str]) -> Optional[str]:
    """Strip scheme and trailing slash from a store URL."""
    if not shop_url:
        return shop_url
    return shop_url.replace('https://', '').replace('http://', '').rstrip('/')


class ShopRegistry:
    def __init__(self, channels: Iterable[ShopChannel], default_id: str = 'ecommerce'):
        self._channels: Dict[str, ShopChannel] = {}
        for channel in channels:
            self._channels[channel.id] = channel

        if default_id not in self._channels:
            raise ConfigurationError(f"Default channel '{default_id}' is not configured")
        self.default_id = default_id

    @classmethod
    def from_env(cls,
                 environ: Optional[Mapping[str, str]] = None,
                 default_id: str = 'ecommerce') -> 'ShopRegistry':
        """
        Build the standard channel set from SHOPIFY_* environment variables.

        Channels whose variables are unset are still registered so they show
        up as not configured; selecting one fails in require_usable().
        """
        env = os.environ if environ is None else environ
        channels = []
        for channel_id, shop_keys, token_keys, tag in CHANNEL_ENV:
            channels.append(ShopChannel(
                id=channel_id,
                endpoint_host=clean_host(_first_set(env, shop_keys)),
                credential=_first_set(env, token_keys),
                channel_tag=tag,
            ))
        return cls(channels, default_id=default_id)

    def resolve(self, channel_id: Optional[str] = None) -> ShopChannel:
        """Return the channel for channel_id, or the default channel if unknown."""
        if channel_id and channel_id in self._channels:
            return self._channels[channel_id]
        return self._channels[self.default_id]

    def list_channel_ids(self) -> List[str]:
        return list(self._channels)

    @staticmethod
    def require_usable(channel: ShopChannel) -> ShopChannel:
        if not channel.is_usable:
            missing = []
            if not channel.endpoint_host:
                missing.append('shop')
            if not channel.credential:
                missing.append('access token')
            raise ConfigurationError(
                f"Missing {' and '.join(missing)} for shop type: {channel.id}"
            )
        return channel

    def describe(self) -> Dict[str, Dict[str, object]]:
        """Per-channel configuration status. Never includes the token itself."""
        table = {}
        for channel_id, channel in self._channels.items():
            table[channel_id] = {
                'shop': channel.endpoint_host or 'UNDEFINED',
                'has_token': bool(channel.credential),
                'status': 'configured' if channel.is_usable else 'not_configured',
                'channel': channel.channel_tag,
            }
        return table

import pytest

from shop_registry import ConfigurationError, ShopChannel, ShopRegistry, clean_host


ENV = {
    'SHOPIFY_SHOP': 'https://meama-ge.myshopify.com/',
    'SHOPIFY_ACCESS_TOKEN': 'shpat_main',
    'SHOPIFY_VENDING_SHOP': 'meama-vending.myshopify.com',
    'SHOPIFY_MEAMA_VENDING_ACCESS_TOKEN': 'shpat_vending',
    'SHOPIFY_MEAMA_B2B_SHOP': 'meama-b2b.myshopify.com',
    'SHOPIFY_MEAMA_B2B_ACCESS_TOKEN': 'shpat_b2b',
}


def test_from_env_registers_every_channel():
    registry = ShopRegistry.from_env(ENV)
    assert registry.list_channel_ids() == ['ecommerce', 'vending', 'collect', 'franchise', 'b2b', 'brandstores']


def test_from_env_cleans_host_and_tags_brandstores():
    registry = ShopRegistry.from_env(ENV)
    ecommerce = registry.resolve('ecommerce')
    assert ecommerce.endpoint_host == 'meama-ge.myshopify.com'
    assert ecommerce.channel_tag is None

    brandstores = registry.resolve('brandstores')
    assert brandstores.endpoint_host == 'meama-ge.myshopify.com'
    assert brandstores.channel_tag == 'Point of Sale'


def test_ecommerce_falls_back_to_b2b_store():
    env = {k: v for k, v in ENV.items() if k not in ('SHOPIFY_SHOP', 'SHOPIFY_ACCESS_TOKEN')}
    channel = ShopRegistry.from_env(env).resolve('ecommerce')
    assert channel.endpoint_host == 'meama-b2b.myshopify.com'
    assert channel.credential == 'shpat_b2b'


def test_resolve_unknown_or_missing_uses_default():
    registry = ShopRegistry.from_env(ENV)
    assert registry.resolve('nonexistent').id == 'ecommerce'
    assert registry.resolve(None).id == 'ecommerce'
    assert registry.resolve('').id == 'ecommerce'


def test_unconfigured_channel_is_registered_but_unusable():
    registry = ShopRegistry.from_env(ENV)
    collect = registry.resolve('collect')
    assert collect.id == 'collect'
    assert not collect.is_usable
    with pytest.raises(ConfigurationError, match='collect'):
        registry.require_usable(collect)


def test_require_usable_returns_channel():
    channel = ShopChannel('vending', 'meama-vending.myshopify.com', 'tok')
    assert ShopRegistry.require_usable(channel) is channel


def test_describe_never_exposes_tokens():
    table = ShopRegistry.from_env(ENV).describe()
    assert table['vending'] == {
        'shop': 'meama-vending.myshopify.com',
        'has_token': True,
        'status': 'configured',
        'channel': None,
    }
    assert table['collect']['shop'] == 'UNDEFINED'
    assert table['collect']['status'] == 'not_configured'
    assert 'shpat' not in repr(table)


def test_default_must_be_registered():
    with pytest.raises(ConfigurationError):
        ShopRegistry([ShopChannel('vending', 'h', 't')], default_id='ecommerce')


def test_custom_default():
    registry = ShopRegistry.from_env(ENV, default_id='vending')
    assert registry.resolve('bogus').id == 'vending'


@pytest.mark.parametrize('raw, expected', [
    ('https://shop.myshopify.com/', 'shop.myshopify.com'),
    ('http://shop.myshopify.com', 'shop.myshopify.com'),
    ('shop.myshopify.com', 'shop.myshopify.com'),
    (None, None),
])
def test_clean_host(raw, expected):
    assert clean_host(raw) == expected

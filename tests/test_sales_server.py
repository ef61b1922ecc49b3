import pytest

from capsule_catalog import CapsuleCatalog
from factories import FakeFetcherFactory, order, registry
from sales_config import Settings
from sales_pipeline import SalesPipeline
from sales_server import create_app
from shopify_order_fetcher import UpstreamProtocolError

ORDERS = [
    order(name='#1', created_at='2025-01-15T09:00:00Z', current=100, source_name='web'),
    order(name='#2', created_at='2025-01-15T12:00:00Z', current=40, source_name='pos'),
    order(name='#3', created_at='2025-01-16T08:00:00Z', current=60, source_name='pos'),
]


def _client(factory):
    pipeline = SalesPipeline(registry(), Settings(pacing_delay=0), CapsuleCatalog([]),
                             fetcher_factory=factory, sleep=lambda seconds: None)
    app = create_app(pipeline)
    app.testing = True
    return app.test_client()


@pytest.fixture
def factory():
    return FakeFetcherFactory(ORDERS)


@pytest.fixture
def client(factory):
    return _client(factory)


def test_health(client):
    response = client.get('/health')
    body = response.get_json()

    assert response.status_code == 200
    assert body['status'] == 'ok'
    assert body['environment']['valid'] is True
    assert body['environment']['missing'] == ['vending']
    assert 'ecommerce' in body['environment']['available_shops']


def test_shops_never_expose_tokens(client):
    response = client.get('/shops')
    body = response.get_json()

    assert response.status_code == 200
    assert body['configurations']['vending']['status'] == 'not_configured'
    assert body['configurations']['brandstores']['channel'] == 'Point of Sale'
    assert 'shpat_test' not in response.get_data(as_text=True)


def test_sales_for_date(client, factory):
    response = client.get('/sales/date/2025-01-15?shop=ecommerce')
    body = response.get_json()

    assert response.status_code == 200
    assert body['shop_type'] == 'ecommerce'
    assert body['summary']['total_orders'] == 2
    assert body['summary']['total_sales'] == 140.0
    assert factory.calls[0][0] == 'ecommerce'


def test_sales_for_date_with_source(client):
    body = client.get('/sales/date/2025-01-15?source=pos').get_json()
    assert body['source'] == 'pos'
    assert body['summary']['total_orders'] == 1


def test_sales_range(client):
    body = client.get('/sales/range?start=2025-01-15&end=2025-01-16').get_json()
    assert body['summary']['total_orders'] == 3
    assert body['date_range']['from'] == '2025-01-15'
    assert body['date_range']['to'] == '2025-01-16'


@pytest.mark.parametrize('url', [
    '/sales/date/2025-13-45',
    '/sales/date/15-01-2025',
    '/sales/range?start=2025-01-05&end=2025-01-01',
    '/sales/range?start=2025-01-05',
    '/sales/past-months?months=-2',
    '/sales/past-months?months=abc',
    '/sales/date/2025-01-15?source=wholesale',
    '/sales/date/2025-01-15?shop=vending',
])
def test_client_errors_are_400(client, factory, url):
    response = client.get(url)

    assert response.status_code == 400
    assert response.get_json()['message']
    assert factory.calls == []


def test_upstream_error_is_500():
    client = _client(FakeFetcherFactory(error=UpstreamProtocolError('GraphQL errors: Throttled')))
    response = client.get('/sales/date/2025-01-15')

    assert response.status_code == 500
    assert response.get_json() == {
        'error': 'Failed to calculate sales metrics',
        'message': 'GraphQL errors: Throttled',
    }


@pytest.mark.parametrize('url', ['/sales/today', '/sales/yesterday', '/sales/last-month',
                                 '/sales/month-to-date', '/sales/past-months?months=2'])
def test_relative_periods(client, factory, url):
    response = client.get(url)
    assert response.status_code == 200
    assert len(factory.calls) == 1


def test_by_source(client, factory):
    body = client.get('/sales/by-source?start=2025-01-15&end=2025-01-16').get_json()

    assert len(factory.calls) == 1
    assert body['total_orders'] == 3
    assert body['sources']['online']['summary']['total_orders'] == 1
    assert body['sources']['pos']['summary']['total_orders'] == 2


def test_daily(client, factory):
    body = client.get('/sales/daily?start=2025-01-15&end=2025-01-16').get_json()

    assert len(factory.calls) == 2
    assert [day['summary']['total_orders'] for day in body['days']] == [2, 1]


def test_unknown_path_lists_endpoints(client):
    response = client.get('/nope')
    body = response.get_json()

    assert response.status_code == 404
    assert body['error'] == 'Endpoint not found'
    assert 'GET /health - Health check and environment status' in body['available_endpoints']
    assert body['available_shops'] == ['ecommerce', 'brandstores', 'vending']


def test_legacy_paths_redirect_with_query(client):
    response = client.get('/sales-yesterday?shop=vending')
    assert response.status_code == 302
    assert response.headers['Location'].endswith('/sales/yesterday?shop=vending')


def test_daily_rejects_multi_year_range(client, factory):
    response = client.get('/sales/daily?start=2000-01-01&end=2025-12-31')

    assert response.status_code == 400
    assert response.get_json()['error'] == 'InvalidRange'
    assert factory.calls == []

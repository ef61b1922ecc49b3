import responses

from check_shopify_connection import check_channels
from factories import GRAPHQL_URL, registry


@responses.activate
def test_reports_connected_and_unconfigured_channels(capsys):
    responses.add(responses.POST, GRAPHQL_URL,
                  json={'data': {'shop': {'name': 'Meama Test', 'currencyCode': 'GEL', 'timezone': 'Asia/Tbilisi'}}})

    failures = check_channels(registry(), '2023-10')

    out = capsys.readouterr().out
    assert failures == 0
    assert 'Connected to Meama Test' in out
    assert 'Channel filter: Point of Sale' in out
    assert 'Not configured' in out


@responses.activate
def test_counts_failed_channels(capsys):
    responses.add(responses.POST, GRAPHQL_URL, status=401)

    failures = check_channels(registry(), '2023-10')

    assert failures == 2
    assert 'HTTP error! status: 401' in capsys.readouterr().out

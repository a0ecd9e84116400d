import json

import httpx
import pytest
from conftest import SHEET_CSV

from logautofill.pipeline.errors import AppendAcknowledgmentMissing, TransportUnavailable
from logautofill.pipeline.sheets.sheet_client import SheetClient


def _client(settings, handler):
    return SheetClient(settings=settings, transport=httpx.MockTransport(handler))


def test_fetch_adds_cache_buster_and_keeps_query(settings):
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, text=SHEET_CSV)

    text = _client(settings, handler).fetch_history_csv()

    assert text == SHEET_CSV
    params = seen[0].url.params
    assert params["format"] == "csv"
    assert params["gid"] == "0"
    assert params["t"].isdigit()


def test_fetch_error_status_is_transport_error(settings):
    client = _client(settings, lambda request: httpx.Response(500))
    with pytest.raises(TransportUnavailable):
        client.fetch_history_csv()


def test_fetch_network_error_is_transport_error(settings):
    def handler(request):
        raise httpx.ConnectError("offline", request=request)

    with pytest.raises(TransportUnavailable):
        _client(settings, handler).fetch_history_csv()


def test_append_posts_plain_text_json(settings):
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, text="ok")

    rows = [{"scNo": "1", "dtrCode": "N/A", "feederName": "N/A", "location": "N/A", "timestamp": "t"}]
    _client(settings, handler).append_rows(rows)

    request = seen[0]
    assert request.method == "POST"
    assert str(request.url) == settings.script_url
    assert request.headers["content-type"] == "text/plain"
    assert request.headers["cache-control"] == "no-cache"
    assert json.loads(request.content) == rows


def test_append_does_not_inspect_response(settings):
    client = _client(settings, lambda request: httpx.Response(500, text="oops"))
    client.append_rows([{"scNo": "1"}])


def test_append_empty_list_sends_nothing(settings):
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200)

    _client(settings, handler).append_rows([])
    assert seen == []


def test_append_network_error_is_reported(settings):
    def handler(request):
        raise httpx.ConnectError("offline", request=request)

    with pytest.raises(AppendAcknowledgmentMissing):
        _client(settings, handler).append_rows([{"scNo": "1"}])

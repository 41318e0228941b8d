import json

import httpx
import pytest

from api.client import TableStoreClient, TableStoreError


URL = "https://plans.example.test/api/data"


def make_client(handler):
    return TableStoreClient(URL, transport=httpx.MockTransport(handler))


def test_requires_url(monkeypatch):
    monkeypatch.delenv("TABLE_STORE_URL", raising=False)
    with pytest.raises(ValueError):
        TableStoreClient()


def test_url_from_env(monkeypatch):
    monkeypatch.setenv("TABLE_STORE_URL", URL)
    assert TableStoreClient().base_url == URL


def test_read_sends_query():
    seen = {}

    def handler(request):
        seen["method"] = request.method
        seen["params"] = dict(request.url.params)
        return httpx.Response(200, json=[{"id": "1", "qty": 10}])

    rows = make_client(handler).read("Deliveries")
    assert rows == [{"id": "1", "qty": 10}]
    assert seen == {"method": "GET", "params": {"action": "read", "sheet": "Deliveries"}}


@pytest.mark.parametrize(
    "call, expected",
    [
        (lambda c: c.save("SKUs", [{"id": "s1"}]), {"action": "save", "sheet": "SKUs", "data": [{"id": "s1"}]}),
        (lambda c: c.add("Plans", {"id": "p1"}), {"action": "add", "sheet": "Plans", "row": {"id": "p1"}}),
        (lambda c: c.delete("Plans", "p1"), {"action": "delete", "sheet": "Plans", "id": "p1"}),
        (
            lambda c: c.update("Plans", "p1", {"qty": 2}),
            {"action": "update", "sheet": "Plans", "id": "p1", "row": {"qty": 2}},
        ),
    ],
)
def test_write_bodies(call, expected):
    seen = {}

    def handler(request):
        seen["method"] = request.method
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"success": True})

    assert call(make_client(handler)) == {"success": True}
    assert seen == {"method": "POST", "body": expected}


def test_not_found_is_returned_not_raised():
    def handler(request):
        return httpx.Response(200, json={"success": False, "error": "ID not found"})

    assert make_client(handler).delete("Plans", "x") == {"success": False, "error": "ID not found"}


def test_error_payload_raises():
    def handler(request):
        return httpx.Response(400, json={"error": "Invalid action"})

    with pytest.raises(TableStoreError) as exc:
        make_client(handler).read("Plans")
    assert str(exc.value) == "Invalid action"


def test_non_json_response_raises():
    def handler(request):
        return httpx.Response(502, text="Bad gateway")

    with pytest.raises(TableStoreError) as exc:
        make_client(handler).add("Plans", {"id": "1"})
    assert "502" in str(exc.value)


def test_connection_ok():
    def handler(request):
        return httpx.Response(200, json=[{"id": "s1"}, {"id": "s2"}])

    result = make_client(handler).test_connection()
    assert result == {"success": True, "message": "Connected! SKUs has 2 rows"}


def test_connection_refused():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    result = make_client(handler).test_connection()
    assert result["success"] is False
    assert URL in result["message"]


def test_connection_error_payload():
    def handler(request):
        return httpx.Response(500, json={"error": "backend down"})

    assert make_client(handler).test_connection() == {"success": False, "message": "backend down"}

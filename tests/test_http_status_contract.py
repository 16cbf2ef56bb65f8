# pyright: reportUnknownParameterType=false, reportUnknownMemberType=false
import pytest
import requests

from conftest import RecordingAdapter
from search_relay.networking.client import SearchRequestClient
from search_relay.networking.config import SearchClientConfig
from search_relay.networking.types import TRANSPORT_FAILURE_STATUS, Response


def _client(transport):
    return SearchRequestClient(
        SearchClientConfig(hostname="http://example.com", port=9200),
        transport=transport,
    )


def test_get_404_is_returned_with_backend_body():
    transport = RecordingAdapter(
        status=404, content=b"not found", reason="Not Found"
    )

    response = _client(transport).get("http://example.com:9200/missing")

    assert response.status_code == 404
    assert response.body == b"not found"
    assert response.meta["reason"] == "Not Found"
    assert not response.ok
    assert not response.is_transport_failure


def test_put_500_is_returned_with_backend_body():
    transport = RecordingAdapter(
        status=500, content=b"server error", reason="Internal Server Error"
    )

    response = _client(transport).put("http://example.com:9200/index", "{}")

    assert response.status_code == 500
    assert response.body == b"server error"
    assert response.meta["reason"] == "Internal Server Error"
    assert not response.is_transport_failure


def test_transport_failure_status_is_not_a_real_http_status():
    transport = RecordingAdapter(
        error=requests.exceptions.ConnectionError("Connection refused")
    )

    response = _client(transport).get("http://example.com:9200/")

    assert response.status_code == TRANSPORT_FAILURE_STATUS
    assert not 100 <= response.status_code <= 599
    assert "Connection refused" in response.meta["error"]


def test_synthetic_response_shape():
    response = Response.transport_failure({"final_error": "ConnectTimeout"})

    assert response.status_code == TRANSPORT_FAILURE_STATUS
    assert dict(response.headers) == {}
    assert response.body == b""
    assert response.text == ""
    assert response.meta["final_error"] == "ConnectTimeout"


def test_response_headers_are_case_insensitive_and_read_only():
    response = Response(200, headers={"Content-Type": "application/json"})

    assert response.headers["content-type"] == "application/json"
    with pytest.raises(TypeError):
        response.headers["X-Other"] = "1"  # type: ignore[index]


def test_response_json_rejects_empty_body():
    with pytest.raises(ValueError):
        Response(200).json()

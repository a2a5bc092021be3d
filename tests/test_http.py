import io
import json
import threading

import pytest
import requests

from cloudcraft_client import CloudcraftClient, PollingPolicy, RawBytes, RequestContext, Typed
from cloudcraft_client.config import ClientConfig
from cloudcraft_client.exceptions import (
    ApiError,
    ArgumentError,
    DecodeError,
    PollingTimeoutError,
    RequestCancelledError,
    SerializationError,
    UrlParseError,
)
from cloudcraft_client.http import MAX_BODY_SLURP, build_request, drain_and_close, resolve_url
from cloudcraft_client.models import BlueprintCreateRequest, BlueprintData
from cloudcraft_client.query import add_options

BASE_URL = "https://api.cloudcraft.co"


def build_client(**kwargs):
    kwargs.setdefault("polling", PollingPolicy(interval=0))
    return CloudcraftClient(token="t", **kwargs)


# Request building ---------------------------------------------------------
def test_get_request_never_carries_body():
    request = build_request(ClientConfig(), "GET", "blueprint", {"ignored": True})

    assert request.body is None
    assert "Content-Type" not in request.headers
    assert request.url == "https://api.cloudcraft.co/blueprint"


def test_post_request_encodes_model_body():
    body = BlueprintCreateRequest(data=BlueprintData(name="prod", grid="standard"))

    request = build_request(ClientConfig(), "POST", "blueprint", body)

    assert request.headers["Content-Type"] == "application/json"
    assert json.loads(request.body) == {"data": {"grid": "standard", "name": "prod"}}


def test_put_with_none_body_is_empty():
    request = build_request(ClientConfig(), "PUT", "blueprint/abc")

    assert not request.body
    assert request.headers["Content-Type"] == "application/json"


def test_static_headers_are_added_not_replaced():
    config = ClientConfig(headers={"X-Trace": "static"})

    request = build_request(
        config, "GET", "user/me", headers={"X-Trace": "call", "Accept": "text/html"}
    )

    assert request.headers["X-Trace"] == "call, static"
    assert request.headers["Accept"] == "application/json"


def test_unserializable_body_raises():
    with pytest.raises(SerializationError):
        build_request(ClientConfig(), "POST", "blueprint", {"when": object()})


def test_unknown_method_rejected():
    with pytest.raises(ArgumentError):
        build_request(ClientConfig(), "TRACE", "blueprint")


def test_resolve_url_appends_to_base_path():
    assert (
        resolve_url("https://proxy.example.com/cloudcraft", "blueprint/abc")
        == "https://proxy.example.com/cloudcraft/blueprint/abc"
    )


def test_resolve_url_rejects_malformed_base():
    with pytest.raises(UrlParseError):
        resolve_url("https://[::1/", "blueprint")


@pytest.mark.parametrize("path", ["blueprint", "aws/account/iamParameters", "user/me?x=1"])
def test_merging_no_options_keeps_resolved_url(path):
    resolved = resolve_url(f"{BASE_URL}/", path)

    assert add_options(resolved, None) == resolved


# Error decoding -------------------------------------------------------------
def test_structured_error_body(requests_mock):
    client = build_client()
    requests_mock.get(
        f"{BASE_URL}/blueprint/xyz",
        status_code=404,
        json={"error": "not found", "code": 404},
    )

    with pytest.raises(ApiError) as excinfo:
        client.blueprints.get("xyz")

    error = excinfo.value
    assert error.message == "not found"
    assert error.code == 404
    assert error.status_code == 404
    assert str(error) == "GET https://api.cloudcraft.co/blueprint/xyz: 404 not found"


def test_plain_text_error_body(requests_mock):
    client = build_client()
    requests_mock.get(f"{BASE_URL}/user/me", status_code=500, text="internal error")

    with pytest.raises(ApiError) as excinfo:
        client.users.me()

    assert excinfo.value.message == "internal error"
    assert excinfo.value.code == 0


def test_json_error_with_wrong_shape_uses_raw_text(requests_mock):
    client = build_client()
    requests_mock.get(f"{BASE_URL}/user/me", status_code=400, text='{"error": 12}')

    with pytest.raises(ApiError) as excinfo:
        client.users.me()

    assert excinfo.value.message == '{"error": 12}'
    assert excinfo.value.code == 0


def test_plain_text_error_body_is_decoded_as_utf8(requests_mock):
    client = build_client()
    requests_mock.get(
        f"{BASE_URL}/user/me",
        status_code=500,
        content="Fehler: ungültig".encode("utf-8"),
        headers={"Content-Type": "text/plain"},
    )

    with pytest.raises(ApiError) as excinfo:
        client.users.me()

    assert excinfo.value.message == "Fehler: ungültig"
    assert excinfo.value.details == "Fehler: ungültig"


def test_empty_error_body(requests_mock):
    client = build_client()
    requests_mock.get(f"{BASE_URL}/user/me", status_code=503)

    with pytest.raises(ApiError) as excinfo:
        client.users.me()

    assert excinfo.value.message == ""
    assert str(excinfo.value) == "GET https://api.cloudcraft.co/user/me: 503 "


def test_api_error_exposes_rate_limit_headers(requests_mock):
    client = build_client()
    requests_mock.get(
        f"{BASE_URL}/blueprint",
        status_code=429,
        json={"error": "slow down", "code": 429},
        headers={"RateLimit-Limit": "100", "RateLimit-Remaining": "0", "RateLimit-Reset": "42"},
    )

    with pytest.raises(ApiError) as excinfo:
        client.blueprints.list()

    rate = excinfo.value.response.rate_limit
    assert (rate.limit, rate.remaining, rate.reset) == (100, 0, 42)


# Polling --------------------------------------------------------------------
def test_processing_status_is_polled_until_ready(requests_mock):
    client = build_client()
    matcher = requests_mock.get(
        f"{BASE_URL}/aws/account/a1/us-east-1/svg",
        [
            {"status_code": 202},
            {"status_code": 202},
            {"status_code": 200, "content": b"<svg/>", "headers": {"RateLimit-Remaining": "7"}},
        ],
    )

    response = client.do("GET", "aws/account/a1/us-east-1/svg", sink=RawBytes())

    assert matcher.call_count == 3
    assert response.status_code == 200
    assert response.rate_limit.remaining == 7
    assert response.data.getvalue() == b"<svg/>"


def test_polling_gives_up_after_max_attempts(requests_mock):
    client = build_client(polling=PollingPolicy(max_attempts=3, interval=0))
    matcher = requests_mock.get(f"{BASE_URL}/user/me", status_code=202)

    with pytest.raises(PollingTimeoutError) as excinfo:
        client.users.me()

    assert matcher.call_count == 3
    assert excinfo.value.attempts == 3
    assert excinfo.value.response.status_code == 202


def test_polling_sleeps_between_attempts(monkeypatch, requests_mock):
    delays: list[float] = []
    monkeypatch.setattr("cloudcraft_client.http.time.sleep", delays.append)
    client = build_client(polling=PollingPolicy(max_attempts=5, interval=2.5, max_wait=None))
    requests_mock.get(
        f"{BASE_URL}/user/me",
        [{"status_code": 202}, {"status_code": 200, "json": {"id": "u1"}}],
    )

    client.users.me()

    assert delays == [2.5]


def test_cancellation_is_checked_before_each_poll(requests_mock):
    client = build_client()
    cancel = threading.Event()

    def still_processing(request, context):
        cancel.set()
        return ""

    matcher = requests_mock.get(f"{BASE_URL}/user/me", status_code=202, text=still_processing)

    with pytest.raises(RequestCancelledError):
        client.users.me(context=RequestContext(cancel_event=cancel))

    assert matcher.call_count == 1


def test_expired_deadline_sends_nothing(requests_mock):
    client = build_client()

    with pytest.raises(RequestCancelledError):
        client.users.me(context=RequestContext.with_timeout(-1))

    assert not requests_mock.called


# Success decoding -----------------------------------------------------------
def test_success_without_sink_discards_body(requests_mock):
    client = build_client()
    requests_mock.delete(f"{BASE_URL}/blueprint/abc", status_code=204)

    response = client.blueprints.delete("abc")

    assert response.status_code == 204
    assert response.data is None


def test_raw_sink_streams_without_decoding(requests_mock):
    client = build_client()
    requests_mock.get(
        f"{BASE_URL}/blueprint/abc/png",
        content=b"\x89PNG{not json",
        headers={"Content-Type": "image/png"},
    )
    target = io.BytesIO()
    sink = RawBytes(target)

    client.do("GET", "blueprint/abc/png", sink=sink)

    assert target.getvalue() == b"\x89PNG{not json"
    assert sink.content_type == "image/png"
    assert sink.bytes_written == len(b"\x89PNG{not json")


def test_typed_sink_rejects_malformed_json(requests_mock):
    client = build_client()
    requests_mock.get(f"{BASE_URL}/user/me", text="<html>oops</html>")

    with pytest.raises(DecodeError):
        client.do("GET", "user/me", sink=Typed())


def test_typed_sink_rejects_wrong_shape(requests_mock):
    client = build_client()
    requests_mock.get(f"{BASE_URL}/blueprint", json={"unexpected": []})

    with pytest.raises(DecodeError):
        client.blueprints.list()


# Cleanup ----------------------------------------------------------------------
class RecordingRaw:
    def __init__(self, *, fail: bool = False) -> None:
        self.fail = fail
        self.reads: list[int] = []
        self.closed = False

    def read(self, amt=None, decode_content=None):
        self.reads.append(amt)
        if self.fail:
            raise OSError("connection reset")
        return b""

    def close(self):
        self.closed = True


def _response(raw, content_length=None):
    response = requests.Response()
    response.status_code = 200
    response.raw = raw
    if content_length is not None:
        response.headers["Content-Length"] = str(content_length)
    return response


def test_drain_reads_small_leftovers_before_closing():
    raw = RecordingRaw()

    drain_and_close(_response(raw, content_length=100))

    assert raw.reads == [MAX_BODY_SLURP]
    assert raw.closed


def test_drain_skips_large_known_bodies():
    raw = RecordingRaw()

    drain_and_close(_response(raw, content_length=10 * MAX_BODY_SLURP))

    assert raw.reads == []
    assert raw.closed


def test_drain_errors_are_ignored():
    raw = RecordingRaw(fail=True)

    drain_and_close(_response(raw))

    assert raw.reads == [MAX_BODY_SLURP]
    assert raw.closed

"""Unit tests for SMSGatewayClient."""
import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'backend'))

import base64
import json
import httpx
import pytest
from services.sms_gateway import RelayError, RelayResult, SMSGatewayClient

GATEWAY_URL = "https://sms.example.com/3rdparty/v1/message"


def _make_client(handler):
    return SMSGatewayClient(
        api_url=GATEWAY_URL,
        username="gateway_user",
        password="gateway_pass",
        http_client=httpx.Client(transport=httpx.MockTransport(handler)),
    )


def test_missing_credentials_raise_error():
    """Test that credentials are required."""
    with pytest.raises(ValueError, match="SMS_GATE_USERNAME and SMS_GATE_PASSWORD"):
        SMSGatewayClient(api_url=GATEWAY_URL, username="user", password=None)


def test_send_request_shape():
    """Test body, destination and basic-auth header."""
    captured = {}

    def handler(request):
        captured["request"] = request
        return httpx.Response(202, json={"id": "msg-1", "state": "Pending"})

    client = _make_client(handler)
    result = client.send("Hello there", "+15551234567")

    request = captured["request"]
    expected_auth = base64.b64encode(b"gateway_user:gateway_pass").decode()
    assert request.method == "POST"
    assert str(request.url) == GATEWAY_URL
    assert request.headers["Authorization"] == f"Basic {expected_auth}"
    assert json.loads(request.content) == {
        "textMessage": {"text": "Hello there"},
        "phoneNumbers": ["+15551234567"]
    }
    assert isinstance(result, RelayResult)
    assert result.status_code == 202
    assert json.loads(result.body) == {"id": "msg-1", "state": "Pending"}


def test_send_formats_text():
    """Test that the reply is sanitized before transmission."""
    captured = {}

    def handler(request):
        captured["payload"] = json.loads(request.content)
        return httpx.Response(200, text="ok")

    client = _make_client(handler)
    client.send('  **Sure!** Say "hi"\\nbye  ', "+15551234567")

    assert captured["payload"]["textMessage"]["text"] == "Sure! Say hi\nbye"


def test_gateway_rejection_is_returned_not_raised():
    """Test that a non-2xx answer comes back as a result."""
    client = _make_client(lambda request: httpx.Response(400, text="invalid phone number"))

    result = client.send("Hello", "not-a-number")

    assert result.status_code == 400
    assert result.body == "invalid phone number"


def test_transport_failure_raises_relay_error():
    """Test that an unreachable gateway raises RelayError."""
    def handler(request):
        raise httpx.ConnectError("name resolution failed", request=request)

    client = _make_client(handler)

    with pytest.raises(RelayError) as exc_info:
        client.send("Hello", "+15551234567")

    assert "name resolution failed" in exc_info.value.detail


def test_timeout_raises_relay_error():
    """Test that a gateway timeout raises RelayError."""
    def handler(request):
        raise httpx.ConnectTimeout("timed out", request=request)

    client = _make_client(handler)

    with pytest.raises(RelayError):
        client.send("Hello", "+15551234567")

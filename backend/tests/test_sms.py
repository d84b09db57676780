import httpx
import pytest

from couponapp.core.errors import SmsDispatchError
from couponapp.services.sms import TwilioSmsDispatcher


def _dispatcher(handler, **kw):
    client = httpx.Client(transport=httpx.MockTransport(handler))
    params = dict(account_sid="AC123", auth_token="secret", from_number="+15550009999")
    params.update(kw)
    return TwilioSmsDispatcher(client=client, **params)


def test_sends_code_to_twilio():
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["body"] = request.content.decode()
        seen["auth"] = request.headers.get("authorization")
        return httpx.Response(201, json={"sid": "SM42"})

    ack = _dispatcher(handler).send("+15551112222", "123456")
    assert ack.message_id == "SM42"
    assert seen["url"] == "https://api.twilio.com/2010-04-01/Accounts/AC123/Messages.json"
    assert "To=%2B15551112222" in seen["body"]
    assert "123456" in seen["body"]
    assert seen["auth"].startswith("Basic ")


def test_provider_error_carries_code():
    def handler(request):
        return httpx.Response(400, json={"code": 21608, "message": "Unverified number", "status": 400})

    with pytest.raises(SmsDispatchError) as exc:
        _dispatcher(handler).send("+15551112222", "123456")
    assert exc.value.provider_code == 21608


def test_network_error():
    def handler(request):
        raise httpx.ConnectError("down", request=request)

    with pytest.raises(SmsDispatchError):
        _dispatcher(handler).send("+15551112222", "123456")


def test_unconfigured_does_not_call_out():
    def handler(request):
        raise AssertionError("no request expected")

    with pytest.raises(SmsDispatchError):
        _dispatcher(handler, auth_token="").send("+15551112222", "123456")

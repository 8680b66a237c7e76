"""
Email function client — request shape, auth header and error mapping.

Run:
    pytest tests/test_email_functions.py -v --tb=short
"""

import json

import httpx
import pytest

from core.errors import RemoteFunctionError
from modules.email_marketing.functions import EmailFunctionClient


def _recording(status=200, body=None):
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(status, json=body if body is not None else {"ok": True})

    return calls, handler


def _client(handler, api_key="fn-key"):
    return EmailFunctionClient("https://functions.test/v1/", api_key=api_key,
                               transport=httpx.MockTransport(handler))


class TestRequests:
    def test_trigger_campaign(self):
        calls, handler = _recording(body={"queued": 12})
        assert _client(handler).trigger_campaign(7) == {"queued": 12}
        request = calls[0]
        assert request.method == "POST"
        assert str(request.url) == "https://functions.test/v1/trigger-email-campaign"
        assert request.headers["Authorization"] == "Bearer fn-key"
        assert json.loads(request.content) == {"action": "trigger", "campaignId": 7}

    def test_process_omits_unset_filters(self):
        calls, handler = _recording()
        _client(handler).process()
        assert json.loads(calls[0].content) == {"action": "process"}
        assert str(calls[0].url).endswith("/process-email-sequences")

    def test_process_with_filters(self):
        calls, handler = _recording()
        _client(handler).process(sequence_id=2, customer_id=5, force=True)
        assert json.loads(calls[0].content) == {
            "action": "process", "sequenceId": 2, "customerId": 5, "force": True,
        }

    def test_process_enrollment_and_health(self):
        calls, handler = _recording()
        client = _client(handler)
        client.process_enrollment(9, force=True)
        client.health_check()
        bodies = [json.loads(c.content) for c in calls]
        assert bodies == [
            {"action": "process_enrollment", "enrollmentId": 9, "force": True},
            {"action": "health_check"},
        ]

    def test_no_api_key_no_auth_header(self):
        calls, handler = _recording()
        _client(handler, api_key=None).health_check()
        assert "Authorization" not in calls[0].headers

    def test_empty_reply(self):
        client = _client(lambda request: httpx.Response(204))
        assert client.health_check() == {}


class TestErrors:
    def test_not_configured(self):
        client = EmailFunctionClient(None)
        assert not client.configured
        with pytest.raises(RemoteFunctionError) as exc:
            client.health_check()
        assert exc.value.details == {"functions_url": "not set"}

    def test_error_status_uses_error_message(self):
        _, handler = _recording(status=400, body={"error": "campaign has no recipients"})
        with pytest.raises(RemoteFunctionError) as exc:
            _client(handler).trigger_campaign(1)
        assert exc.value.message == "campaign has no recipients"
        assert exc.value.status_code == 502
        assert exc.value.details["status"] == "400"

    def test_error_status_without_body(self):
        client = _client(lambda request: httpx.Response(503, text="unavailable"))
        with pytest.raises(RemoteFunctionError) as exc:
            client.health_check()
        assert "503" in exc.value.message

    def test_error_in_ok_body(self):
        _, handler = _recording(body={"error": "sequence 3 is inactive"})
        with pytest.raises(RemoteFunctionError) as exc:
            _client(handler).process(sequence_id=3)
        assert exc.value.message == "sequence 3 is inactive"

    def test_transport_failure(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(RemoteFunctionError) as exc:
            _client(handler).health_check()
        assert exc.value.details == {"function": "process-email-sequences"}

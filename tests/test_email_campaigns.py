"""
Email campaigns — analytics, editing rules, A/B persistence and triggering.

Remote functions are replaced by an httpx.MockTransport.

Run:
    pytest tests/test_email_campaigns.py -v --tb=short
"""

import json
from types import SimpleNamespace

import httpx
import pytest

from core.base import CampaignStatus
from core.errors import RemoteFunctionError, ValidationError
from modules.email_marketing.campaigns import CampaignService, campaign_analytics
from modules.email_marketing.dependencies import get_function_client
from modules.email_marketing.functions import EmailFunctionClient


def _client(handler):
    return EmailFunctionClient("https://functions.test/v1", api_key="fn-key",
                               transport=httpx.MockTransport(handler))


@pytest.fixture()
def calls():
    return []


@pytest.fixture()
def ok_client(calls):
    def handler(request):
        calls.append(request)
        return httpx.Response(200, json={"queued": 3})
    return _client(handler)


@pytest.fixture()
def failing_client():
    return _client(lambda request: httpx.Response(500, json={"error": "mail provider down"}))


@pytest.fixture()
def service(db, bus):
    return CampaignService(db, bus=bus)


@pytest.fixture()
def campaign(service):
    return service.create({"name": "Spring Sale", "subject": "Save 20%", "content": "<p>Deals</p>"})


class TestAnalytics:
    def test_rates(self):
        campaign = SimpleNamespace(total_recipients=200, delivered=180, opened=90, clicked=27,
                                   bounced=20, unsubscribed=9)
        stats = campaign_analytics(campaign)
        assert stats["open_rate"] == 50.0
        assert stats["click_rate"] == 15.0
        assert stats["click_to_open_rate"] == 30.0
        assert stats["bounce_rate"] == 10.0
        assert stats["unsubscribe_rate"] == 5.0

    def test_rounded_to_two_places(self):
        campaign = SimpleNamespace(total_recipients=3, delivered=3, opened=1, clicked=0,
                                   bounced=0, unsubscribed=0)
        assert campaign_analytics(campaign)["open_rate"] == 33.33

    def test_zero_denominators(self):
        campaign = SimpleNamespace(total_recipients=0, delivered=None, opened=0, clicked=0,
                                   bounced=0, unsubscribed=0)
        stats = campaign_analytics(campaign)
        assert stats["open_rate"] == 0.0
        assert stats["click_to_open_rate"] == 0.0
        assert stats["bounce_rate"] == 0.0

    def test_recorded_stats(self, service, campaign):
        service.record_stats(campaign.id, {"total_recipients": 10, "delivered": 10, "opened": 4})
        assert service.analytics(campaign.id)["open_rate"] == 40.0


class TestEditing:
    def test_scheduled_at_implies_scheduled(self, service):
        from datetime import datetime
        campaign = service.create({"name": "Later", "scheduled_at": datetime(2030, 1, 1)})
        assert campaign.status == CampaignStatus.SCHEDULED

    def test_sent_campaign_is_locked(self, service, campaign):
        service.update(campaign.id, {"status": CampaignStatus.SENT})
        with pytest.raises(ValidationError):
            service.update(campaign.id, {"subject": "Too late"})
        assert service.update(campaign.id, {"status": CampaignStatus.CANCELLED}).status == CampaignStatus.CANCELLED

    def test_invalid_ab_test_rejected(self, service):
        bad = {"variants": [{"id": "a", "recipient_percentage": 70}, {"id": "b", "recipient_percentage": 20}]}
        with pytest.raises(ValidationError):
            service.create({"name": "Bad split", "ab_test": bad})


class TestABPersistence:
    def test_enable_uses_campaign_copy(self, service, campaign):
        campaign = service.enable_ab_test(campaign.id)
        variants = campaign.ab_test["variants"]
        assert [v["recipient_percentage"] for v in variants] == [50, 50]
        assert variants[0]["subject"] == "Save 20%"

    def test_variants_and_split_are_saved(self, service, campaign):
        service.enable_ab_test(campaign.id)
        service.add_variant(campaign.id, subject="Last chance")
        campaign = service.rebalance(campaign.id, 2, 50)
        shares = [v["recipient_percentage"] for v in campaign.ab_test["variants"]]
        assert shares[2] == 50
        assert sum(shares) == 100

    def test_remove_variant(self, service, campaign):
        campaign = service.enable_ab_test(campaign.id)
        campaign = service.add_variant(campaign.id)
        variant_id = campaign.ab_test["variants"][0]["id"]
        campaign = service.remove_variant(campaign.id, variant_id)
        assert len(campaign.ab_test["variants"]) == 2

    def test_winner_is_persisted(self, db, service, campaign):
        campaign = service.enable_ab_test(campaign.id)
        test = dict(campaign.ab_test)
        test["variants"] = [dict(v) for v in test["variants"]]
        test["variants"][1].update(recipients=10, opened=6)
        test["variants"][0].update(recipients=10, opened=2)
        service.update(campaign.id, {"ab_test": test})

        service.select_winner(campaign.id)
        db.expire_all()
        stored = service.get(campaign.id).ab_test
        assert stored["winner_id"] == test["variants"][1]["id"]
        assert stored["winner_selection_date"]

    def test_variant_ops_need_a_test(self, service, campaign):
        with pytest.raises(ValidationError):
            service.add_variant(campaign.id)


class TestTrigger:
    def test_sends_and_marks_sending(self, service, campaign, ok_client, calls, events):
        result = service.trigger(campaign.id, ok_client)
        assert result == {"queued": 3}
        request = calls[0]
        assert str(request.url) == "https://functions.test/v1/trigger-email-campaign"
        assert request.headers["Authorization"] == "Bearer fn-key"
        assert json.loads(request.content) == {"action": "trigger", "campaignId": campaign.id}

        campaign = service.get(campaign.id)
        assert campaign.status == CampaignStatus.SENDING
        assert campaign.sent_at is not None
        assert events[-1].event_type == "email.campaign_triggered"
        assert events[-1].data == {"campaign_id": campaign.id}

    def test_failed_function_leaves_status(self, service, campaign, failing_client, events):
        with pytest.raises(RemoteFunctionError) as exc:
            service.trigger(campaign.id, failing_client)
        assert exc.value.message == "mail provider down"
        assert service.get(campaign.id).status == CampaignStatus.DRAFT
        assert events == []

    def test_only_draft_or_scheduled(self, service, campaign, ok_client, calls):
        service.update(campaign.id, {"status": CampaignStatus.SENT})
        with pytest.raises(ValidationError):
            service.trigger(campaign.id, ok_client)
        assert calls == []


class TestRoutes:
    def test_send_route(self, app, client, operator, ok_client):
        app.dependency_overrides[get_function_client] = lambda: ok_client
        created = client.post("/api/email/campaigns", json={"name": "Spring"}, headers=operator).json()
        r = client.post(f"/api/email/campaigns/{created['id']}/send", headers=operator)
        assert r.status_code == 200, r.text
        assert r.json() == {"campaign_id": created["id"], "status": "sending", "result": {"queued": 3}}

    def test_send_route_remote_failure(self, app, client, operator, failing_client):
        app.dependency_overrides[get_function_client] = lambda: failing_client
        created = client.post("/api/email/campaigns", json={"name": "Spring"}, headers=operator).json()
        r = client.post(f"/api/email/campaigns/{created['id']}/send", headers=operator)
        assert r.status_code == 502
        assert r.json()["code"] == "REMOTE_FUNCTION_ERROR"

    def test_ab_routes(self, client, operator, viewer):
        created = client.post("/api/email/campaigns", json={"name": "Spring", "subject": "Hi"},
                              headers=operator).json()
        cid = created["id"]
        r = client.post(f"/api/email/campaigns/{cid}/ab-test", headers=operator)
        assert len(r.json()["ab_test"]["variants"]) == 2
        r = client.post(f"/api/email/campaigns/{cid}/ab-test/variants", json={"subject": "Hey"}, headers=operator)
        assert len(r.json()["ab_test"]["variants"]) == 3
        r = client.patch(f"/api/email/campaigns/{cid}/ab-test/split", json={"index": 0, "value": 60},
                         headers=operator)
        assert [v["recipient_percentage"] for v in r.json()["ab_test"]["variants"]][0] == 60
        r = client.get(f"/api/email/campaigns/{cid}/analytics", headers=viewer)
        assert r.json()["open_rate"] == 0.0

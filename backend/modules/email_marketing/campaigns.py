"""
modules/email_marketing/campaigns.py — Campaign service: CRUD, analytics,
A/B test editing, winner selection and remote trigger.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.orm import Session

from core.base import CampaignStatus
from core.db_utils import store_operation
from core.errors import NotFoundError, ValidationError
from core.event_bus import get_event_bus, publish
from core.events import CAMPAIGN_TRIGGERED
from modules.email_marketing import ab_testing
from modules.email_marketing.functions import EmailFunctionClient
from modules.email_marketing.models import EmailCampaign

log = logging.getLogger("shop.email")

TRIGGERABLE = (CampaignStatus.DRAFT, CampaignStatus.SCHEDULED)
COUNTERS = ("total_recipients", "delivered", "opened", "clicked", "bounced", "unsubscribed")


def _pct(part: int, whole: int) -> float:
    if not whole:
        return 0.0
    return round(part / whole * 100, 2)


def campaign_analytics(campaign: EmailCampaign) -> dict:
    """Rates as percentages; every rate is 0 when its denominator is 0."""
    sent = campaign.total_recipients or 0
    delivered = campaign.delivered or 0
    opened = campaign.opened or 0
    clicked = campaign.clicked or 0
    bounced = campaign.bounced or 0
    unsubscribed = campaign.unsubscribed or 0
    return {
        "sent": sent,
        "delivered": delivered,
        "opened": opened,
        "clicked": clicked,
        "bounced": bounced,
        "unsubscribed": unsubscribed,
        "open_rate": _pct(opened, delivered),
        "click_rate": _pct(clicked, delivered),
        "click_to_open_rate": _pct(clicked, opened),
        "bounce_rate": _pct(bounced, sent),
        "unsubscribe_rate": _pct(unsubscribed, delivered),
    }


def _ab_test_dict(value) -> Optional[dict]:
    if value is None:
        return None
    if hasattr(value, "model_dump"):
        return value.model_dump(mode="json")
    return dict(value)


class CampaignService:

    def __init__(self, db: Session, bus=None):
        self.db = db
        self.bus = bus or get_event_bus()

    def list(self, status: Optional[str] = None) -> list[EmailCampaign]:
        query = self.db.query(EmailCampaign)
        if status:
            query = query.filter(EmailCampaign.status == status)
        return query.order_by(EmailCampaign.created_at.desc(), EmailCampaign.id.desc()).all()

    def get(self, campaign_id: int) -> EmailCampaign:
        campaign = self.db.query(EmailCampaign).filter(EmailCampaign.id == campaign_id).first()
        if not campaign:
            raise NotFoundError("Campaign", campaign_id)
        return campaign

    def create(self, values: dict) -> EmailCampaign:
        values = dict(values)
        if values.get("ab_test") is not None:
            values["ab_test"] = _ab_test_dict(values["ab_test"])
            ab_testing.validate_test(values["ab_test"])
        if values.get("scheduled_at") and not values.get("status"):
            values["status"] = CampaignStatus.SCHEDULED
        campaign = EmailCampaign(**values)
        with store_operation(self.db, "create campaign", "campaign", None):
            self.db.add(campaign)
        self.db.refresh(campaign)
        log.info(f"Created campaign {campaign.id} ({campaign.name})")
        return campaign

    def update(self, campaign_id: int, values: dict) -> EmailCampaign:
        campaign = self.get(campaign_id)
        if campaign.status == CampaignStatus.SENT and set(values) - {"status"}:
            raise ValidationError("A sent campaign can no longer be edited",
                                  details={"status": "sent"})
        values = dict(values)
        if "ab_test" in values and values["ab_test"] is not None:
            values["ab_test"] = _ab_test_dict(values["ab_test"])
            ab_testing.validate_test(values["ab_test"])
        with store_operation(self.db, "update campaign", "campaign", campaign_id):
            for key, value in values.items():
                setattr(campaign, key, value)
        self.db.refresh(campaign)
        return campaign

    def delete(self, campaign_id: int) -> None:
        campaign = self.get(campaign_id)
        with store_operation(self.db, "delete campaign", "campaign", campaign_id):
            self.db.delete(campaign)
        log.info(f"Deleted campaign {campaign_id}")

    def record_stats(self, campaign_id: int, counters: dict) -> EmailCampaign:
        campaign = self.get(campaign_id)
        with store_operation(self.db, "record campaign stats", "campaign", campaign_id):
            for key in COUNTERS:
                if counters.get(key) is not None:
                    setattr(campaign, key, counters[key])
        self.db.refresh(campaign)
        return campaign

    def analytics(self, campaign_id: int) -> dict:
        return campaign_analytics(self.get(campaign_id))

    # -------------- A/B testing --------------

    def _save_test(self, campaign: EmailCampaign, test: dict, action: str) -> EmailCampaign:
        with store_operation(self.db, action, "campaign", campaign.id):
            campaign.ab_test = test
        self.db.refresh(campaign)
        return campaign

    def _test(self, campaign: EmailCampaign) -> dict:
        if not campaign.ab_test:
            raise ValidationError("Campaign has no A/B test", details={"ab_test": "not configured"})
        return campaign.ab_test

    def enable_ab_test(self, campaign_id: int) -> EmailCampaign:
        campaign = self.get(campaign_id)
        if campaign.ab_test:
            test = dict(campaign.ab_test, enabled=True)
        else:
            test = ab_testing.default_test(campaign.subject or "", campaign.content or "")
        return self._save_test(campaign, test, "enable A/B test")

    def add_variant(self, campaign_id: int, subject: Optional[str] = None,
                    content: Optional[str] = None) -> EmailCampaign:
        campaign = self.get(campaign_id)
        test = ab_testing.add_variant(self._test(campaign), subject, content)
        return self._save_test(campaign, test, "add A/B variant")

    def duplicate_variant(self, campaign_id: int, variant_id: str) -> EmailCampaign:
        campaign = self.get(campaign_id)
        test = ab_testing.duplicate_variant(self._test(campaign), variant_id)
        return self._save_test(campaign, test, "duplicate A/B variant")

    def remove_variant(self, campaign_id: int, variant_id: str) -> EmailCampaign:
        campaign = self.get(campaign_id)
        test = ab_testing.remove_variant(self._test(campaign), variant_id)
        return self._save_test(campaign, test, "remove A/B variant")

    def rebalance(self, campaign_id: int, index: int, value: int) -> EmailCampaign:
        campaign = self.get(campaign_id)
        test = dict(self._test(campaign))
        test["variants"] = ab_testing.rebalance_percentages(test.get("variants") or [], index, value)
        return self._save_test(campaign, test, "rebalance A/B split")

    def select_winner(self, campaign_id: int) -> EmailCampaign:
        """Pick and persist the winning variant."""
        campaign = self.get(campaign_id)
        test = ab_testing.apply_winner(self._test(campaign))
        log.info(f"Campaign {campaign_id}: A/B winner {test['winner_id']} by {test.get('winner_criteria')}")
        return self._save_test(campaign, test, "select A/B winner")

    # -------------- Sending --------------

    def trigger(self, campaign_id: int, client: EmailFunctionClient) -> dict:
        """Hand the campaign to trigger-email-campaign and mark it sending.

        The status only changes once the function accepted the request.
        """
        campaign = self.get(campaign_id)
        if campaign.status not in TRIGGERABLE:
            raise ValidationError(
                f"Campaign {campaign_id} is {campaign.status.value}",
                details={"status": "only draft or scheduled campaigns can be sent"},
            )
        result = client.trigger_campaign(campaign_id)
        with store_operation(self.db, "mark campaign sending", "campaign", campaign_id):
            campaign.status = CampaignStatus.SENDING
            campaign.sent_at = datetime.now(timezone.utc)
        publish(self.bus, CAMPAIGN_TRIGGERED, "email_marketing", campaign_id=campaign_id)
        return result

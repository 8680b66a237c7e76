"""ShopDesk — Email campaigns, analytics, A/B tests and sending."""

from fastapi import APIRouter, Depends
from typing import Optional

from core.base import CampaignStatus
from core.rbac import require_role
from core.schemas import case_param, render
from modules.email_marketing.campaigns import CampaignService
from modules.email_marketing.dependencies import get_campaign_service, get_function_client
from modules.email_marketing.functions import EmailFunctionClient
from modules.email_marketing.schemas import (
    CampaignAnalytics, CampaignCreate, CampaignResponse, CampaignStats, CampaignUpdate,
    Rebalance, VariantCreate,
)

router = APIRouter(prefix="/email/campaigns", tags=["Email Campaigns"])


def _out(campaign, case: str):
    return render(CampaignResponse.model_validate(campaign), case)


@router.get("")
def list_campaigns(
    status: Optional[CampaignStatus] = None,
    case: str = Depends(case_param),
    current_user: dict = Depends(require_role("viewer")),
    service: CampaignService = Depends(get_campaign_service),
):
    return render([CampaignResponse.model_validate(c) for c in service.list(status)], case)


@router.post("", status_code=201)
def create_campaign(
    data: CampaignCreate,
    case: str = Depends(case_param),
    current_user: dict = Depends(require_role("operator")),
    service: CampaignService = Depends(get_campaign_service),
):
    values = data.model_dump(exclude={"ab_test"})
    values["ab_test"] = data.ab_test
    return _out(service.create(values), case)


@router.get("/{campaign_id}")
def get_campaign(
    campaign_id: int,
    case: str = Depends(case_param),
    current_user: dict = Depends(require_role("viewer")),
    service: CampaignService = Depends(get_campaign_service),
):
    return _out(service.get(campaign_id), case)


@router.patch("/{campaign_id}")
def update_campaign(
    campaign_id: int,
    updates: CampaignUpdate,
    case: str = Depends(case_param),
    current_user: dict = Depends(require_role("operator")),
    service: CampaignService = Depends(get_campaign_service),
):
    values = updates.model_dump(exclude_unset=True, exclude={"ab_test"})
    if "ab_test" in updates.model_fields_set:
        values["ab_test"] = updates.ab_test
    return _out(service.update(campaign_id, values), case)


@router.delete("/{campaign_id}", status_code=204)
def delete_campaign(
    campaign_id: int,
    current_user: dict = Depends(require_role("operator")),
    service: CampaignService = Depends(get_campaign_service),
):
    service.delete(campaign_id)


@router.get("/{campaign_id}/analytics")
def campaign_analytics(
    campaign_id: int,
    case: str = Depends(case_param),
    current_user: dict = Depends(require_role("viewer")),
    service: CampaignService = Depends(get_campaign_service),
):
    return render(CampaignAnalytics(**service.analytics(campaign_id)), case)


@router.put("/{campaign_id}/stats")
def record_campaign_stats(
    campaign_id: int,
    stats: CampaignStats,
    case: str = Depends(case_param),
    current_user: dict = Depends(require_role("operator")),
    service: CampaignService = Depends(get_campaign_service),
):
    """Write back delivery counters reported by the sending function."""
    return _out(service.record_stats(campaign_id, stats.model_dump(exclude_unset=True)), case)


@router.post("/{campaign_id}/send")
def send_campaign(
    campaign_id: int,
    current_user: dict = Depends(require_role("operator")),
    service: CampaignService = Depends(get_campaign_service),
    client: EmailFunctionClient = Depends(get_function_client),
):
    result = service.trigger(campaign_id, client)
    return {"campaign_id": campaign_id, "status": CampaignStatus.SENDING.value, "result": result}


# -------------- A/B testing --------------

@router.post("/{campaign_id}/ab-test")
def enable_ab_test(
    campaign_id: int,
    case: str = Depends(case_param),
    current_user: dict = Depends(require_role("operator")),
    service: CampaignService = Depends(get_campaign_service),
):
    """Turn on A/B testing; a fresh test starts with two 50/50 variants."""
    return _out(service.enable_ab_test(campaign_id), case)


@router.post("/{campaign_id}/ab-test/variants", status_code=201)
def add_variant(
    campaign_id: int,
    data: VariantCreate,
    case: str = Depends(case_param),
    current_user: dict = Depends(require_role("operator")),
    service: CampaignService = Depends(get_campaign_service),
):
    return _out(service.add_variant(campaign_id, data.subject, data.content), case)


@router.post("/{campaign_id}/ab-test/variants/{variant_id}/duplicate", status_code=201)
def duplicate_variant(
    campaign_id: int,
    variant_id: str,
    case: str = Depends(case_param),
    current_user: dict = Depends(require_role("operator")),
    service: CampaignService = Depends(get_campaign_service),
):
    return _out(service.duplicate_variant(campaign_id, variant_id), case)


@router.delete("/{campaign_id}/ab-test/variants/{variant_id}")
def remove_variant(
    campaign_id: int,
    variant_id: str,
    case: str = Depends(case_param),
    current_user: dict = Depends(require_role("operator")),
    service: CampaignService = Depends(get_campaign_service),
):
    return _out(service.remove_variant(campaign_id, variant_id), case)


@router.patch("/{campaign_id}/ab-test/split")
def rebalance_split(
    campaign_id: int,
    data: Rebalance,
    case: str = Depends(case_param),
    current_user: dict = Depends(require_role("operator")),
    service: CampaignService = Depends(get_campaign_service),
):
    """Set one variant's recipient share; the others absorb the difference."""
    return _out(service.rebalance(campaign_id, data.index, data.value), case)


@router.post("/{campaign_id}/ab-test/winner")
def select_winner(
    campaign_id: int,
    case: str = Depends(case_param),
    current_user: dict = Depends(require_role("operator")),
    service: CampaignService = Depends(get_campaign_service),
):
    return _out(service.select_winner(campaign_id), case)

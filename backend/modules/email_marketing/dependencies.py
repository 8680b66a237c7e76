"""
modules/email_marketing/dependencies.py — FastAPI providers for email services.
"""

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from core.db import get_db
from core.errors import RemoteFunctionError
from modules.email_marketing.campaigns import CampaignService
from modules.email_marketing.functions import EmailFunctionClient
from modules.email_marketing.sequences import SequenceService


def get_campaign_service(db: Session = Depends(get_db)) -> CampaignService:
    return CampaignService(db)


def get_sequence_service(db: Session = Depends(get_db)) -> SequenceService:
    return SequenceService(db)


def get_function_client(request: Request) -> EmailFunctionClient:
    """The EmailFunctionClient registered at startup."""
    client = request.app.state.registry.get_provider("EmailFunctionClient")
    if client is None:
        raise RemoteFunctionError("Email function client is not available",
                                  details={"provider": "EmailFunctionClient"})
    return client

"""ShopDesk — Email templates."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import Optional

from core.db import get_db
from core.errors import NotFoundError
from core.rbac import require_role
from core.schemas import case_param, render
from modules.email_marketing.models import EmailTemplate
from modules.email_marketing.schemas import TemplateCreate, TemplateResponse, TemplateUpdate

router = APIRouter(prefix="/email/templates", tags=["Email Templates"])


def _get(db: Session, template_id: int) -> EmailTemplate:
    template = db.query(EmailTemplate).filter(EmailTemplate.id == template_id).first()
    if not template:
        raise NotFoundError("Template", template_id)
    return template


@router.get("")
def list_templates(
    category: Optional[str] = None,
    include_archived: bool = False,
    case: str = Depends(case_param),
    current_user: dict = Depends(require_role("viewer")),
    db: Session = Depends(get_db),
):
    query = db.query(EmailTemplate)
    if category:
        query = query.filter(EmailTemplate.category == category)
    if not include_archived:
        query = query.filter(EmailTemplate.is_archived.is_(False))
    templates = query.order_by(EmailTemplate.name).all()
    return render([TemplateResponse.model_validate(t) for t in templates], case)


@router.post("", status_code=201)
def create_template(
    data: TemplateCreate,
    case: str = Depends(case_param),
    current_user: dict = Depends(require_role("operator")),
    db: Session = Depends(get_db),
):
    template = EmailTemplate(**data.model_dump(mode="json"))
    db.add(template)
    db.commit()
    db.refresh(template)
    return render(TemplateResponse.model_validate(template), case)


@router.get("/{template_id}")
def get_template(
    template_id: int,
    case: str = Depends(case_param),
    current_user: dict = Depends(require_role("viewer")),
    db: Session = Depends(get_db),
):
    return render(TemplateResponse.model_validate(_get(db, template_id)), case)


@router.patch("/{template_id}")
def update_template(
    template_id: int,
    updates: TemplateUpdate,
    case: str = Depends(case_param),
    current_user: dict = Depends(require_role("operator")),
    db: Session = Depends(get_db),
):
    template = _get(db, template_id)
    for key, value in updates.model_dump(mode="json", exclude_unset=True).items():
        setattr(template, key, value)
    db.commit()
    db.refresh(template)
    return render(TemplateResponse.model_validate(template), case)


@router.post("/{template_id}/duplicate", status_code=201)
def duplicate_template(
    template_id: int,
    case: str = Depends(case_param),
    current_user: dict = Depends(require_role("operator")),
    db: Session = Depends(get_db),
):
    source = _get(db, template_id)
    copy = EmailTemplate(
        name=f"{source.name} (Copy)",
        subject=source.subject,
        description=source.description,
        category=source.category,
        content=source.content,
        variables=list(source.variables or []),
    )
    db.add(copy)
    db.commit()
    db.refresh(copy)
    return render(TemplateResponse.model_validate(copy), case)


@router.delete("/{template_id}", status_code=204)
def delete_template(
    template_id: int,
    current_user: dict = Depends(require_role("operator")),
    db: Session = Depends(get_db),
):
    db.delete(_get(db, template_id))
    db.commit()

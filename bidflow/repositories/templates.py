# bidflow/repositories/templates.py
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from bidflow.core.errors import TemplateNotFound
from bidflow.core.logging_config import logger
from bidflow.models.proposal_template import ProposalTemplate
from bidflow.models.quote import Quote
from bidflow.proposals.renderer import render_proposal
from bidflow.repositories.settings import get_company_settings
from bidflow.schemas.quote import TemplateCreate, TemplateUpdate
from bidflow.services.activity import QUOTE, record_activity


def create_template(db: Session, data: TemplateCreate) -> ProposalTemplate:
    tpl = ProposalTemplate(
        name=data.name,
        body=data.body,
        service_type=data.service_type,
        is_active=data.is_active,
    )
    db.add(tpl)
    db.commit()
    db.refresh(tpl)
    return tpl


def get_template(db: Session, template_id: str) -> Optional[ProposalTemplate]:
    return db.query(ProposalTemplate).filter(ProposalTemplate.id == template_id).first()


def require_template(db: Session, template_id: str) -> ProposalTemplate:
    tpl = get_template(db, template_id)
    if tpl is None:
        raise TemplateNotFound(f"template {template_id} not found", template_id=template_id)
    return tpl


def update_template(db: Session, template_id: str, data: TemplateUpdate) -> ProposalTemplate:
    """
    Edits the template only. Quotes keep the text they were rendered with
    until the template is applied again.
    """
    tpl = require_template(db, template_id)
    for key, value in data.model_dump(exclude_unset=True).items():
        setattr(tpl, key, value)
    db.commit()
    db.refresh(tpl)
    return tpl


def list_templates(
    db: Session, active_only: bool = False, service_type: Optional[str] = None
) -> List[ProposalTemplate]:
    q = db.query(ProposalTemplate)
    if active_only:
        q = q.filter(ProposalTemplate.is_active.is_(True))
    if service_type:
        q = q.filter(ProposalTemplate.service_type == service_type)
    return q.order_by(ProposalTemplate.name.asc()).all()


def render_for_quote(
    db: Session, quote: Quote, template: ProposalTemplate, now: Optional[datetime] = None
) -> str:
    return render_proposal(
        template.body,
        quote,
        quote.client,
        quote.items,
        settings=get_company_settings(db),
        now=now,
    )


def refresh_template_snapshot(db: Session, quote: Quote, now: Optional[datetime] = None) -> bool:
    """
    Re-render the stored proposal text after a pricing change.
    No-op when no template is attached or it was deleted. Does not commit.
    """
    if not quote.template_id:
        return False
    tpl = get_template(db, quote.template_id)
    if tpl is None:
        return False
    quote.template_snapshot = render_for_quote(db, quote, tpl, now=now)
    return True


def apply_template(
    db: Session,
    quote: Quote,
    template: ProposalTemplate,
    actor: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Quote:
    quote.template_id = template.id
    quote.template_snapshot = render_for_quote(db, quote, template, now=now)
    record_activity(
        db,
        QUOTE,
        quote.id,
        "template_applied",
        payload={"template_id": template.id, "template_name": template.name},
        actor=actor,
        now=now,
    )
    db.commit()
    db.refresh(quote)

    logger.bind(quote_id=quote.id).info("template_applied", template_id=template.id)
    return quote

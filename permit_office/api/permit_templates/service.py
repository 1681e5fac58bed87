import logging
from datetime import date
from typing import Any, Dict, List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from permit_office.api.permits.schemas import PermitResponse
from permit_office.auth.park_access import ensure_access, filter_by_access
from permit_office.auth.schemas import CurrentUser
from permit_office.core.enums import PermitStatus
from permit_office.core.exceptions import not_found
from permit_office.core.identifiers import TEMPLATE_KIND, commit_with_identifier_retry, generate_identifier, year_prefix
from permit_office.core.models import Park, Permit

from .schemas import PermitTemplateForm

logger = logging.getLogger(__name__)

# Templates are stored as permits; these fill the permittee columns
PLACEHOLDER_PERMITTEE_NAME = "Template Permittee"
PLACEHOLDER_PERMITTEE_EMAIL = "template@parkspass.org"


def _form_columns(form: PermitTemplateForm) -> Dict[str, Any]:
    first = form.locations[0] if form.locations else None
    description = first.description if first else None
    return {
        "permit_type": form.name or "Unnamed Template",
        "park_id": form.park_id,
        "location": (first.name if first and first.name else None) or "No location specified",
        "activity": description or "General Activity",
        "description": description,
        "template_data": form.model_dump(by_alias=True, mode="json"),
    }


async def _get_template(db: AsyncSession, template_id: int) -> Permit:
    template = await db.get(Permit, template_id)
    if not template or not template.is_template:
        raise not_found("Template")
    return template


async def _check_park(db: AsyncSession, current_user: CurrentUser, park_id: int) -> None:
    if not await db.get(Park, park_id):
        raise not_found("Park")
    await ensure_access(db, current_user, park_id, "Access denied to this park")


async def list_templates(db: AsyncSession, current_user: CurrentUser) -> List[PermitResponse]:
    result = await db.execute(select(Permit).where(Permit.is_template.is_(True)).order_by(Permit.id))
    templates = await filter_by_access(db, current_user, result.scalars().all())
    return [PermitResponse.model_validate(t) for t in templates]


async def get_template(db: AsyncSession, current_user: CurrentUser, template_id: int) -> PermitResponse:
    template = await _get_template(db, template_id)
    await ensure_access(db, current_user, template.park_id)
    return PermitResponse.model_validate(template)


async def create_template(db: AsyncSession, current_user: CurrentUser, form: PermitTemplateForm) -> PermitResponse:
    await _check_park(db, current_user, form.park_id)
    template = Permit(
        **_form_columns(form),
        permittee_name=PLACEHOLDER_PERMITTEE_NAME,
        permittee_email=PLACEHOLDER_PERMITTEE_EMAIL,
        participant_count=1,
        start_date=date(2025, 1, 1),
        end_date=date(2025, 1, 2),
        status=PermitStatus.TEMPLATE.value,
        is_template=True,
        created_by=current_user.id,
        updated_by=current_user.id,
    )

    async def stage() -> None:
        template.permit_number = await generate_identifier(db, Permit.permit_number, year_prefix(TEMPLATE_KIND))
        db.add(template)

    await commit_with_identifier_retry(db, stage)
    await db.refresh(template)
    logger.info("Created permit template %s", template.permit_number)
    return PermitResponse.model_validate(template)


async def update_template(
    db: AsyncSession, current_user: CurrentUser, template_id: int, form: PermitTemplateForm
) -> PermitResponse:
    template = await _get_template(db, template_id)
    await ensure_access(db, current_user, template.park_id)
    if form.park_id != template.park_id:
        await _check_park(db, current_user, form.park_id)
    for key, value in _form_columns(form).items():
        setattr(template, key, value)
    template.updated_by = current_user.id
    await db.commit()
    await db.refresh(template)
    return PermitResponse.model_validate(template)


async def delete_template(db: AsyncSession, current_user: CurrentUser, template_id: int) -> None:
    template = await _get_template(db, template_id)
    await ensure_access(db, current_user, template.park_id)
    await db.delete(template)
    await db.commit()

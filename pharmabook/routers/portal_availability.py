# pharmabook/routers/portal_availability.py
from __future__ import annotations

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from pharmabook.db.sql import get_session
from pharmabook.dependencies import get_current_staff, require_roles
from pharmabook.modules.availability.schemas import (
    AvailabilityRuleDraft,
    AvailabilityRulePublic,
    AvailabilityRuleUpdate,
    OverlapReport,
)
from pharmabook.modules.availability.service import (
    create_rules_svc,
    delete_rule_svc,
    list_rules_svc,
    set_rule_active_svc,
    validate_rule_draft_svc,
)
from pharmabook.modules.pharmacies.models import Pharmacist, StaffRole

router = APIRouter(prefix="/portal", tags=["portal-availability"])

# Rule mutations are for pharmacy owners and platform admins
require_manager = require_roles(StaffRole.PHARMACY_OWNER.value, StaffRole.SUPER_ADMIN.value)


class RuleBatch(BaseModel):
    items: List[AvailabilityRulePublic]


@router.get(
    "/services/{service_id}/availability",
    response_model=RuleBatch,
    summary="List availability rules of a service",
)
async def list_availability(
    service_id: UUID,
    session: AsyncSession = Depends(get_session),
    staff: Pharmacist = Depends(get_current_staff),
):
    items = await list_rules_svc(session, pharmacy_id=staff.pharmacy_id, service_id=service_id)
    return RuleBatch(items=items)


@router.post(
    "/services/{service_id}/availability/validate",
    response_model=OverlapReport,
    summary="Check a draft against existing rules without saving",
)
async def validate_availability(
    service_id: UUID,
    draft: AvailabilityRuleDraft,
    session: AsyncSession = Depends(get_session),
    staff: Pharmacist = Depends(get_current_staff),
):
    return await validate_rule_draft_svc(
        session, pharmacy_id=staff.pharmacy_id, service_id=service_id, draft=draft
    )


@router.post(
    "/services/{service_id}/availability",
    response_model=RuleBatch,
    status_code=status.HTTP_201_CREATED,
    summary="Create one rule per selected day (409 on overlap)",
)
async def create_availability(
    service_id: UUID,
    draft: AvailabilityRuleDraft,
    session: AsyncSession = Depends(get_session),
    staff: Pharmacist = Depends(require_manager),
):
    items = await create_rules_svc(
        session, pharmacy_id=staff.pharmacy_id, service_id=service_id, draft=draft
    )
    return RuleBatch(items=items)


@router.patch(
    "/availability/{rule_id}",
    response_model=AvailabilityRulePublic,
    summary="Activate or deactivate a rule",
)
async def update_availability(
    rule_id: UUID,
    payload: AvailabilityRuleUpdate,
    session: AsyncSession = Depends(get_session),
    staff: Pharmacist = Depends(require_manager),
):
    return await set_rule_active_svc(
        session, pharmacy_id=staff.pharmacy_id, rule_id=rule_id, is_active=payload.is_active
    )


@router.delete(
    "/availability/{rule_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a rule",
)
async def delete_availability(
    rule_id: UUID,
    session: AsyncSession = Depends(get_session),
    staff: Pharmacist = Depends(require_manager),
):
    await delete_rule_svc(session, pharmacy_id=staff.pharmacy_id, rule_id=rule_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

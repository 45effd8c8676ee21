import logging
from datetime import datetime
from typing import Optional
from fastapi import APIRouter, UploadFile, File, Depends, HTTPException, Form
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from app.core.database import get_db
from app.core.exceptions import ValidationError
from app.models.db_models import PricingPlan
from app.models.schemas import (
    CalculateIn, CalculateOut, PlanStatusUpdate, PricingPlanIn, PricingPlanOut, ZoneOut,
)
from app.services.charges import build_charge_breakdown
from app.services.rate_engine import calculate_price, describe_result
from app.services.tariff import load_tariff_table
from app.services.tariff_csv import parse_tariff_csv
from app.services.zone_classifier import classify_zone, is_assam_pincode, is_north_east_pincode

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1")

PLAN_STATUSES = ("pending", "approved", "rejected")
NO_PLAN_MESSAGE = (
    "No pricing plan has been assigned to your corporate account yet. "
    "Please contact your administrator."
)


async def _get_plan(db: AsyncSession, plan_id: int) -> PricingPlan:
    result = await db.execute(select(PricingPlan).where(PricingPlan.id == plan_id))
    plan = result.scalar_one_or_none()
    if not plan:
        raise HTTPException(404, f"Pricing plan #{plan_id} not found")
    return plan


async def _approved_plan_for(db: AsyncSession, corporate_id: str) -> Optional[PricingPlan]:
    result = await db.execute(
        select(PricingPlan)
        .where(PricingPlan.corporate_id == corporate_id, PricingPlan.status == "approved")
        .order_by(PricingPlan.approved_at.desc(), PricingPlan.id.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


# ─── Zones ─────────────────────────────────────────────────────────────

@router.get("/zones/{pincode}", response_model=ZoneOut)
async def get_zone(pincode: str, air: bool = False):
    return ZoneOut(
        pincode=pincode,
        is_air_route=air,
        zone=classify_zone(pincode, air),
        is_assam=is_assam_pincode(pincode),
        is_north_east=is_north_east_pincode(pincode),
    )


# ─── Calculation ───────────────────────────────────────────────────────

@router.post("/calculate", response_model=CalculateOut)
async def calculate(payload: CalculateIn, db: AsyncSession = Depends(get_db)):
    plan = None
    if payload.tariff is not None:
        tariff_record = payload.tariff
    elif payload.plan_id is not None:
        plan = await _get_plan(db, payload.plan_id)
        if plan.status != "approved":
            raise HTTPException(409, f"Pricing plan #{plan.id} is {plan.status}, only approved plans can be used")
        tariff_record = plan.tariff
    elif payload.corporate_id:
        plan = await _approved_plan_for(db, payload.corporate_id)
        if not plan:
            raise HTTPException(404, NO_PLAN_MESSAGE)
        tariff_record = plan.tariff
    else:
        raise HTTPException(400, "One of tariff, plan_id or corporate_id is required.")

    try:
        result = calculate_price(tariff_record, payload.request)
        charges = None
        if payload.include_charges:
            charges = build_charge_breakdown(result.price, plan.fuel_charge_pct if plan else None)
    except ValidationError as e:
        raise HTTPException(400, str(e))

    return CalculateOut(
        **result.model_dump(),
        display_price=result.display_price,
        description=describe_result(payload.request, result),
        plan_id=plan.id if plan else None,
        charges=charges,
    )


# ─── Pricing plans ─────────────────────────────────────────────────────

@router.post("/pricing-plans", response_model=PricingPlanOut)
async def create_plan(payload: PricingPlanIn, db: AsyncSession = Depends(get_db)):
    try:
        table = load_tariff_table(payload.tariff)
    except ValidationError as e:
        raise HTTPException(400, str(e))

    plan = PricingPlan(
        corporate_id=payload.corporate_id,
        name=payload.name,
        status="pending",
        tariff=table.model_dump(by_alias=True, exclude_none=True),
        fuel_charge_pct=payload.fuel_charge_pct,
    )
    db.add(plan)
    await db.commit()
    await db.refresh(plan)
    logger.info(f"Pricing plan #{plan.id} '{plan.name}' created for {plan.corporate_id}")
    return PricingPlanOut.model_validate(plan)


@router.post("/pricing-plans/upload", response_model=PricingPlanOut)
async def upload_plan(
    corporate_id: str = Form(...),
    name: str = Form(...),
    fuel_charge_pct: Optional[float] = Form(None),
    tariff_file: UploadFile = File(...),
    db: AsyncSession = Depends(get_db),
):
    try:
        content = (await tariff_file.read()).decode("utf-8")
    except UnicodeDecodeError:
        raise HTTPException(400, "Tariff file must be a UTF-8 encoded CSV")
    try:
        table = load_tariff_table(parse_tariff_csv(content))
    except ValidationError as e:
        raise HTTPException(400, str(e))

    plan = PricingPlan(
        corporate_id=corporate_id,
        name=name,
        status="pending",
        tariff=table.model_dump(by_alias=True, exclude_none=True),
        fuel_charge_pct=fuel_charge_pct,
    )
    db.add(plan)
    await db.commit()
    await db.refresh(plan)
    logger.info(f"Pricing plan #{plan.id} '{plan.name}' imported from {tariff_file.filename}")
    return PricingPlanOut.model_validate(plan)


@router.get("/pricing-plans", response_model=list[PricingPlanOut])
async def list_plans(
    corporate_id: Optional[str] = None,
    status: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
):
    query = select(PricingPlan).order_by(PricingPlan.created_at.desc(), PricingPlan.id.desc())
    if corporate_id:
        query = query.where(PricingPlan.corporate_id == corporate_id)
    if status:
        query = query.where(PricingPlan.status == status)
    result = await db.execute(query)
    return [PricingPlanOut.model_validate(p) for p in result.scalars().all()]


@router.get("/pricing-plans/{plan_id}", response_model=PricingPlanOut)
async def get_plan(plan_id: int, db: AsyncSession = Depends(get_db)):
    return PricingPlanOut.model_validate(await _get_plan(db, plan_id))


@router.patch("/pricing-plans/{plan_id}/status", response_model=PricingPlanOut)
async def update_plan_status(plan_id: int, payload: PlanStatusUpdate, db: AsyncSession = Depends(get_db)):
    if payload.status not in PLAN_STATUSES:
        raise HTTPException(400, f"Invalid status '{payload.status}'")
    plan = await _get_plan(db, plan_id)
    plan.status = payload.status
    plan.approved_at = datetime.utcnow() if payload.status == "approved" else None
    await db.commit()
    await db.refresh(plan)
    logger.info(f"Pricing plan #{plan.id} marked {plan.status}")
    return PricingPlanOut.model_validate(plan)


@router.delete("/pricing-plans/{plan_id}")
async def delete_plan(plan_id: int, db: AsyncSession = Depends(get_db)):
    plan = await _get_plan(db, plan_id)
    await db.delete(plan)
    await db.commit()
    return {"deleted": plan_id}


@router.get("/corporate/{corporate_id}/pricing")
async def get_corporate_pricing(corporate_id: str, db: AsyncSession = Depends(get_db)):
    plan = await _approved_plan_for(db, corporate_id)
    if not plan:
        raise HTTPException(404, NO_PLAN_MESSAGE)
    return {"pricing": PricingPlanOut.model_validate(plan)}

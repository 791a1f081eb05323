from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from typing import List, Optional

from easymove.core.audit_log import log_audit
from easymove.core.auth_utils import check_not_found
from easymove.core.enums import AuditAction
from easymove.core.response_builders import build_driver_response, build_driver_response_list
from easymove.core.security import require_admin
from easymove.db.session import get_db
from easymove.models.driver import Driver
from easymove.schemas.driver import DriverOut, DriverRegister

router = APIRouter(prefix="/drivers", tags=["drivers"])


@router.post("/register", response_model=DriverOut, status_code=201)
async def register_driver(payload: DriverRegister, db: AsyncSession = Depends(get_db)):
    res = await db.execute(select(Driver).where(Driver.email == payload.email))
    if res.scalars().first():
        raise HTTPException(status_code=409, detail="A driver with this email is already registered")

    driver = Driver(**payload.model_dump(), is_approved=False)
    db.add(driver)
    await db.commit()
    await db.refresh(driver)
    return build_driver_response(driver)


@router.get("", response_model=List[DriverOut])
async def list_drivers(
    approved: Optional[bool] = Query(None),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
    current_user=Depends(require_admin),
):
    q = select(Driver).order_by(Driver.id)
    if approved is not None:
        q = q.where(Driver.is_approved == approved)
    res = await db.execute(q.limit(limit).offset(offset))
    return build_driver_response_list(res.scalars().all())


@router.post("/{driver_id}/approve", response_model=DriverOut)
async def approve_driver(
    driver_id: int,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(require_admin),
):
    res = await db.execute(select(Driver).where(Driver.id == driver_id))
    driver = res.scalars().first()
    check_not_found(driver, "Driver", driver_id)

    driver.is_approved = True
    await log_audit(db, current_user.id, AuditAction.APPROVE_DRIVER, {"driver_id": driver_id}, resource="driver")
    await db.commit()
    await db.refresh(driver)
    return build_driver_response(driver)

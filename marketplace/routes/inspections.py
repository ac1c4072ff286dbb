from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.database import get_session
from marketplace.identity import Identity, get_identity
from marketplace.schemas import InspectionCreate, InspectionRead, InspectionReportCreate, InspectionStatusUpdate
from marketplace.services import inspections

router = APIRouter(prefix="/inspections", tags=["inspections"])


@router.post("/request", response_model=InspectionRead, status_code=201)
async def request_inspection(
    payload: InspectionCreate,
    identity: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_session),
):
    return await inspections.request_inspection(identity, payload, db)


@router.get("/my-inspections", response_model=List[InspectionRead])
async def my_inspections(identity: Identity = Depends(get_identity), db: AsyncSession = Depends(get_session)):
    return await inspections.get_my_inspections(identity, db)


@router.get("/available", response_model=List[InspectionRead])
async def available_inspections(identity: Identity = Depends(get_identity), db: AsyncSession = Depends(get_session)):
    return await inspections.get_available_inspections(identity, db)


@router.get("/mechanic", response_model=List[InspectionRead])
async def mechanic_inspections(identity: Identity = Depends(get_identity), db: AsyncSession = Depends(get_session)):
    return await inspections.get_mechanic_inspections(identity, db)


@router.get("/seller", response_model=List[InspectionRead])
async def seller_inspections(identity: Identity = Depends(get_identity), db: AsyncSession = Depends(get_session)):
    return await inspections.get_seller_inspections(identity, db)


@router.get("/{inspection_id}", response_model=InspectionRead)
async def get_inspection(inspection_id: str, identity: Identity = Depends(get_identity), db: AsyncSession = Depends(get_session)):
    return await inspections.get_inspection(identity, inspection_id, db)


@router.put("/{inspection_id}/status", response_model=InspectionRead)
async def update_inspection_status(
    inspection_id: str,
    payload: InspectionStatusUpdate,
    identity: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_session),
):
    return await inspections.update_inspection_status(
        identity, inspection_id, payload.status, db, rejection_reason=payload.rejection_reason
    )


@router.post("/{inspection_id}/report", response_model=InspectionRead)
async def submit_report(
    inspection_id: str,
    payload: InspectionReportCreate,
    identity: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_session),
):
    return await inspections.submit_inspection_report(identity, inspection_id, payload.scores, payload.overall_comment, db)


@router.put("/{inspection_id}/cancel", response_model=InspectionRead)
async def cancel_inspection(inspection_id: str, identity: Identity = Depends(get_identity), db: AsyncSession = Depends(get_session)):
    return await inspections.cancel_inspection(identity, inspection_id, db)

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.database import get_session
from marketplace.identity import Identity, get_identity
from marketplace.schemas import MechanicProfileUpdate, MechanicRead, ServiceCreate, ServiceRead
from marketplace.services import mechanics

router = APIRouter(prefix="/mechanics", tags=["mechanics"])


@router.get("", response_model=List[MechanicRead])
async def list_mechanics(db: AsyncSession = Depends(get_session)):
    return await mechanics.list_mechanics(db)


@router.post("/service", response_model=ServiceRead, status_code=201)
async def add_service(
    payload: ServiceCreate,
    identity: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_session),
):
    return await mechanics.add_service(identity, payload, db)


@router.put("/profile", response_model=MechanicRead)
async def update_profile(
    payload: MechanicProfileUpdate,
    identity: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_session),
):
    return await mechanics.update_mechanic_profile(identity, payload, db)

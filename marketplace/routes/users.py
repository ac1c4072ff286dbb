from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.database import get_session
from marketplace.identity import Identity, get_identity
from marketplace.schemas import BikeCreate, BikeRead, ProfileRead
from marketplace.services import garage

router = APIRouter(prefix="/user", tags=["user"])


@router.get("/profile", response_model=ProfileRead)
async def get_profile(identity: Identity = Depends(get_identity), db: AsyncSession = Depends(get_session)):
    return await garage.get_profile(identity, db)


@router.get("/garage", response_model=List[BikeRead])
async def get_garage(identity: Identity = Depends(get_identity), db: AsyncSession = Depends(get_session)):
    return await garage.get_garage(identity, db)


@router.post("/garage", response_model=BikeRead, status_code=201)
async def add_bike(payload: BikeCreate, identity: Identity = Depends(get_identity), db: AsyncSession = Depends(get_session)):
    return await garage.add_bike(identity, payload, db)

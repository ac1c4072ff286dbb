from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.database import get_session
from marketplace.identity import Identity, get_identity
from marketplace.schemas import BookingCreate, BookingCreated, BookingRead
from marketplace.services import bookings

router = APIRouter(prefix="/bookings", tags=["bookings"])


@router.post("", response_model=BookingCreated, status_code=201)
async def create_booking(
    payload: BookingCreate,
    identity: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_session),
):
    return await bookings.create_booking(identity, payload, db)


@router.get("", response_model=List[BookingRead])
async def my_bookings(identity: Identity = Depends(get_identity), db: AsyncSession = Depends(get_session)):
    return await bookings.get_my_bookings(identity, db)

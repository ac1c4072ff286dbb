"""Customer bookings of a mechanic's offered services."""
import logging
from datetime import datetime, timezone
from typing import List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from marketplace.database import transaction
from marketplace.errors import BadRequest, NotFound
from marketplace.identity import Identity
from marketplace.models import Booking, BookingStatus, MechanicProfile, Service
from marketplace.schemas import BookingCreate, BookingCreated, BookingRead, PartyRead, ServiceRead

logger = logging.getLogger(__name__)

_related = (
    selectinload(Booking.mechanic).selectinload(MechanicProfile.user),
    selectinload(Booking.service),
)


def booking_view(booking: Booking) -> BookingRead:
    mechanic = booking.mechanic
    return BookingRead(
        id=booking.id,
        customer_id=booking.customer_id,
        mechanic_id=booking.mechanic_id,
        service_id=booking.service_id,
        date=booking.date,
        notes=booking.notes,
        status=booking.status,
        created_at=booking.created_at,
        mechanic=PartyRead(id=mechanic.id, name=mechanic.user.name, phone=mechanic.user.phone) if mechanic else None,
        service=ServiceRead.model_validate(booking.service) if booking.service else None,
    )


def _as_utc(value: datetime) -> datetime:
    # Columns are naive UTC
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


async def create_booking(identity: Identity, data: BookingCreate, db: AsyncSession) -> BookingCreated:
    async with transaction(db):
        mechanic = await db.get(MechanicProfile, data.mechanic_id)
        if not mechanic:
            raise NotFound("Mechanic not found")
        service = await db.get(Service, data.service_id)
        if not service:
            raise NotFound("Service not found")
        if service.mechanic_id != mechanic.id:
            raise BadRequest("This service is not offered by the selected mechanic")
        if mechanic.user_id == identity.user_id:
            raise BadRequest("You cannot book your own service")

        booking = Booking(
            customer_id=identity.user_id,
            mechanic_id=mechanic.id,
            service_id=service.id,
            date=_as_utc(data.date),
            notes=data.notes,
            status=BookingStatus.PENDING,
        )
        db.add(booking)
        await db.flush()
        booking_id = booking.id

    logger.info("Booking %s for service %s placed by %s", booking_id, data.service_id, identity.user_id)
    result = await db.execute(
        select(Booking).where(Booking.id == booking_id).options(*_related).execution_options(populate_existing=True)
    )
    return BookingCreated(message="Mechanic requested successfully", booking=booking_view(result.scalar_one()))


async def get_my_bookings(identity: Identity, db: AsyncSession) -> List[BookingRead]:
    result = await db.execute(
        select(Booking)
        .where(Booking.customer_id == identity.user_id)
        .options(*_related)
        .execution_options(populate_existing=True)
        .order_by(Booking.created_at.desc())
    )
    return [booking_view(b) for b in result.scalars().all()]

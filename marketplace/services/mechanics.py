"""Mechanic directory, offered services and profile edits."""
import logging
from typing import List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from marketplace.database import transaction
from marketplace.errors import NotFound
from marketplace.identity import Identity
from marketplace.models import MechanicProfile, Service
from marketplace.schemas import MechanicProfileUpdate, MechanicRead, ServiceCreate, ServiceRead

logger = logging.getLogger(__name__)

PROFILE_FIELDS = ("experience_years", "shop_address", "is_mobile_service", "hourly_rate")


def mechanic_view(profile: MechanicProfile, phone: bool = False) -> MechanicRead:
    return MechanicRead(
        id=profile.id,
        user_id=profile.user_id,
        name=profile.user.name,
        phone=profile.user.phone if phone else None,
        experience_years=profile.experience_years,
        shop_address=profile.shop_address,
        is_mobile_service=profile.is_mobile_service,
        hourly_rate=profile.hourly_rate,
        is_verified=profile.is_verified,
        services=[ServiceRead.model_validate(s) for s in profile.services],
    )


async def _load_profile(mechanic_id: str, db: AsyncSession) -> MechanicProfile:
    result = await db.execute(
        select(MechanicProfile)
        .where(MechanicProfile.id == mechanic_id)
        .options(selectinload(MechanicProfile.user), selectinload(MechanicProfile.services))
        .execution_options(populate_existing=True)
    )
    return result.scalar_one()


async def add_service(identity: Identity, data: ServiceCreate, db: AsyncSession) -> ServiceRead:
    if not identity.is_mechanic:
        raise NotFound("Mechanic profile not found")

    async with transaction(db):
        service = Service(
            mechanic_id=identity.mechanic_id,
            name=data.name,
            description=data.description,
            base_price=data.base_price,
        )
        db.add(service)
        await db.flush()

    logger.info("Service %s added by mechanic %s", service.id, identity.mechanic_id)
    return ServiceRead.model_validate(service)


async def list_mechanics(db: AsyncSession) -> List[MechanicRead]:
    # Public directory: contact details stay private until a booking is made
    result = await db.execute(
        select(MechanicProfile)
        .options(selectinload(MechanicProfile.user), selectinload(MechanicProfile.services))
        .execution_options(populate_existing=True)
        .order_by(MechanicProfile.experience_years.desc())
    )
    return [mechanic_view(m) for m in result.scalars().all()]


async def update_mechanic_profile(identity: Identity, data: MechanicProfileUpdate, db: AsyncSession) -> MechanicRead:
    if not identity.is_mechanic:
        raise NotFound("Mechanic profile not found")

    changes = data.model_dump(exclude_unset=True, exclude_none=True)
    async with transaction(db):
        profile = await _load_profile(identity.mechanic_id, db)
        for field in PROFILE_FIELDS:
            if field in changes:
                setattr(profile, field, changes[field])
        if changes.get("name"):
            profile.user.name = changes["name"]
        if changes.get("phone"):
            profile.user.phone = changes["phone"]
        db.add(profile)

    return mechanic_view(profile, phone=True)

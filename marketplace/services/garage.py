from typing import List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.database import transaction
from marketplace.errors import NotFound
from marketplace.identity import Identity
from marketplace.models import User, UserBike
from marketplace.schemas import BikeCreate, BikeRead, ProfileRead


async def get_profile(identity: Identity, db: AsyncSession) -> ProfileRead:
    user = await db.get(User, identity.user_id)
    if not user:
        raise NotFound("User not found")
    return ProfileRead(
        id=user.id,
        email=user.email,
        name=user.name,
        phone=user.phone,
        created_at=user.created_at,
        roles=identity.roles(),
    )


async def add_bike(identity: Identity, data: BikeCreate, db: AsyncSession) -> BikeRead:
    async with transaction(db):
        bike = UserBike(
            user_id=identity.user_id,
            brand=data.brand,
            model=data.model,
            year=data.year,
            registration=data.registration,
        )
        db.add(bike)
        await db.flush()
    return BikeRead.model_validate(bike)


async def get_garage(identity: Identity, db: AsyncSession) -> List[BikeRead]:
    result = await db.execute(
        select(UserBike).where(UserBike.user_id == identity.user_id).order_by(UserBike.created_at.desc())
    )
    return [BikeRead.model_validate(b) for b in result.scalars().all()]

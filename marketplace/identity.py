from dataclasses import dataclass
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.database import get_session
from marketplace.errors import Unauthorized
from marketplace.models import AdminProfile, MechanicProfile, SellerProfile, User
from marketplace.security import decode_access_token

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class Identity:
    """Who is calling, and which role profiles they hold.

    Built once per request and passed into every service call, so role
    checks never re-query the profile tables.
    """

    user_id: str
    email: Optional[str] = None
    seller_id: Optional[str] = None
    mechanic_id: Optional[str] = None
    is_admin: bool = False

    @property
    def is_seller(self) -> bool:
        return self.seller_id is not None

    @property
    def is_mechanic(self) -> bool:
        return self.mechanic_id is not None

    def roles(self) -> dict:
        return {"isSeller": self.is_seller, "isMechanic": self.is_mechanic, "isAdmin": self.is_admin}


async def resolve_identity(session: AsyncSession, user_id: str) -> Identity:
    stmt = (
        select(User.id, User.email, SellerProfile.id, MechanicProfile.id, AdminProfile.id)
        .outerjoin(SellerProfile, SellerProfile.user_id == User.id)
        .outerjoin(MechanicProfile, MechanicProfile.user_id == User.id)
        .outerjoin(AdminProfile, AdminProfile.user_id == User.id)
        .where(User.id == user_id)
    )
    row = (await session.execute(stmt)).first()
    if row is None:
        raise Unauthorized("User not found")
    uid, email, seller_id, mechanic_id, admin_id = row
    return Identity(
        user_id=uid,
        email=email,
        seller_id=seller_id,
        mechanic_id=mechanic_id,
        is_admin=admin_id is not None,
    )


async def get_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    session: AsyncSession = Depends(get_session),
) -> Identity:
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise Unauthorized("Unauthorized: No token provided")
    payload = decode_access_token(credentials.credentials)
    return await resolve_identity(session, payload["sub"])

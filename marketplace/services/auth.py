import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.database import transaction
from marketplace.errors import BadRequest, Unauthorized
from marketplace.identity import Identity, resolve_identity
from marketplace.models import MechanicProfile, SellerProfile, User, UserBike
from marketplace.schemas import AuthResponse, LoginRequest, RegisterRequest, RoleDetails, UserSummary
from marketplace.security import create_access_token, hash_password, verify_password

logger = logging.getLogger(__name__)


def _auth_response(user: User, identity: Identity, message: str = None) -> AuthResponse:
    roles = identity.roles()
    return AuthResponse(
        message=message,
        token=create_access_token(user.id, user.email, roles),
        user=UserSummary(id=user.id, name=user.name, roles=roles),
    )


def _add_role_profile(user: User, role: str, details: RoleDetails, db: AsyncSession):
    if role == "seller":
        if not details.business_name:
            raise BadRequest("Missing seller details: businessName is required.")
        db.add(SellerProfile(
            user=user,
            business_name=details.business_name,
            gst_number=details.gst_number,
            # GST number presence stands in for verification
            is_verified=bool(details.gst_number),
        ))
    elif role == "mechanic":
        if not details.experience_years or not details.shop_address or not details.hourly_rate:
            raise BadRequest("Missing mechanic details: experienceYears, shopAddress, and hourlyRate are required.")
        db.add(MechanicProfile(
            user=user,
            experience_years=details.experience_years,
            shop_address=details.shop_address,
            hourly_rate=details.hourly_rate,
            is_mobile_service=details.is_mobile_service,
            is_verified=False,
        ))
    elif details.has_bike and details.bike_model:
        db.add(UserBike(
            user=user,
            brand="",
            model=details.bike_model,
            year=details.bike_year or 2024,
            registration=details.registration or "XX XX XXXX",
        ))


async def register(data: RegisterRequest, db: AsyncSession) -> AuthResponse:
    """Create a user together with its role profile in one transaction."""
    async with transaction(db):
        existing = await db.execute(select(User).where(User.email == data.email))
        if existing.scalar_one_or_none():
            raise BadRequest("User already exists")

        user = User(
            email=data.email,
            password=hash_password(data.password),
            name=data.name,
            phone=data.phone,
        )
        db.add(user)
        _add_role_profile(user, data.role, data.role_details or RoleDetails(), db)
        await db.flush()
        identity = await resolve_identity(db, user.id)

    logger.info("Registered %s as %s", user.id, data.role)
    return _auth_response(user, identity, message="User registered successfully")


async def login(data: LoginRequest, db: AsyncSession) -> AuthResponse:
    result = await db.execute(select(User).where(User.email == data.email))
    user = result.scalar_one_or_none()
    if not user or not verify_password(data.password, user.password):
        raise Unauthorized("Invalid credentials")

    identity = await resolve_identity(db, user.id)
    return _auth_response(user, identity)

import httpx
import pytest
from sqlalchemy import event, func, select
from sqlalchemy.dialects import postgresql

from marketplace.database import Database
from marketplace.identity import Identity, resolve_identity
from marketplace.main import create_app
from marketplace.models import (
    AdminProfile,
    MechanicProfile,
    Product,
    ProductType,
    SellerProfile,
    Service,
    User,
    UserBike,
)
from marketplace.security import create_access_token


class Factory:
    """Inserts fixture rows, each call in its own committed session."""

    def __init__(self, database: Database):
        self.database = database
        self._seq = 0

    def _email(self, prefix: str) -> str:
        self._seq += 1
        return f"{prefix}{self._seq}@example.com"

    async def _save(self, *objects):
        async with self.database.session() as session:
            session.add_all(objects)
            await session.commit()

    async def _identity(self, user_id: str) -> Identity:
        async with self.database.session() as session:
            return await resolve_identity(session, user_id)

    async def user(self, name="Buyer", phone="9000000001", admin=False) -> Identity:
        user = User(email=self._email("buyer"), password="not-a-hash", name=name, phone=phone)
        objects = [user]
        if admin:
            objects.append(AdminProfile(user=user))
        await self._save(*objects)
        return await self._identity(user.id)

    async def seller(self, name="Seller") -> Identity:
        user = User(email=self._email("seller"), password="not-a-hash", name=name, phone="9000000002")
        await self._save(user, SellerProfile(user=user, business_name=f"{name} Motors", is_verified=False))
        return await self._identity(user.id)

    async def mechanic(self, name="Mechanic") -> Identity:
        user = User(email=self._email("mechanic"), password="not-a-hash", name=name, phone="9000000003")
        profile = MechanicProfile(
            user=user,
            experience_years=5,
            shop_address="12 Garage Lane",
            hourly_rate=300.0,
        )
        await self._save(user, profile)
        return await self._identity(user.id)

    async def product(self, seller: Identity, type=ProductType.BIKE, price=1000.0, stock=1, **fields) -> Product:
        product = Product(
            seller_id=seller.seller_id,
            type=type,
            title=fields.pop("title", f"{type.value.title()} listing"),
            price=price,
            stock=stock,
            is_sold=fields.pop("is_sold", False),
            **fields,
        )
        await self._save(product)
        return product

    async def bike(self, owner: Identity, model="Classic 350") -> UserBike:
        bike = UserBike(user_id=owner.user_id, brand="Royal Enfield", model=model, year=2021)
        await self._save(bike)
        return bike

    async def service(self, mechanic: Identity, name="General service", base_price=800.0) -> Service:
        service = Service(mechanic_id=mechanic.mechanic_id, name=name, base_price=base_price)
        await self._save(service)
        return service

    async def fetch(self, model, id):
        async with self.database.session() as session:
            return await session.get(model, id)

    async def count(self, model) -> int:
        async with self.database.session() as session:
            return await session.scalar(select(func.count()).select_from(model))


@pytest.fixture
async def database(tmp_path):
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'marketplace.db'}")
    await db.init_db()
    yield db
    await db.dispose()


@pytest.fixture
async def session(database):
    async with database.session() as session:
        yield session


@pytest.fixture
def factory(database):
    return Factory(database)


@pytest.fixture
async def client(database):
    app = create_app(database)
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client


@pytest.fixture
def auth_headers():
    def build(identity: Identity) -> dict:
        token = create_access_token(identity.user_id, identity.email, identity.roles())
        return {"Authorization": f"Bearer {token}"}

    return build


@pytest.fixture
def statements(session):
    """SQL of every ORM statement run on ``session``, as PostgreSQL would receive it."""
    seen = []

    def record(state):
        if state.is_relationship_load:
            return
        seen.append(str(state.statement.compile(dialect=postgresql.dialect())))

    event.listen(session.sync_session, "do_orm_execute", record)
    yield seen
    event.remove(session.sync_session, "do_orm_execute", record)

from datetime import datetime

import pytest

from marketplace.errors import BadRequest, NotFound
from marketplace.models import Booking, BookingStatus, MechanicProfile, User
from marketplace.schemas import BookingCreate, MechanicProfileUpdate, ServiceCreate
from marketplace.services import bookings, mechanics


@pytest.mark.asyncio
async def test_mechanic_adds_service_and_appears_in_directory(session, factory):
    """
    Test case 1: A service a mechanic adds is listed under them in the public directory.
    """
    mechanic = await factory.mechanic(name="Ravi")
    await factory.mechanic(name="Sunil")

    service = await mechanics.add_service(
        mechanic, ServiceCreate(name="Chain Lubrication", description="Clean and lube", base_price=250.0), session
    )
    assert service.mechanic_id == mechanic.mechanic_id

    directory = await mechanics.list_mechanics(session)
    by_name = {m.name: m for m in directory}
    assert set(by_name) == {"Ravi", "Sunil"}
    assert [s.name for s in by_name["Ravi"].services] == ["Chain Lubrication"]
    assert by_name["Sunil"].services == []
    assert by_name["Ravi"].phone is None


@pytest.mark.asyncio
async def test_add_service_requires_mechanic_profile(session, factory):
    buyer = await factory.user()

    with pytest.raises(NotFound) as exc:
        await mechanics.add_service(buyer, ServiceCreate(name="Tune-up", base_price=900.0), session)
    assert exc.value.message == "Mechanic profile not found"


@pytest.mark.asyncio
async def test_update_mechanic_profile(session, factory):
    mechanic = await factory.mechanic(name="Old Name")
    buyer = await factory.user()

    updated = await mechanics.update_mechanic_profile(
        mechanic, MechanicProfileUpdate(name="New Name", hourly_rate=450.0, is_mobile_service=True), session
    )

    assert (updated.name, updated.hourly_rate, updated.is_mobile_service) == ("New Name", 450.0, True)
    assert updated.shop_address == "12 Garage Lane"
    assert (await factory.fetch(User, mechanic.user_id)).name == "New Name"
    assert (await factory.fetch(MechanicProfile, mechanic.mechanic_id)).hourly_rate == 450.0

    with pytest.raises(NotFound):
        await mechanics.update_mechanic_profile(buyer, MechanicProfileUpdate(name="Nope"), session)


@pytest.mark.asyncio
async def test_create_booking_is_pending(session, factory):
    """
    Test case 2: Booking a mechanic's service stores a PENDING booking for the caller.
    """
    mechanic = await factory.mechanic(name="Ravi")
    customer = await factory.user(name="Asha")
    service = await factory.service(mechanic, name="Full Service", base_price=1500.0)

    created = await bookings.create_booking(
        customer,
        BookingCreate(mechanic_id=mechanic.mechanic_id, service_id=service.id, date=datetime(2030, 1, 5, 10, 0), notes="Brakes squeak"),
        session,
    )

    assert created.message == "Mechanic requested successfully"
    assert created.booking.status == BookingStatus.PENDING
    assert created.booking.customer_id == customer.user_id
    assert created.booking.mechanic.name == "Ravi"
    assert created.booking.service.name == "Full Service"

    stored = await factory.fetch(Booking, created.booking.id)
    assert stored.date == datetime(2030, 1, 5, 10, 0)
    assert stored.notes == "Brakes squeak"


@pytest.mark.asyncio
async def test_create_booking_rejections(session, factory):
    mechanic = await factory.mechanic()
    other = await factory.mechanic(name="Other")
    customer = await factory.user()
    service = await factory.service(mechanic)
    when = datetime(2030, 1, 5, 10, 0)

    with pytest.raises(NotFound):
        await bookings.create_booking(customer, BookingCreate(mechanic_id="missing", service_id=service.id, date=when), session)
    with pytest.raises(NotFound):
        await bookings.create_booking(
            customer, BookingCreate(mechanic_id=mechanic.mechanic_id, service_id="missing", date=when), session
        )
    with pytest.raises(BadRequest):
        await bookings.create_booking(
            customer, BookingCreate(mechanic_id=other.mechanic_id, service_id=service.id, date=when), session
        )
    with pytest.raises(BadRequest):
        await bookings.create_booking(
            mechanic, BookingCreate(mechanic_id=mechanic.mechanic_id, service_id=service.id, date=when), session
        )

    assert await factory.count(Booking) == 0


@pytest.mark.asyncio
async def test_my_bookings_only_lists_the_callers(session, factory):
    mechanic = await factory.mechanic()
    service = await factory.service(mechanic)
    asha = await factory.user(name="Asha")
    ravi = await factory.user(name="Ravi")

    first = await bookings.create_booking(
        asha, BookingCreate(mechanic_id=mechanic.mechanic_id, service_id=service.id, date=datetime(2030, 2, 1)), session
    )

    mine = await bookings.get_my_bookings(asha, session)
    assert [b.id for b in mine] == [first.booking.id]
    assert mine[0].service.base_price == 800.0
    assert await bookings.get_my_bookings(ravi, session) == []


@pytest.mark.asyncio
async def test_booking_over_http(client, factory, auth_headers):
    """
    Test case 3: Mechanic publishes a service, a customer finds it in the directory and books it.
    """
    mechanic = await factory.mechanic(name="Ravi")
    customer = await factory.user(name="Asha")

    directory = await client.get("/api/mechanics")
    assert directory.status_code == 200
    assert [m["name"] for m in directory.json()] == ["Ravi"]

    service = await client.post(
        "/api/mechanics/service",
        json={"name": "Engine Oil Change", "base_price": 800},
        headers=auth_headers(mechanic),
    )
    assert service.status_code == 201
    service_id = service.json()["id"]

    refused = await client.post(
        "/api/mechanics/service", json={"name": "Oil", "base_price": 100}, headers=auth_headers(customer)
    )
    assert refused.status_code == 404

    booking = await client.post("/api/bookings", json={
        "mechanic_id": mechanic.mechanic_id,
        "service_id": service_id,
        "date": "2030-12-25T10:00:00Z",
        "notes": "Please bring spare parts",
    }, headers=auth_headers(customer))
    assert booking.status_code == 201
    body = booking.json()
    assert body["message"] == "Mechanic requested successfully"
    assert body["booking"]["status"] == "PENDING"
    assert body["booking"]["date"].startswith("2030-12-25T10:00:00")

    mine = await client.get("/api/bookings", headers=auth_headers(customer))
    assert mine.status_code == 200
    assert [b["service"]["name"] for b in mine.json()] == ["Engine Oil Change"]

    profile = await client.put("/api/mechanics/profile", json={"shop_address": "7 Ring Road"}, headers=auth_headers(mechanic))
    assert profile.status_code == 200
    assert profile.json()["shop_address"] == "7 Ring Road"

    assert (await client.get("/api/bookings")).status_code == 401

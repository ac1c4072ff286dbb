import pytest
from unittest.mock import AsyncMock, MagicMock
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.errors import BadRequest, Conflict, Forbidden, Invalid, NotFound
from marketplace.identity import Identity
from marketplace.models import Inspection, InspectionStatus, InspectionType, ProductType
from marketplace.schemas import InspectionCreate
from marketplace.services import inspections


async def open_gig(session, factory, buyer=None, offer=500.0):
    seller = await factory.seller()
    buyer = buyer or await factory.user(name="Ravi", phone="9811111111")
    bike = await factory.product(seller, ProductType.BIKE, price=95000.0)
    gig = await inspections.request_inspection(
        buyer, InspectionCreate(product_id=bike.id, offer_amount=offer, message="Please check the clutch"), session
    )
    return seller, buyer, bike, gig


@pytest.mark.asyncio
async def test_offer_below_minimum_is_rejected(session, factory):
    """
    Test case 1: Offers under the minimum are refused and no request is stored.
    """
    seller = await factory.seller()
    buyer = await factory.user()
    bike = await factory.product(seller, ProductType.BIKE)

    with pytest.raises(Invalid) as exc:
        await inspections.request_inspection(buyer, InspectionCreate(product_id=bike.id, offer_amount=50), session)
    assert exc.value.message == "Minimum offer amount is 100"
    assert await factory.count(Inspection) == 0

    gig = await inspections.request_inspection(buyer, InspectionCreate(product_id=bike.id, offer_amount=500), session)
    assert gig.status == InspectionStatus.PENDING
    assert gig.mechanic_id is None
    assert gig.type == InspectionType.INSPECTION
    assert gig.product.id == bike.id


@pytest.mark.asyncio
async def test_inspection_request_validation(session, factory):
    seller = await factory.seller()
    buyer = await factory.user()
    helmet = await factory.product(seller, ProductType.ACCESSORY, stock=5)

    with pytest.raises(BadRequest):
        await inspections.request_inspection(buyer, InspectionCreate(), session)
    with pytest.raises(NotFound):
        await inspections.request_inspection(buyer, InspectionCreate(product_id="missing"), session)
    with pytest.raises(BadRequest):
        await inspections.request_inspection(buyer, InspectionCreate(product_id=helmet.id), session)
    with pytest.raises(Invalid):
        await inspections.request_inspection(buyer, InspectionCreate(type="TUNING", product_id=helmet.id), session)


@pytest.mark.asyncio
async def test_service_request_needs_an_owned_bike(session, factory):
    owner = await factory.user(name="Owner")
    other = await factory.user(name="Other")
    bike = await factory.bike(owner)

    with pytest.raises(BadRequest):
        await inspections.request_inspection(
            owner, InspectionCreate(type="SERVICE", user_bike_id=bike.id), session
        )
    with pytest.raises(Forbidden):
        await inspections.request_inspection(
            other, InspectionCreate(type="SERVICE", user_bike_id=bike.id, service_type="Water Wash"), session
        )
    with pytest.raises(NotFound):
        await inspections.request_inspection(
            owner, InspectionCreate(type="SERVICE", user_bike_id="missing", service_type="Water Wash"), session
        )

    service = await inspections.request_inspection(
        owner, InspectionCreate(type="SERVICE", user_bike_id=bike.id, service_type="Water Wash"), session
    )
    assert service.type == InspectionType.SERVICE
    assert service.product_id is None
    assert service.user_bike.id == bike.id


@pytest.mark.asyncio
async def test_first_mechanic_claims_second_is_refused(session, factory):
    """
    Test case 2: Accepting an open gig assigns it; a second mechanic cannot take it over.
    """
    _, _, _, gig = await open_gig(session, factory)
    first = await factory.mechanic(name="First")
    second = await factory.mechanic(name="Second")

    claimed = await inspections.update_inspection_status(first, gig.id, "ACCEPTED", session)
    assert claimed.status == InspectionStatus.ACCEPTED
    assert claimed.mechanic_id == first.mechanic_id
    assert claimed.mechanic.name == "First"

    with pytest.raises(Forbidden):
        await inspections.update_inspection_status(second, gig.id, "ACCEPTED", session)

    stored = await factory.fetch(Inspection, gig.id)
    assert stored.mechanic_id == first.mechanic_id


@pytest.mark.asyncio
async def test_claim_lost_to_concurrent_accept_is_a_conflict():
    """
    Test case 3: The conditional claim matching no row means someone else got there first.
    """
    mock_session = AsyncMock(spec=AsyncSession)
    mock_session.get.return_value = Inspection(
        id="gig-1",
        buyer_id="buyer-1",
        product_id="bike-1",
        status=InspectionStatus.PENDING,
        mechanic_id=None,
    )
    claim_result = MagicMock()
    claim_result.rowcount = 0
    mock_session.execute.return_value = claim_result

    mechanic = Identity(user_id="user-9", mechanic_id="mech-9")
    with pytest.raises(Conflict):
        await inspections.update_inspection_status(mechanic, "gig-1", "ACCEPTED", mock_session)

    mock_session.execute.assert_awaited_once()
    mock_session.commit.assert_not_called()
    mock_session.rollback.assert_awaited_once()


@pytest.mark.asyncio
async def test_mechanic_status_rules(session, factory):
    _, buyer, _, gig = await open_gig(session, factory)
    mechanic = await factory.mechanic()

    with pytest.raises(Forbidden):
        await inspections.update_inspection_status(buyer, gig.id, "ACCEPTED", session)
    with pytest.raises(Forbidden):
        # An open gig has to be accepted before it can be rejected
        await inspections.update_inspection_status(mechanic, gig.id, "REJECTED", session, rejection_reason="Too far")
    with pytest.raises(Invalid):
        await inspections.update_inspection_status(mechanic, gig.id, "COMPLETED", session)
    with pytest.raises(Invalid):
        await inspections.update_inspection_status(mechanic, gig.id, "DONE", session)
    with pytest.raises(NotFound):
        await inspections.update_inspection_status(mechanic, "missing", "ACCEPTED", session)

    await inspections.update_inspection_status(mechanic, gig.id, "ACCEPTED", session)

    with pytest.raises(Invalid):
        await inspections.update_inspection_status(mechanic, gig.id, "REJECTED", session)
    rejected = await inspections.update_inspection_status(
        mechanic, gig.id, "REJECTED", session, rejection_reason="Bike not at the address"
    )
    assert rejected.status == InspectionStatus.REJECTED
    assert rejected.rejection_reason == "Bike not at the address"

    with pytest.raises(BadRequest):
        await inspections.update_inspection_status(mechanic, gig.id, "ACCEPTED", session)


@pytest.mark.asyncio
async def test_report_completes_accepted_inspection(session, factory):
    """
    Test case 4: Only the assigned mechanic can report, and only while ACCEPTED.
    """
    _, _, _, gig = await open_gig(session, factory)
    mechanic = await factory.mechanic()
    other = await factory.mechanic(name="Other")
    scores = {"engine": 8, "brakes": 7, "tyres": 6}

    with pytest.raises(Forbidden):
        await inspections.submit_inspection_report(mechanic, gig.id, scores, "Early", session)

    await inspections.update_inspection_status(mechanic, gig.id, "ACCEPTED", session)

    with pytest.raises(Forbidden):
        await inspections.submit_inspection_report(other, gig.id, scores, "Not mine", session)

    report = await inspections.submit_inspection_report(mechanic, gig.id, scores, "Well maintained", session)
    assert report.status == InspectionStatus.COMPLETED
    assert report.completed_at is not None
    assert report.report_data == {"scores": scores, "overall_comment": "Well maintained"}

    with pytest.raises(BadRequest) as exc:
        await inspections.submit_inspection_report(mechanic, gig.id, scores, "Again", session)
    assert exc.value.message == "Inspection must be ACCEPTED before submitting report"


@pytest.mark.asyncio
async def test_buyer_cancels_only_pending(session, factory):
    _, buyer, _, gig = await open_gig(session, factory)
    _, other_buyer, _, claimed_gig = await open_gig(session, factory)
    stranger = await factory.user(name="Stranger")
    mechanic = await factory.mechanic()

    with pytest.raises(Forbidden):
        await inspections.cancel_inspection(stranger, gig.id, session)

    cancelled = await inspections.cancel_inspection(buyer, gig.id, session)
    assert cancelled.status == InspectionStatus.CANCELLED

    await inspections.update_inspection_status(mechanic, claimed_gig.id, "ACCEPTED", session)
    with pytest.raises(BadRequest):
        await inspections.cancel_inspection(other_buyer, claimed_gig.id, session)

    # A cancelled gig is no longer on offer
    with pytest.raises(Forbidden):
        await inspections.update_inspection_status(mechanic, gig.id, "REJECTED", session, rejection_reason="x")
    with pytest.raises(Conflict):
        await inspections.update_inspection_status(mechanic, gig.id, "ACCEPTED", session)


@pytest.mark.asyncio
async def test_visibility_of_gigs(session, factory):
    """
    Test case 5: The buyer's phone stays hidden until a mechanic has accepted the gig.
    """
    seller, buyer, _, gig = await open_gig(session, factory)
    mechanic = await factory.mechanic()
    outsider = await factory.user(name="Outsider")

    available = await inspections.get_available_inspections(mechanic, session)
    assert [g.id for g in available] == [gig.id]
    assert available[0].buyer.name == "Ravi"
    assert available[0].buyer.phone is None

    preview = await inspections.get_inspection(mechanic, gig.id, session)
    assert preview.buyer.phone is None
    with pytest.raises(Forbidden):
        await inspections.get_inspection(outsider, gig.id, session)
    with pytest.raises(Forbidden):
        await inspections.get_available_inspections(buyer, session)

    await inspections.update_inspection_status(mechanic, gig.id, "ACCEPTED", session)

    assert await inspections.get_available_inspections(mechanic, session) == []
    assigned = await inspections.get_mechanic_inspections(mechanic, session)
    assert assigned[0].buyer.phone == "9811111111"

    mine = await inspections.get_my_inspections(buyer, session)
    assert mine[0].mechanic.name == "Mechanic"
    assert mine[0].mechanic.phone == "9000000003"

    for_seller = await inspections.get_seller_inspections(seller, session)
    assert for_seller[0].buyer is None
    assert for_seller[0].mechanic.phone is None
    with pytest.raises(Forbidden):
        await inspections.get_seller_inspections(buyer, session)
    with pytest.raises(Forbidden):
        await inspections.get_mechanic_inspections(buyer, session)

    assert (await inspections.get_inspection(seller, gig.id, session)).id == gig.id

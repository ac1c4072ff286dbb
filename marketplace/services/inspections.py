"""Inspection and service requests: gig creation, claiming, reporting.

An inspection moves through::

    PENDING  --accept (unclaimed)-->  ACCEPTED  --report-->  COMPLETED
    PENDING  --buyer cancel------->   CANCELLED
    ACCEPTED --reject------------->   REJECTED

Claiming is a single conditional UPDATE so that two mechanics accepting the
same gig at once cannot both end up assigned.
"""
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from marketplace.config import MIN_OFFER_AMOUNT
from marketplace.database import transaction
from marketplace.errors import BadRequest, Conflict, Forbidden, Invalid, NotFound
from marketplace.identity import Identity
from marketplace.models import (
    Inspection,
    InspectionStatus,
    InspectionType,
    MechanicProfile,
    Product,
    ProductType,
    UserBike,
)
from marketplace.schemas import BikeRead, InspectionCreate, InspectionRead, PartyRead, ProductSummary

logger = logging.getLogger(__name__)

MECHANIC_STATUSES = (InspectionStatus.ACCEPTED, InspectionStatus.REJECTED)

_related = (
    selectinload(Inspection.product),
    selectinload(Inspection.user_bike),
    selectinload(Inspection.buyer),
    selectinload(Inspection.mechanic).selectinload(MechanicProfile.user),
)


def inspection_view(
    inspection: Inspection,
    buyer: bool = True,
    buyer_phone: bool = True,
    mechanic: bool = True,
    mechanic_phone: bool = True,
) -> InspectionRead:
    buyer_party = None
    if buyer and inspection.buyer is not None:
        buyer_party = PartyRead(
            id=inspection.buyer.id if buyer_phone else None,
            name=inspection.buyer.name,
            phone=inspection.buyer.phone if buyer_phone else None,
        )
    mechanic_party = None
    if mechanic and inspection.mechanic is not None:
        mechanic_party = PartyRead(
            id=inspection.mechanic.id,
            name=inspection.mechanic.user.name,
            phone=inspection.mechanic.user.phone if mechanic_phone else None,
        )

    return InspectionRead(
        id=inspection.id,
        buyer_id=inspection.buyer_id,
        type=inspection.type,
        product_id=inspection.product_id,
        user_bike_id=inspection.user_bike_id,
        service_type=inspection.service_type,
        mechanic_id=inspection.mechanic_id,
        status=inspection.status,
        offer_amount=inspection.offer_amount,
        message=inspection.message,
        scheduled_date=inspection.scheduled_date,
        rejection_reason=inspection.rejection_reason,
        report_data=inspection.report_data,
        completed_at=inspection.completed_at,
        created_at=inspection.created_at,
        product=ProductSummary.model_validate(inspection.product) if inspection.product else None,
        user_bike=BikeRead.model_validate(inspection.user_bike) if inspection.user_bike else None,
        buyer=buyer_party,
        mechanic=mechanic_party,
    )


async def _load(inspection_id: str, db: AsyncSession) -> Optional[Inspection]:
    result = await db.execute(
        select(Inspection)
        .where(Inspection.id == inspection_id)
        .options(*_related)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


def _parse_status(value) -> InspectionStatus:
    try:
        return InspectionStatus(value)
    except ValueError:
        raise Invalid("Invalid status")


async def request_inspection(identity: Identity, data: InspectionCreate, db: AsyncSession) -> InspectionRead:
    try:
        kind = InspectionType(data.type)
    except ValueError:
        raise Invalid("Invalid request type")

    product_id = user_bike_id = None
    async with transaction(db):
        if kind == InspectionType.INSPECTION:
            if not data.product_id:
                raise BadRequest("Product ID is required for inspections")
            product = await db.get(Product, data.product_id)
            if not product:
                raise NotFound("Product not found")
            if product.type != ProductType.BIKE:
                raise BadRequest("Inspections are only available for bikes")
            product_id = product.id
        else:
            if not data.user_bike_id:
                raise BadRequest("User Bike ID is required for services")
            if not data.service_type:
                raise BadRequest("Service Type (e.g., Water Wash) is required")
            bike = await db.get(UserBike, data.user_bike_id)
            if not bike:
                raise NotFound("Bike not found in garage")
            if bike.user_id != identity.user_id:
                raise Forbidden("You don't own this bike")
            user_bike_id = bike.id

        if data.offer_amount is not None and data.offer_amount < MIN_OFFER_AMOUNT:
            raise Invalid(f"Minimum offer amount is {MIN_OFFER_AMOUNT:g}")

        inspection = Inspection(
            buyer_id=identity.user_id,
            type=kind,
            product_id=product_id,
            user_bike_id=user_bike_id,
            service_type=data.service_type,
            offer_amount=data.offer_amount,
            message=data.message,
            scheduled_date=data.scheduled_date,
            status=InspectionStatus.PENDING,
        )
        db.add(inspection)
        await db.flush()
        inspection_id = inspection.id

    logger.info("%s request %s opened by %s", kind.value, inspection_id, identity.user_id)
    return inspection_view(await _load(inspection_id, db))


async def get_my_inspections(identity: Identity, db: AsyncSession) -> List[InspectionRead]:
    result = await db.execute(
        select(Inspection)
        .where(Inspection.buyer_id == identity.user_id)
        .options(*_related)
        .execution_options(populate_existing=True)
        .order_by(Inspection.created_at.desc())
    )
    return [inspection_view(i) for i in result.scalars().all()]


async def get_mechanic_inspections(identity: Identity, db: AsyncSession) -> List[InspectionRead]:
    if not identity.is_mechanic:
        raise Forbidden("Not authorized as mechanic")
    result = await db.execute(
        select(Inspection)
        .where(Inspection.mechanic_id == identity.mechanic_id)
        .options(*_related)
        .execution_options(populate_existing=True)
        .order_by(Inspection.created_at.desc())
    )
    return [inspection_view(i) for i in result.scalars().all()]


async def get_available_inspections(identity: Identity, db: AsyncSession) -> List[InspectionRead]:
    if not identity.is_mechanic:
        raise Forbidden("Not authorized as mechanic")
    result = await db.execute(
        select(Inspection)
        .where(Inspection.mechanic_id.is_(None), Inspection.status == InspectionStatus.PENDING)
        .options(*_related)
        .execution_options(populate_existing=True)
        .order_by(Inspection.created_at.desc())
    )
    # Only the buyer's name is visible before a gig is accepted
    return [inspection_view(i, buyer_phone=False) for i in result.scalars().all()]


async def get_seller_inspections(identity: Identity, db: AsyncSession) -> List[InspectionRead]:
    if not identity.is_seller:
        raise Forbidden("Not authorized as seller")
    result = await db.execute(
        select(Inspection)
        .join(Product, Inspection.product_id == Product.id)
        .where(Product.seller_id == identity.seller_id)
        .options(*_related)
        .execution_options(populate_existing=True)
        .order_by(Inspection.created_at.desc())
    )
    return [inspection_view(i, buyer=False, mechanic_phone=False) for i in result.scalars().all()]


async def get_inspection(identity: Identity, inspection_id: str, db: AsyncSession) -> InspectionRead:
    inspection = await _load(inspection_id, db)
    if not inspection:
        raise NotFound("Request not found")

    is_buyer = inspection.buyer_id == identity.user_id
    is_mechanic = identity.is_mechanic and inspection.mechanic_id == identity.mechanic_id
    is_seller = (
        identity.is_seller
        and inspection.product is not None
        and inspection.product.seller_id == identity.seller_id
    )
    if is_buyer or is_mechanic or is_seller:
        return inspection_view(inspection)

    is_open_gig = inspection.mechanic_id is None and inspection.status == InspectionStatus.PENDING
    if identity.is_mechanic and is_open_gig:
        return inspection_view(inspection, buyer_phone=False)

    raise Forbidden("Not authorized to view this request")


async def update_inspection_status(
    identity: Identity,
    inspection_id: str,
    status,
    db: AsyncSession,
    rejection_reason: Optional[str] = None,
) -> InspectionRead:
    """Accept (claim) or reject an inspection as a mechanic."""
    async with transaction(db):
        inspection = await db.get(Inspection, inspection_id, populate_existing=True)
        if not inspection:
            raise NotFound("Inspection not found")
        if not identity.is_mechanic:
            raise Forbidden("Mechanic profile not found")

        new_status = _parse_status(status)
        if new_status not in MECHANIC_STATUSES:
            raise Invalid("Mechanics can only ACCEPT or REJECT a request")

        if inspection.mechanic_id and inspection.mechanic_id != identity.mechanic_id:
            raise Forbidden("Unauthorized: Inspection assigned to another mechanic")
        if not inspection.mechanic_id and new_status != InspectionStatus.ACCEPTED:
            raise Forbidden("You must ACCEPT an open inspection to assign it to yourself")
        if new_status == InspectionStatus.REJECTED and not rejection_reason:
            raise Invalid("Rejection reason is required")

        if not inspection.mechanic_id:
            claimed = await db.execute(
                update(Inspection)
                .where(
                    Inspection.id == inspection_id,
                    Inspection.mechanic_id.is_(None),
                    Inspection.status == InspectionStatus.PENDING,
                )
                .values(
                    mechanic_id=identity.mechanic_id,
                    status=InspectionStatus.ACCEPTED,
                    rejection_reason=None,
                )
                .execution_options(synchronize_session=False)
            )
            if claimed.rowcount == 0:
                logger.warning("Mechanic %s lost the claim on %s", identity.mechanic_id, inspection_id)
                raise Conflict("Inspection has already been claimed")
            logger.info("Inspection %s claimed by mechanic %s", inspection_id, identity.mechanic_id)
        else:
            if inspection.status != InspectionStatus.ACCEPTED:
                raise BadRequest(f"Inspection is already {inspection.status.value}")
            inspection.status = new_status
            inspection.rejection_reason = rejection_reason if new_status == InspectionStatus.REJECTED else None
            db.add(inspection)
            logger.info("Inspection %s set to %s by mechanic %s", inspection_id, new_status.value, identity.mechanic_id)

    return inspection_view(await _load(inspection_id, db))


async def submit_inspection_report(
    identity: Identity,
    inspection_id: str,
    scores: Dict[str, Any],
    overall_comment: Optional[str],
    db: AsyncSession,
) -> InspectionRead:
    async with transaction(db):
        inspection = await db.get(Inspection, inspection_id, populate_existing=True)
        if not inspection:
            raise NotFound("Inspection not found")
        if identity.mechanic_id is None or inspection.mechanic_id != identity.mechanic_id:
            raise Forbidden("Unauthorized")
        if inspection.status != InspectionStatus.ACCEPTED:
            raise BadRequest("Inspection must be ACCEPTED before submitting report")

        inspection.status = InspectionStatus.COMPLETED
        inspection.completed_at = datetime.utcnow()
        inspection.report_data = {"scores": scores, "overall_comment": overall_comment}
        db.add(inspection)

    logger.info("Inspection %s completed by mechanic %s", inspection_id, identity.mechanic_id)
    return inspection_view(await _load(inspection_id, db))


async def cancel_inspection(identity: Identity, inspection_id: str, db: AsyncSession) -> InspectionRead:
    async with transaction(db):
        inspection = await db.get(Inspection, inspection_id, populate_existing=True)
        if not inspection:
            raise NotFound("Inspection not found")
        if inspection.buyer_id != identity.user_id:
            raise Forbidden("Unauthorized to cancel this inspection")
        if inspection.status != InspectionStatus.PENDING:
            raise BadRequest("Can only cancel inspections that are PENDING")

        # Conditional on PENDING so a claim landing first is not overwritten
        cancelled = await db.execute(
            update(Inspection)
            .where(Inspection.id == inspection_id, Inspection.status == InspectionStatus.PENDING)
            .values(status=InspectionStatus.CANCELLED)
            .execution_options(synchronize_session=False)
        )
        if cancelled.rowcount == 0:
            raise BadRequest("Can only cancel inspections that are PENDING")

    return inspection_view(await _load(inspection_id, db))

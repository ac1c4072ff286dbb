"""Order status transitions and order queries for buyers and sellers."""
import logging
from datetime import datetime
from typing import List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from marketplace.database import transaction
from marketplace.errors import BadRequest, Conflict, Forbidden, Invalid, NotFound
from marketplace.identity import Identity
from marketplace.models import Order, OrderItem, OrderStatus, Product, ProductType
from marketplace.schemas import OrderItemRead, OrderRead, PartyRead, ProductSummary, SaleOrderInfo, SaleRead

logger = logging.getLogger(__name__)

SHIPPED_STATUSES = (OrderStatus.SHIPPED, OrderStatus.DELIVERED)


def order_view(order: Order, buyer: bool = False) -> OrderRead:
    return OrderRead(
        id=order.id,
        buyer_id=order.buyer_id,
        total_amount=order.total_amount,
        status=order.status,
        payment_id=order.payment_id,
        created_at=order.created_at,
        updated_at=order.updated_at,
        items=[OrderItemRead.model_validate(item) for item in order.items],
        buyer=PartyRead(
            id=order.buyer.id, name=order.buyer.name, email=order.buyer.email, phone=order.buyer.phone
        ) if buyer else None,
    )


def sale_view(item: OrderItem, buyer_email: bool = True) -> SaleRead:
    buyer = item.order.buyer
    return SaleRead(
        id=item.id,
        product_id=item.product_id,
        quantity=item.quantity,
        price_at_purchase=item.price_at_purchase,
        product=ProductSummary.model_validate(item.product),
        order=SaleOrderInfo(
            id=item.order.id,
            status=item.order.status,
            created_at=item.order.created_at,
            buyer=PartyRead(name=buyer.name, email=buyer.email if buyer_email else None),
        ),
    )


def parse_order_status(value) -> OrderStatus:
    try:
        return OrderStatus(value)
    except ValueError:
        raise Invalid("Invalid status")


async def update_order_status(identity: Identity, order_id: str, new_status, db: AsyncSession) -> OrderRead:
    """Move an order to ``new_status`` on behalf of its buyer, one of its sellers or an admin.

    Buyers may only cancel, and only before shipment. A seller who owns any
    item, or an admin, may set any status on the whole order. Entering
    CANCELLED puts every item's quantity back in stock and relists bikes;
    leaving it takes the stock again. Both happen in the same transaction as
    the status write, with the order row locked so concurrent updates see
    each other's result.
    """
    status = parse_order_status(new_status)

    async with transaction(db):
        result = await db.execute(
            select(Order)
            .where(Order.id == order_id)
            .options(selectinload(Order.items).selectinload(OrderItem.product))
            .with_for_update(of=Order)
            .execution_options(populate_existing=True)
        )
        order = result.scalar_one_or_none()
        if not order:
            raise NotFound("Order not found")

        is_buyer = order.buyer_id == identity.user_id
        is_seller = (
            not is_buyer
            and identity.is_seller
            and any(item.product.seller_id == identity.seller_id for item in order.items)
        )
        if not (is_buyer or is_seller or identity.is_admin):
            raise Forbidden("Unauthorized")

        if is_buyer and not identity.is_admin:
            if status != OrderStatus.CANCELLED:
                raise Forbidden("Buyers can only CANCEL orders")
            if order.status in SHIPPED_STATUSES:
                raise BadRequest("Cannot cancel order that has been shipped or delivered")

        previous = order.status
        if status == OrderStatus.CANCELLED and previous != OrderStatus.CANCELLED:
            await _restock(order, db)
        elif previous == OrderStatus.CANCELLED and status != OrderStatus.CANCELLED:
            await _reserve(order, db)

        order.status = status
        order.updated_at = datetime.utcnow()
        db.add(order)

    logger.info("Order %s status %s -> %s by %s", order.id, previous.value, status.value, identity.user_id)
    return order_view(order)


async def _lock_products(order: Order, db: AsyncSession) -> dict:
    product_ids = {item.product_id for item in order.items}
    locked = await db.execute(
        select(Product)
        .where(Product.id.in_(product_ids))
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    return {p.id: p for p in locked.scalars().all()}


async def _restock(order: Order, db: AsyncSession):
    products = await _lock_products(order, db)

    for item in order.items:
        product = products.get(item.product_id)
        if product is None:
            continue
        product.stock += item.quantity
        if product.type == ProductType.BIKE:
            product.is_sold = False
        db.add(product)
    logger.info("Restocked %d item(s) of cancelled order %s", len(order.items), order.id)


async def _reserve(order: Order, db: AsyncSession):
    products = await _lock_products(order, db)

    for item in order.items:
        product = products.get(item.product_id)
        if product is None:
            raise Conflict(f"Product {item.product_id} no longer exists")
        if product.stock < item.quantity or (product.type == ProductType.BIKE and product.is_sold):
            raise Conflict(f"{product.title} is no longer available to reopen this order")
        product.stock -= item.quantity
        if product.type == ProductType.BIKE:
            product.is_sold = True
        db.add(product)
    logger.info("Took stock again for %d item(s) of reopened order %s", len(order.items), order.id)


async def get_my_orders(identity: Identity, db: AsyncSession) -> List[OrderRead]:
    result = await db.execute(
        select(Order)
        .where(Order.buyer_id == identity.user_id)
        .options(selectinload(Order.items).selectinload(OrderItem.product))
        .order_by(Order.created_at.desc())
    )
    return [order_view(order) for order in result.scalars().all()]


async def get_seller_orders(identity: Identity, db: AsyncSession) -> List[SaleRead]:
    if not identity.is_seller:
        raise Forbidden("You are not a registered seller")

    result = await db.execute(
        select(OrderItem)
        .join(Product, OrderItem.product_id == Product.id)
        .join(Order, OrderItem.order_id == Order.id)
        .where(Product.seller_id == identity.seller_id)
        .options(
            selectinload(OrderItem.product),
            selectinload(OrderItem.order).selectinload(Order.buyer),
        )
        .execution_options(populate_existing=True)
        .order_by(Order.created_at.desc())
    )
    return [sale_view(item) for item in result.scalars().all()]


async def get_order(identity: Identity, order_id: str, db: AsyncSession) -> OrderRead:
    result = await db.execute(
        select(Order)
        .where(Order.id == order_id)
        .options(
            selectinload(Order.items).selectinload(OrderItem.product),
            selectinload(Order.buyer),
        )
        .execution_options(populate_existing=True)
    )
    order = result.scalar_one_or_none()
    if not order:
        raise NotFound("Order not found")
    # Sellers only see their own lines through the sales views
    if order.buyer_id != identity.user_id and not identity.is_admin:
        raise Forbidden("Unauthorized access to this order")
    return order_view(order, buyer=True)


async def get_orders_by_product(identity: Identity, product_id: str, db: AsyncSession) -> List[SaleRead]:
    product = await db.get(Product, product_id)
    if not product:
        raise NotFound("Product not found")
    if product.seller_id != identity.seller_id:
        raise Forbidden("Unauthorized: You can only view sales for your own products")

    result = await db.execute(
        select(OrderItem)
        .join(Order, OrderItem.order_id == Order.id)
        .where(OrderItem.product_id == product_id)
        .options(
            selectinload(OrderItem.product),
            selectinload(OrderItem.order).selectinload(Order.buyer),
        )
        .execution_options(populate_existing=True)
        .order_by(Order.created_at.desc())
    )
    return [sale_view(item, buyer_email=False) for item in result.scalars().all()]

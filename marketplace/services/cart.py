"""Cart lines and the checkout transaction."""
import logging
from typing import List
from uuid import uuid4

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from marketplace.database import transaction
from marketplace.errors import BadRequest, Conflict, Forbidden, Internal, MarketplaceError, NotFound
from marketplace.identity import Identity
from marketplace.models import CartItem, Order, OrderItem, OrderStatus, Product, ProductType
from marketplace.schemas import CartItemRead, CheckoutResponse
from marketplace.services.orders import order_view

logger = logging.getLogger(__name__)


def mock_payment_id() -> str:
    # Payment gateway is not integrated; orders are recorded as paid at checkout
    return f"PAY-{uuid4().hex[:16].upper()}"


async def add_to_cart(identity: Identity, product_id: str, quantity: int, db: AsyncSession) -> CartItemRead:
    async with transaction(db):
        product = await db.get(Product, product_id)
        if not product:
            raise NotFound("Product not found")
        if product.is_sold:
            raise Conflict("Product is already sold")
        if quantity > product.stock:
            raise Conflict(f"Only {product.stock} items left in stock")

        cart_item = CartItem(user_id=identity.user_id, product=product, quantity=quantity)
        db.add(cart_item)

    return CartItemRead.model_validate(cart_item)


async def get_cart(identity: Identity, db: AsyncSession) -> List[CartItemRead]:
    result = await db.execute(
        select(CartItem)
        .where(CartItem.user_id == identity.user_id)
        .options(selectinload(CartItem.product))
        .order_by(CartItem.created_at)
    )
    return [CartItemRead.model_validate(item) for item in result.scalars().all()]


async def _owned_cart_item(identity: Identity, cart_item_id: str, db: AsyncSession) -> CartItem:
    result = await db.execute(
        select(CartItem).where(CartItem.id == cart_item_id).options(selectinload(CartItem.product))
    )
    cart_item = result.scalar_one_or_none()
    if not cart_item:
        raise NotFound("Cart item not found")
    if cart_item.user_id != identity.user_id:
        raise Forbidden("Unauthorized")
    return cart_item


async def update_cart_item(identity: Identity, cart_item_id: str, quantity: int, db: AsyncSession) -> CartItemRead:
    if quantity is None or quantity < 1:
        raise BadRequest("Quantity must be at least 1")

    async with transaction(db):
        cart_item = await _owned_cart_item(identity, cart_item_id, db)
        if quantity > cart_item.product.stock:
            raise Conflict(f"Only {cart_item.product.stock} items available")
        cart_item.quantity = quantity
        db.add(cart_item)

    return CartItemRead.model_validate(cart_item)


async def remove_cart_item(identity: Identity, cart_item_id: str, db: AsyncSession):
    async with transaction(db):
        cart_item = await _owned_cart_item(identity, cart_item_id, db)
        await db.delete(cart_item)


async def checkout(identity: Identity, db: AsyncSession) -> CheckoutResponse:
    """Turn the caller's cart into a paid order.

    The order, its items, the stock decrements and the cart clean-up are one
    transaction: either all of them land or none do.
    """
    user_id = identity.user_id
    try:
        async with transaction(db):
            # Lock the cart lines so a concurrent checkout of the same cart waits, then finds them gone
            result = await db.execute(
                select(CartItem)
                .where(CartItem.user_id == user_id)
                .options(selectinload(CartItem.product))
                .order_by(CartItem.created_at)
                .with_for_update(of=CartItem)
                .execution_options(populate_existing=True)
            )
            cart_items = result.scalars().all()
            if not cart_items:
                raise BadRequest("Cart is empty")

            total_amount = sum(item.product.price * item.quantity for item in cart_items)

            order = Order(
                buyer_id=user_id,
                total_amount=total_amount,
                status=OrderStatus.PAID,
                payment_id=mock_payment_id(),
            )
            db.add(order)
            await db.flush()

            # Lock every product row touched by this cart before changing stock
            product_ids = {item.product_id for item in cart_items}
            locked = await db.execute(
                select(Product)
                .where(Product.id.in_(product_ids))
                .with_for_update()
                .execution_options(populate_existing=True)
            )
            products = {p.id: p for p in locked.scalars().all()}

            for item in cart_items:
                product = products[item.product_id]
                db.add(OrderItem(
                    order_id=order.id,
                    product_id=product.id,
                    quantity=item.quantity,
                    price_at_purchase=item.product.price,
                ))
                product.stock -= item.quantity
                if product.type == ProductType.BIKE:
                    product.is_sold = True
                db.add(product)

            cleared = await db.execute(
                delete(CartItem).where(CartItem.user_id == user_id, CartItem.id.in_([item.id for item in cart_items]))
            )
            if cleared.rowcount != len(cart_items):
                raise Conflict("Cart changed during checkout, please retry")
            await db.flush()
            order_id = order.id
    except MarketplaceError:
        raise
    except Exception as e:
        logger.exception("Checkout failed for user %s", user_id)
        raise Internal(f"Checkout failed: {e}")

    logger.info("Order %s placed by %s for %.2f", order_id, user_id, total_amount)
    order = await _load_order(order_id, db)
    return CheckoutResponse(message="Order placed successfully", order=order_view(order))


async def _load_order(order_id: str, db: AsyncSession) -> Order:
    result = await db.execute(
        select(Order)
        .where(Order.id == order_id)
        .options(selectinload(Order.items).selectinload(OrderItem.product))
        .execution_options(populate_existing=True)
    )
    return result.scalar_one()

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.database import get_session
from marketplace.identity import Identity, get_identity
from marketplace.schemas import (
    CartItemCreate,
    CartItemRead,
    CartItemUpdate,
    CheckoutResponse,
    MessageResponse,
    OrderRead,
    OrderStatusUpdate,
    SaleRead,
)
from marketplace.services import cart, orders

router = APIRouter(prefix="/orders", tags=["orders"])


# --- Cart ---

@router.post("/cart", response_model=CartItemRead, status_code=201)
async def add_to_cart(payload: CartItemCreate, identity: Identity = Depends(get_identity), db: AsyncSession = Depends(get_session)):
    return await cart.add_to_cart(identity, payload.product_id, payload.quantity, db)


@router.get("/cart", response_model=List[CartItemRead])
async def get_cart(identity: Identity = Depends(get_identity), db: AsyncSession = Depends(get_session)):
    return await cart.get_cart(identity, db)


@router.put("/cart/{cart_item_id}", response_model=CartItemRead)
async def update_cart_item(
    cart_item_id: str,
    payload: CartItemUpdate,
    identity: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_session),
):
    return await cart.update_cart_item(identity, cart_item_id, payload.quantity, db)


@router.delete("/cart/{cart_item_id}", response_model=MessageResponse)
async def remove_cart_item(cart_item_id: str, identity: Identity = Depends(get_identity), db: AsyncSession = Depends(get_session)):
    await cart.remove_cart_item(identity, cart_item_id, db)
    return MessageResponse(message="Item removed from cart")


@router.post("/checkout", response_model=CheckoutResponse, status_code=201)
async def checkout(identity: Identity = Depends(get_identity), db: AsyncSession = Depends(get_session)):
    return await cart.checkout(identity, db)


# --- Orders ---

@router.get("/my-orders", response_model=List[OrderRead])
async def my_orders(identity: Identity = Depends(get_identity), db: AsyncSession = Depends(get_session)):
    return await orders.get_my_orders(identity, db)


@router.get("/seller-orders", response_model=List[SaleRead])
async def seller_orders(identity: Identity = Depends(get_identity), db: AsyncSession = Depends(get_session)):
    return await orders.get_seller_orders(identity, db)


@router.get("/product/{product_id}", response_model=List[SaleRead])
async def orders_by_product(product_id: str, identity: Identity = Depends(get_identity), db: AsyncSession = Depends(get_session)):
    return await orders.get_orders_by_product(identity, product_id, db)


@router.get("/{order_id}", response_model=OrderRead)
async def get_order(order_id: str, identity: Identity = Depends(get_identity), db: AsyncSession = Depends(get_session)):
    return await orders.get_order(identity, order_id, db)


@router.put("/{order_id}/status", response_model=OrderRead)
async def update_order_status(
    order_id: str,
    payload: OrderStatusUpdate,
    identity: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_session),
):
    return await orders.update_order_status(identity, order_id, payload.status, db)

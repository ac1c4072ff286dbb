from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.database import get_session
from marketplace.identity import Identity, get_identity
from marketplace.models import ProductType
from marketplace.schemas import CategoryCreate, CategoryRead, MessageResponse, ProductCreate, ProductRead, ProductUpdate
from marketplace.services import catalog

router = APIRouter(prefix="/products", tags=["products"])


@router.get("/categories", response_model=List[CategoryRead])
async def list_categories(db: AsyncSession = Depends(get_session)):
    return await catalog.list_categories(db)


@router.post("/categories", response_model=CategoryRead, status_code=201, dependencies=[Depends(get_identity)])
async def create_category(payload: CategoryCreate, db: AsyncSession = Depends(get_session)):
    return await catalog.create_category(payload.name, db)


@router.get("/mine", response_model=List[ProductRead])
async def my_listings(identity: Identity = Depends(get_identity), db: AsyncSession = Depends(get_session)):
    return await catalog.list_seller_products(identity, db)


@router.get("", response_model=List[ProductRead])
async def list_products(
    brand: Optional[str] = None,
    model: Optional[str] = None,
    type: Optional[ProductType] = None,
    min_price: Optional[float] = None,
    max_price: Optional[float] = None,
    db: AsyncSession = Depends(get_session),
):
    return await catalog.list_products(db, brand=brand, model=model, type=type, min_price=min_price, max_price=max_price)


@router.post("", response_model=ProductRead, status_code=201)
async def create_product(
    payload: ProductCreate,
    identity: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_session),
):
    return await catalog.create_product(identity, payload, db)


@router.get("/{product_id}", response_model=ProductRead)
async def get_product(product_id: str, db: AsyncSession = Depends(get_session)):
    return await catalog.get_product(product_id, db)


@router.put("/{product_id}", response_model=ProductRead)
async def update_product(
    product_id: str,
    payload: ProductUpdate,
    identity: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_session),
):
    return await catalog.update_product(identity, product_id, payload, db)


@router.delete("/{product_id}", response_model=MessageResponse)
async def delete_product(product_id: str, identity: Identity = Depends(get_identity), db: AsyncSession = Depends(get_session)):
    await catalog.delete_product(identity, product_id, db)
    return MessageResponse(message="Product deleted successfully")

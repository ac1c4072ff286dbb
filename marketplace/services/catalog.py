import logging
from typing import List, Optional

from sqlalchemy import delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.database import transaction
from marketplace.errors import BadRequest, Forbidden, Invalid, NotFound
from marketplace.identity import Identity
from marketplace.models import CartItem, Category, Inspection, OrderItem, Product, ProductType
from marketplace.schemas import CategoryRead, ProductCreate, ProductRead, ProductUpdate

logger = logging.getLogger(__name__)


async def create_category(name: Optional[str], db: AsyncSession) -> CategoryRead:
    name = (name or "").strip()
    if not name:
        raise BadRequest("Category name is required")

    async with transaction(db):
        existing = await db.execute(select(Category).where(func.lower(Category.name) == name.lower()))
        if existing.scalar_one_or_none():
            raise BadRequest("Category already exists")
        category = Category(name=name)
        db.add(category)
        await db.flush()

    return CategoryRead.model_validate(category)


async def list_categories(db: AsyncSession) -> List[CategoryRead]:
    result = await db.execute(select(Category).order_by(Category.name))
    return [CategoryRead.model_validate(c) for c in result.scalars().all()]


async def create_product(identity: Identity, data: ProductCreate, db: AsyncSession) -> ProductRead:
    if not identity.is_seller:
        raise Forbidden("You must be a seller to list items")

    async with transaction(db):
        result = await db.execute(
            select(Category).where(
                or_(Category.id == data.category, func.lower(Category.name) == data.category.strip().lower())
            )
        )
        category = result.scalars().first()
        if not category:
            raise BadRequest("Invalid category")

        # A bike listing is a single unit
        if data.type == ProductType.BIKE:
            stock = 1
        else:
            stock = data.stock or 1

        product = Product(
            seller_id=identity.seller_id,
            category_id=category.id,
            type=data.type,
            title=data.title,
            description=data.description,
            price=data.price,
            condition=data.condition.upper().replace(" ", "_") if data.condition else None,
            brand=data.brand,
            model=data.model,
            year=data.year,
            km_driven=data.km_driven,
            ownership=data.ownership,
            address=data.address,
            stock=stock,
            is_sold=False,
        )
        db.add(product)
        await db.flush()

    logger.info("Product %s listed by seller %s", product.id, identity.seller_id)
    return ProductRead.model_validate(product)


async def list_products(
    db: AsyncSession,
    brand: Optional[str] = None,
    model: Optional[str] = None,
    type: Optional[ProductType] = None,
    min_price: Optional[float] = None,
    max_price: Optional[float] = None,
) -> List[ProductRead]:
    query = select(Product).where(Product.is_sold.is_(False))
    if brand:
        query = query.where(Product.brand.ilike(f"%{brand}%"))
    if model:
        query = query.where(Product.model.ilike(f"%{model}%"))
    if type:
        query = query.where(Product.type == type)
    if min_price is not None:
        query = query.where(Product.price >= min_price)
    if max_price is not None:
        query = query.where(Product.price <= max_price)

    result = await db.execute(query.order_by(Product.created_at.desc()))
    return [ProductRead.model_validate(p) for p in result.scalars().all()]


async def get_product(product_id: str, db: AsyncSession) -> ProductRead:
    product = await db.get(Product, product_id)
    if not product:
        raise NotFound("Product not found")
    return ProductRead.model_validate(product)


async def list_seller_products(identity: Identity, db: AsyncSession) -> List[ProductRead]:
    if not identity.is_seller:
        raise NotFound("Seller profile not found")
    result = await db.execute(
        select(Product).where(Product.seller_id == identity.seller_id).order_by(Product.created_at.desc())
    )
    return [ProductRead.model_validate(p) for p in result.scalars().all()]


async def _owned_product(identity: Identity, product_id: str, db: AsyncSession, action: str) -> Product:
    product = await db.get(Product, product_id)
    if not product:
        raise NotFound("Product not found")
    if not identity.is_seller or product.seller_id != identity.seller_id:
        raise Forbidden(f"Unauthorized: You can only {action} your own products")
    return product


async def update_product(identity: Identity, product_id: str, data: ProductUpdate, db: AsyncSession) -> ProductRead:
    changes = data.model_dump(exclude_unset=True, exclude_none=True)

    async with transaction(db):
        product = await _owned_product(identity, product_id, db, "update")

        if product.type == ProductType.BIKE and changes.get("stock", 0) > 1:
            raise Invalid("Bike stock can only be 0 or 1")
        if "condition" in changes:
            changes["condition"] = changes["condition"].upper().replace(" ", "_")

        was_sold = product.is_sold
        for field, value in changes.items():
            setattr(product, field, value)

        if product.type == ProductType.BIKE:
            if product.is_sold:
                product.stock = 0
            elif was_sold and "stock" not in changes:
                # relisting a sold bike puts the single unit back
                product.stock = 1
        db.add(product)

    return ProductRead.model_validate(product)


async def delete_product(identity: Identity, product_id: str, db: AsyncSession):
    async with transaction(db):
        product = await _owned_product(identity, product_id, db, "delete")

        order_count = await db.scalar(select(func.count()).select_from(OrderItem).where(OrderItem.product_id == product_id))
        if order_count:
            raise BadRequest("Cannot delete product: It is part of existing orders. Please mark it as Sold instead.")

        inspection_count = await db.scalar(
            select(func.count()).select_from(Inspection).where(Inspection.product_id == product_id)
        )
        if inspection_count:
            raise BadRequest("Cannot delete product: It has associated inspections. Please resolve them first.")

        await db.execute(delete(CartItem).where(CartItem.product_id == product_id))
        await db.delete(product)

    logger.info("Product %s deleted by seller %s", product_id, identity.seller_id)

from fastapi import APIRouter

from marketplace.routes import auth, bookings, inspections, mechanics, orders, products, users

api_router = APIRouter(prefix="/api")
api_router.include_router(auth.router)
api_router.include_router(users.router)
api_router.include_router(products.router)
api_router.include_router(orders.router)
api_router.include_router(inspections.router)
api_router.include_router(mechanics.router)
api_router.include_router(bookings.router)

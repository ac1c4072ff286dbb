import logging
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from marketplace.config import DATABASE_URL, LOG_LEVEL, PORT, SQL_ECHO
from marketplace.database import Database
from marketplace.errors import MarketplaceError
from marketplace.routes import api_router

logger = logging.getLogger(__name__)


def create_app(db: Optional[Database] = None) -> FastAPI:
    logging.basicConfig(
        level=LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(title="Bike Marketplace API")
    app.state.db = db or Database(DATABASE_URL, echo=SQL_ECHO)

    @app.on_event("startup")
    async def startup_event():
        await app.state.db.init_db()

    @app.on_event("shutdown")
    async def shutdown_event():
        await app.state.db.dispose()

    @app.exception_handler(MarketplaceError)
    async def marketplace_error_handler(request: Request, exc: MarketplaceError):
        return JSONResponse(status_code=exc.status_code, content={"message": exc.message})

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"message": str(exc) or "Internal Server Error"})

    @app.get("/")
    async def index():
        return {"service": "marketplace", "status": "ok"}

    app.include_router(api_router)
    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=PORT)

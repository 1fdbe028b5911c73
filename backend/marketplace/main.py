from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from marketplace.api.health import router as health_router
from marketplace.api.routes_cart import router as cart_router
from marketplace.api.routes_catalogue import categories_router, products_router
from marketplace.api.routes_order import router as order_router
from marketplace.api.routes_users import router as users_router
from marketplace.config import settings
from marketplace.db import init_db
from marketplace.exceptions import MarketplaceError
from marketplace.utils.logging import configure_logging, get_logger

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # startup
    configure_logging(settings.LOG_LEVEL)
    init_db()
    yield


app = FastAPI(title="Marketplace - Backend", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.FRONTEND_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(MarketplaceError)
async def marketplace_error_handler(request: Request, exc: MarketplaceError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"detail": f"Internal server error: {type(exc).__name__}", "kind": "Internal"},
    )


app.include_router(health_router, prefix="/api", tags=["health"])

app.include_router(categories_router)

app.include_router(products_router)

app.include_router(users_router)

app.include_router(cart_router)

app.include_router(order_router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.APP_HOST, port=settings.APP_PORT)

"""
Mock Store Application

In-memory reference backend for the storefront checkout client. Serves the
cart, discount, loyalty, address and order endpoints under /api with the
{success, data, message} envelope.
"""

import os
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
from dotenv import load_dotenv

from .routes import products_router, cart_router, orders_router, users_router
from .responses import http_error_handler, validation_error_handler
from .database import discount_db, order_db, reset_all
from .database.users import DEMO_TOKEN

load_dotenv()

logging.basicConfig(
    level=logging.DEBUG if os.getenv("MOCK_STORE_DEBUG") else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Seed fresh in-memory data for every run"""
    reset_all()
    logger.info(f"Mock store ready (shipping fee {order_db.shipping_fee})")
    yield
    logger.info("Mock store stopped")


app = FastAPI(
    title="Mock Store",
    description="Reference storefront backend for checkout testing",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(StarletteHTTPException, http_error_handler)
app.add_exception_handler(RequestValidationError, validation_error_handler)

for router in (products_router, cart_router, orders_router, users_router):
    app.include_router(router)


@app.get("/")
async def home():
    """Seeded fixtures for manual testing"""
    return {
        "service": "mock-store",
        "api": "/api",
        "demoToken": DEMO_TOKEN,
        "discountCodes": sorted(code for code, d in discount_db.codes.items() if d.is_active),
        "shippingFee": order_db.shipping_fee,
    }


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "service": "mock-store"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "mock_store.main:app",
        host="0.0.0.0",
        port=int(os.getenv("MOCK_STORE_PORT", "3000")),
        reload=True,
    )

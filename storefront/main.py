import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from storefront.config import settings
from storefront.database import create_db_and_tables
from storefront.errors import register_exception_handlers
from storefront.routes import (
    admin,
    admin_analytics,
    catalog,
    checkout,
    health,
    orders,
    user_orders,
    users,
    webhooks,
)

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Run DB creation ONLY in local / test, deployed databases go through alembic
    if settings.ENV in ("local", "test"):
        create_db_and_tables()
    yield

app = FastAPI(title=f"{settings.store_name} Storefront API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(orders.router, prefix="/orders", tags=["Orders"])
app.include_router(checkout.router, prefix="/checkout", tags=["Checkout"])
app.include_router(webhooks.router, prefix="/webhooks", tags=["Payment Webhooks"])
app.include_router(admin.router, prefix="/admin", tags=["Admin Endpoints"])
app.include_router(admin_analytics.router, prefix="/admin", tags=["Admin Analytics"])
app.include_router(users.router, prefix="/users", tags=["Users"])
app.include_router(user_orders.router, prefix="/users", tags=["User Orders"])
app.include_router(catalog.router, tags=["Catalog"])
app.include_router(health.router, prefix="/health", tags=["Health"])


@app.get("/")
def root():
    return {
        "order_endpoints": ["/orders"],
        "checkout_endpoints": [
            "/checkout", "/checkout/payment-session", "/checkout/success"
        ],
        "webhook_endpoints": ["/webhooks/stripe", "/webhooks/razorpay"],
        "admin_endpoints": [
            "/admin/login", "/admin/logout", "/admin/orders",
            "/admin/orders/{order_id}", "/admin/stats"
        ],
        "user_endpoints": ["/users/me/orders", "/users/me/addresses"],
        "catalog_endpoints": ["/products", "/products/{product_id}", "/categories"],
    }

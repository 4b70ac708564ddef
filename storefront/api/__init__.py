# storefront/api/__init__.py
from fastapi import FastAPI
from storefront.api.routers import health, users, categories, subcategories, products, cart, orders


def include_routers(app: FastAPI) -> None:
    app.include_router(health.router)
    app.include_router(users.router)
    app.include_router(categories.router)
    app.include_router(subcategories.router)
    app.include_router(products.router)
    app.include_router(cart.router)
    app.include_router(orders.router)

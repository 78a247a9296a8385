# storefront/api/v1/router.py
from fastapi import APIRouter
from storefront.api.v1.endpoints import products, cart, catalog, admin_products

api_router_v1 = APIRouter()

api_router_v1.include_router(products.router, prefix="/products", tags=["Products"])
api_router_v1.include_router(cart.router, prefix="/cart", tags=["Cart"])
api_router_v1.include_router(catalog.router)
api_router_v1.include_router(admin_products.router)

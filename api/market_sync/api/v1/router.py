"""
Router principal de la API v1.
Agrupa todos los endpoints de la version 1.
"""
from fastapi import APIRouter

from market_sync.api.v1.endpoints import customers, sync, transactions


# Router principal de la API v1
api_router = APIRouter(prefix="/v1")

# Incluir routers de endpoints especificos
api_router.include_router(sync.router)
api_router.include_router(customers.router)
api_router.include_router(transactions.router)

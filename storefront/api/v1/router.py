# storefront/api/v1/router.py
from fastapi import APIRouter
from storefront.api.v1 import health, auth

api_router = APIRouter()

api_router.include_router(health.router, tags=["health"])
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])

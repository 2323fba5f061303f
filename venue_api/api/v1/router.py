# venue_api/api/v1/router.py
from fastapi import APIRouter
from venue_api.api.v1.endpoints import (
    auth,
    organizations,
    tax_configurations,
    tax
)

api_router = APIRouter()
api_router.include_router(auth.router)
api_router.include_router(organizations.router)
api_router.include_router(tax_configurations.router)
api_router.include_router(tax.router)

"""
API v1 Router.

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter
from parcel_backend.app.api.v1.endpoints import users, parcels, payments, riders

router = APIRouter()

# Users - sign-in upsert, search, role assignment
router.include_router(users.router)

# Parcels - booking and lookup
router.include_router(parcels.router)

# Payments - settlement, history, charge intents
router.include_router(payments.router)

# Riders - applications and lifecycle decisions
router.include_router(riders.router)

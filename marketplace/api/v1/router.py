"""
API v1 router - aggregates all endpoint modules (RESTful structure).
"""

from fastapi import APIRouter

from marketplace.api.v1.endpoints import admin, health, listings, ratings

api_router = APIRouter(prefix="/v1")

api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(listings.router, prefix="/listings", tags=["listings"])
api_router.include_router(ratings.router, prefix="/ratings", tags=["ratings"])
api_router.include_router(admin.router, prefix="/admin", tags=["admin"])

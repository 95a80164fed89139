"""
Routes package - organized API routes.

This package provides modular route definitions.
Import the combined router for use in main.py.
"""
from fastapi import APIRouter

from .gym_routes import router as gym_router
from .pass_routes import router as pass_router
from .payment_routes import router as payment_router
from .validation_routes import router as validation_router
from .user_routes import router as user_router

# Combined router that includes all sub-routers
combined_router = APIRouter()
combined_router.include_router(gym_router, tags=["gyms"])
combined_router.include_router(pass_router, tags=["passes"])
combined_router.include_router(payment_router, tags=["payments"])
combined_router.include_router(validation_router, tags=["validation"])
combined_router.include_router(user_router, tags=["users"])

__all__ = ['combined_router', 'gym_router', 'pass_router', 'payment_router', 'validation_router', 'user_router']

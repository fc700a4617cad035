"""
Central API router that aggregates all route modules.
"""

from fastapi import APIRouter
from ticket_manager.api.routes import admin, games, my, seats, tickets, users

api_router = APIRouter(prefix="/api")
api_router.include_router(games.router)
api_router.include_router(seats.router)
api_router.include_router(tickets.router)
api_router.include_router(users.router)
api_router.include_router(my.router)
api_router.include_router(admin.router)

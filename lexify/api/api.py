# Fichier: lexify/api/api.py
from fastapi import APIRouter

from .endpoints import learning_goal_router, notification_router, notification_ws

api_router = APIRouter()

api_router.include_router(learning_goal_router.router, prefix="/learning-goals", tags=["LearningGoals"])
api_router.include_router(notification_router.router, prefix="/notifications", tags=["Notifications"])
api_router.include_router(notification_ws.router, prefix="/notifications", tags=["Notifications"])

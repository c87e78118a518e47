from fastapi import APIRouter

from edubridge.modules.auth import router as auth_router
from edubridge.modules.classes.router import groups_router
from edubridge.modules.classes.router import router as classes_router
from edubridge.modules.messaging.router import router as messaging_router
from edubridge.modules.news.router import router as news_router
from edubridge.modules.schools.router import router as schools_router
from edubridge.modules.users.router import router as users_router

api_router = APIRouter()


@api_router.get("/hello", tags=["Root"])
async def hello() -> dict:
    """Unauthenticated greeting, handy for checking connectivity."""
    return {"success": True, "data": {"message": "Hello from EduBridge API"}, "error": None}


api_router.include_router(auth_router, prefix="/auth", tags=["Authentication"])
api_router.include_router(users_router, prefix="/users", tags=["Users"])
api_router.include_router(schools_router, prefix="/schools", tags=["Schools"])
api_router.include_router(classes_router, prefix="/classes", tags=["Classes"])
api_router.include_router(groups_router, prefix="/groups", tags=["Classes"])

# Thread routes span /threads, /messages, /groups/{id}/thread and /classes/{id}/thread
api_router.include_router(messaging_router, tags=["Messaging"])

api_router.include_router(news_router, prefix="/news", tags=["News"])

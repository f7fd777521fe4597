from fastapi import APIRouter
from classroom_exchange.api.routes.health import router as health_router
from classroom_exchange.api.routes.auth import router as auth_router
from classroom_exchange.api.routes.trading import router as trading_router
from classroom_exchange.api.routes.stocks import router as stocks_router
from classroom_exchange.api.routes.volume import router as volume_router
from classroom_exchange.api.routes.news import router as news_router
from classroom_exchange.api.routes.users import router as users_router
from classroom_exchange.api.routes.admin import router as admin_router


api_router = APIRouter()
api_router.include_router(health_router, tags=["health"])
api_router.include_router(auth_router, tags=["auth"])
api_router.include_router(trading_router, tags=["trading"])
api_router.include_router(stocks_router, tags=["stocks"])
api_router.include_router(volume_router, tags=["volume"])
api_router.include_router(news_router, tags=["news"])
api_router.include_router(users_router, tags=["users"])
api_router.include_router(admin_router, tags=["admin"])

"""
News API Endpoints
Free and premium articles with per-user purchases
"""
from typing import Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from classroom_exchange.core.deps import get_db
from classroom_exchange.schemas.common import MessageResponse
from classroom_exchange.schemas.news import (
    AdminActionRequest,
    NewsCreate,
    NewsDetailResponse,
    NewsEnvelope,
    NewsListResponse,
    NewsPurchaseRequest,
    NewsPurchaseResponse,
    PremiumNewsCreate,
)
from classroom_exchange.services.account_service import AccountService
from classroom_exchange.services.news_service import NewsService, present_news

router = APIRouter()


@router.get("/news", response_model=NewsListResponse)
def get_news(
    user_id: Optional[int] = Query(None, alias="userId"),
    db: Session = Depends(get_db),
):
    """
    All articles, newest first.

    - **userId**: viewer; unpurchased premium articles are masked for them
    """
    return NewsListResponse(news=NewsService(db).list_for_viewer(user_id))


@router.post("/news", response_model=NewsEnvelope)
def create_news(payload: NewsCreate = Body(...), db: Session = Depends(get_db)):
    """Post an article (admin only)."""
    admin = AccountService(db).require_admin(payload.admin_username)
    price = payload.price if isinstance(payload, PremiumNewsCreate) else 0
    article = NewsService(db).create(payload.title, payload.content, payload.type, price, admin.username)
    return NewsEnvelope(news=present_news(article, purchased=True))


@router.get("/news/{news_id}/{user_id}", response_model=NewsDetailResponse)
def get_news_detail(news_id: int, user_id: int, db: Session = Depends(get_db)):
    data = NewsService(db).get_for_viewer(news_id, user_id)
    return NewsDetailResponse(news=data, purchased=data["purchased"])


@router.post("/news/purchase", response_model=NewsPurchaseResponse)
def purchase_news(payload: NewsPurchaseRequest, db: Session = Depends(get_db)):
    article = NewsService(db).purchase(payload.user_id, payload.news_id)
    return NewsPurchaseResponse(
        message="뉴스를 구매했습니다.",
        news=present_news(article, purchased=True),
    )


@router.delete("/news/{news_id}", response_model=MessageResponse)
def delete_news(
    news_id: int,
    payload: AdminActionRequest,
    db: Session = Depends(get_db),
):
    """Delete an article and its purchase receipts (admin only)."""
    AccountService(db).require_admin(payload.admin_username)
    if not NewsService(db).delete(news_id):
        raise HTTPException(status_code=404, detail="뉴스를 찾을 수 없습니다.")
    return MessageResponse(message="뉴스가 삭제되었습니다.")

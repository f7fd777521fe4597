"""
Stock API Endpoints
Catalogue, admin price edits and the pending-price queue
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from classroom_exchange.core.deps import get_db, get_trading_hours
from classroom_exchange.schemas.common import MessageResponse
from classroom_exchange.schemas.stock import (
    ApplyPendingResponse,
    PendingListResponse,
    PriceUpdateRequest,
    PriceUpdateResponse,
    StockCreate,
    StockDetailResponse,
    StockListResponse,
    StockResponse,
)
from classroom_exchange.services.account_service import AccountService
from classroom_exchange.services.price_scheduler import PriceScheduler
from classroom_exchange.services.stock_service import StockService
from classroom_exchange.services.trading_hours import TradingHours

router = APIRouter()


@router.get("/stocks", response_model=StockListResponse)
def get_stocks(
    q: Optional[str] = Query(None, max_length=64, description="Filter by code or name"),
    db: Session = Depends(get_db),
):
    """
    All stocks with the board fields.

    - **pending_price**: queued admin edit, if any
    - **previous_price**: price before the latest change
    """
    return StockListResponse(stocks=StockService(db).list_stocks(q))


@router.get("/stocks/{stock_id}", response_model=StockDetailResponse)
def get_stock(stock_id: int, db: Session = Depends(get_db)):
    """Stock with its 20 most recent price changes."""
    return StockService(db).get_detail(stock_id)


@router.post("/stocks", response_model=StockResponse, status_code=201)
def create_stock(payload: StockCreate, db: Session = Depends(get_db)):
    """List a new stock (admin only)."""
    admin = AccountService(db).require_admin(payload.admin_username)
    return StockService(db).create_stock(payload.code, payload.name, payload.price, admin.username)


@router.delete("/stocks/{stock_id}", response_model=MessageResponse)
def delete_stock(
    stock_id: int,
    admin_username: str = Query(..., alias="adminUsername"),
    db: Session = Depends(get_db),
):
    """Delist a stock (admin only). Refused while anyone holds it."""
    AccountService(db).require_admin(admin_username)
    StockService(db).delete_stock(stock_id)
    return MessageResponse(message="주식이 삭제되었습니다.")


@router.post("/stocks/{stock_id}/update-price", response_model=PriceUpdateResponse)
def update_price(
    stock_id: int,
    payload: PriceUpdateRequest,
    db: Session = Depends(get_db),
    trading_hours: TradingHours = Depends(get_trading_hours),
):
    """
    Set a stock price (admin only).

    Applied immediately while trading is open or when **forceApply** is
    set; otherwise queued for the next trading window.
    """
    admin = AccountService(db).require_admin(payload.admin_username)
    result = PriceScheduler(db, trading_hours).schedule_or_apply(
        stock_id, payload.price, admin.username, payload.force_apply
    )
    stock = StockService.to_dict(result.stock)
    stock["pending_price"] = result.pending_price
    return PriceUpdateResponse(
        stock=stock,
        message=result.message,
        applied=result.applied,
        forced=result.forced,
        pending=result.pending,
    )


@router.get("/pending-price-updates", response_model=PendingListResponse)
def get_pending_price_updates(
    db: Session = Depends(get_db),
    trading_hours: TradingHours = Depends(get_trading_hours),
):
    return PendingListResponse(pending=PriceScheduler(db, trading_hours).list_pending())


@router.post("/apply-pending-prices", response_model=ApplyPendingResponse)
def apply_pending_prices(
    db: Session = Depends(get_db),
    trading_hours: TradingHours = Depends(get_trading_hours),
):
    """Apply queued edits. Polled by clients; rejected outside trading hours."""
    applied = PriceScheduler(db, trading_hours).flush_pending()
    return ApplyPendingResponse(
        message=f"{applied}개의 주가 변경이 적용되었습니다.",
        applied_count=applied,
    )

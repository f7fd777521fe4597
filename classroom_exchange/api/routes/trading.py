from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from classroom_exchange.core.deps import get_db, get_trading_hours
from classroom_exchange.schemas.trading import (
    HoldingListResponse,
    TradeRequest,
    TradeResponse,
    TradingStatusResponse,
    TransactionListResponse,
)
from classroom_exchange.services.trading_hours import TradingHours
from classroom_exchange.services.trading_service import TradingService

router = APIRouter()


@router.get("/trading-status", response_model=TradingStatusResponse)
def trading_status(trading_hours: TradingHours = Depends(get_trading_hours)):
    status = trading_hours.status()
    return TradingStatusResponse(
        allowed=status.allowed,
        is_beta=status.is_beta,
        message=status.message,
        current_time=status.current_time,
        closes_at=status.closes_at,
        next_open_at=status.next_open_at,
    )


@router.post("/transactions/buy", response_model=TradeResponse)
def buy(
    payload: TradeRequest,
    db: Session = Depends(get_db),
    trading_hours: TradingHours = Depends(get_trading_hours),
):
    tx = TradingService(db, trading_hours).buy(payload.user_id, payload.stock_id, payload.quantity)
    return TradeResponse(
        message="매수가 완료되었습니다.",
        transaction_id=tx.id,
        price=tx.price,
        total_amount=tx.total_amount,
    )


@router.post("/transactions/sell", response_model=TradeResponse)
def sell(
    payload: TradeRequest,
    db: Session = Depends(get_db),
    trading_hours: TradingHours = Depends(get_trading_hours),
):
    tx = TradingService(db, trading_hours).sell(payload.user_id, payload.stock_id, payload.quantity)
    return TradeResponse(
        message="매도가 완료되었습니다.",
        transaction_id=tx.id,
        price=tx.price,
        total_amount=tx.total_amount,
    )


@router.get("/transactions/{user_id}", response_model=TransactionListResponse)
def get_transactions(
    user_id: int,
    db: Session = Depends(get_db),
    trading_hours: TradingHours = Depends(get_trading_hours),
):
    return TransactionListResponse(transactions=TradingService(db, trading_hours).transactions(user_id))


@router.get("/users/{user_id}/stocks", response_model=HoldingListResponse)
def get_user_stocks(
    user_id: int,
    db: Session = Depends(get_db),
    trading_hours: TradingHours = Depends(get_trading_hours),
):
    return HoldingListResponse(user_stocks=TradingService(db, trading_hours).holdings(user_id))

from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, Body, Depends
from sqlalchemy.orm import Session

from classroom_exchange.core.deps import get_db, get_trading_hours
from classroom_exchange.schemas.common import MessageResponse
from classroom_exchange.schemas.volume import (
    CurrentVolumeResponse,
    ImpactParametersOut,
    ImpactSettingsListResponse,
    ImpactSettingsRequest,
    VolumeHistoryResponse,
    VolumeUpdateRequest,
    VolumeUpdateResponse,
)
from classroom_exchange.services.account_service import AccountService
from classroom_exchange.services.price_impact import PriceImpactService
from classroom_exchange.services.stock_service import StockService
from classroom_exchange.services.trading_hours import TradingHours
from classroom_exchange.services.volume_service import VolumeService

router = APIRouter()


@router.post("/update-prices-by-volume", response_model=VolumeUpdateResponse)
def update_prices_by_volume(
    payload: Optional[VolumeUpdateRequest] = Body(None),
    db: Session = Depends(get_db),
    trading_hours: TradingHours = Depends(get_trading_hours),
):
    """Move prices by the net volume of an hour bucket (default: current hour)."""
    time_window = payload.time_window if payload else None
    result = PriceImpactService(db, trading_hours).apply_volume_based_update(time_window)
    return VolumeUpdateResponse.model_validate(result)


@router.get("/trading-volume/current", response_model=CurrentVolumeResponse)
def current_volume(
    db: Session = Depends(get_db),
    trading_hours: TradingHours = Depends(get_trading_hours),
):
    return CurrentVolumeResponse.model_validate(VolumeService(db, trading_hours).current_volumes())


@router.get("/trading-volume/history/{stock_id}", response_model=VolumeHistoryResponse)
def volume_history(
    stock_id: int,
    db: Session = Depends(get_db),
    trading_hours: TradingHours = Depends(get_trading_hours),
):
    return VolumeHistoryResponse(history=VolumeService(db, trading_hours).history(stock_id))


@router.get("/price-impact-settings", response_model=ImpactSettingsListResponse)
def get_impact_settings(
    db: Session = Depends(get_db),
    trading_hours: TradingHours = Depends(get_trading_hours),
):
    return ImpactSettingsListResponse(settings=PriceImpactService(db, trading_hours).list_settings())


@router.get("/price-impact-settings/{stock_id}", response_model=ImpactParametersOut)
def get_stock_impact_settings(
    stock_id: int,
    db: Session = Depends(get_db),
    trading_hours: TradingHours = Depends(get_trading_hours),
):
    """Parameters the volume update uses for this stock."""
    StockService(db).require_stock(stock_id)
    params = PriceImpactService(db, trading_hours).get_parameters(stock_id)
    return ImpactParametersOut(stock_id=stock_id, **asdict(params))


@router.post("/price-impact-settings/{stock_id}", response_model=MessageResponse)
def save_impact_settings(
    stock_id: int,
    payload: ImpactSettingsRequest,
    db: Session = Depends(get_db),
    trading_hours: TradingHours = Depends(get_trading_hours),
):
    AccountService(db).require_admin(payload.admin_username)
    PriceImpactService(db, trading_hours).save_settings(
        stock_id, payload.impact_rate, payload.max_change_rate, payload.min_volume
    )
    return MessageResponse(message="주가 영향 설정이 저장되었습니다.")

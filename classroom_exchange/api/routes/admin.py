from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from classroom_exchange.core.config import settings
from classroom_exchange.core.deps import get_db
from classroom_exchange.schemas.auth import ResetAllUsersIn
from classroom_exchange.schemas.common import MessageResponse
from classroom_exchange.services.account_service import AccountService

router = APIRouter()


@router.post("/admin/reset-all-users", response_model=MessageResponse)
def reset_all_users(payload: ResetAllUsersIn, db: Session = Depends(get_db)):
    """
    Reset the whole class (admin password required).

    Deletes transactions, holdings and news purchases and restores every
    user's cash to the initial amount.
    """
    AccountService(db).reset_all_users(payload.admin_username, payload.confirm_password)
    cash = f"{settings.initial_cash:,.0f}"
    return MessageResponse(
        message=(
            f"모든 사용자가 초기 자본({cash}원)으로 초기화되었습니다.\n"
            "- 거래 내역 삭제\n"
            "- 보유 주식 삭제\n"
            f"- 현금 {cash}원 초기화\n"
            "- 뉴스 구매 기록 삭제"
        )
    )

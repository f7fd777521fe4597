from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from classroom_exchange.core.deps import get_db
from classroom_exchange.schemas.auth import (
    AdminEnvelope,
    ChangePasswordIn,
    LoginIn,
    RegisterIn,
    UserEnvelope,
)
from classroom_exchange.schemas.common import MessageResponse
from classroom_exchange.services.account_service import AccountService

router = APIRouter()


@router.post("/auth/register", response_model=UserEnvelope)
def register(payload: RegisterIn, db: Session = Depends(get_db)):
    user = AccountService(db).register(payload.username, payload.password, payload.name)
    return {"user": user}


@router.post("/auth/login", response_model=UserEnvelope)
def login(payload: LoginIn, db: Session = Depends(get_db)):
    user = AccountService(db).login(payload.username, payload.password)
    return {"user": user}


@router.post("/auth/admin-login", response_model=AdminEnvelope)
def admin_login(payload: LoginIn, db: Session = Depends(get_db)):
    admin = AccountService(db).admin_login(payload.username, payload.password)
    return {"admin": admin}


@router.post("/auth/change-password", response_model=MessageResponse)
def change_password(payload: ChangePasswordIn, db: Session = Depends(get_db)):
    AccountService(db).change_password(payload.user_id, payload.old_password, payload.new_password)
    return MessageResponse(message="비밀번호가 변경되었습니다.")

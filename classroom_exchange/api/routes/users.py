from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from classroom_exchange.core.deps import get_db
from classroom_exchange.schemas.auth import LeaderboardResponse, UserEnvelope
from classroom_exchange.services.account_service import AccountService

router = APIRouter()


@router.get("/users", response_model=LeaderboardResponse)
def get_users(db: Session = Depends(get_db)):
    """Leaderboard: users ranked by total assets."""
    return LeaderboardResponse(users=AccountService(db).leaderboard())


@router.get("/users/{user_id}", response_model=UserEnvelope)
def get_user(user_id: int, db: Session = Depends(get_db)):
    return {"user": AccountService(db).get_user(user_id)}

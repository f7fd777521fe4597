"""
Account Service
Students, admins, the leaderboard and the classroom reset.
"""
import logging
from typing import List

from sqlalchemy import select, delete, update, func
from sqlalchemy.orm import Session

from classroom_exchange.core.config import settings
from classroom_exchange.core.errors import AuthenticationFailed, DomainRuleViolation, NotFound, PermissionDenied
from classroom_exchange.core.security import hash_password, verify_password
from classroom_exchange.models.admin import Admin
from classroom_exchange.models.holding import Holding
from classroom_exchange.models.news import NewsView
from classroom_exchange.models.stock import Stock
from classroom_exchange.models.transaction import Transaction
from classroom_exchange.models.user import User

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "아이디 또는 비밀번호가 잘못되었습니다."


class AccountService:
    def __init__(self, db: Session):
        self.db = db

    def _find_user(self, username: str) -> User | None:
        return self.db.scalar(select(User).where(User.username == username))

    def _find_admin(self, username: str) -> Admin | None:
        return self.db.scalar(select(Admin).where(Admin.username == username))

    def register(self, username: str, password: str, name: str) -> User:
        if self._find_user(username):
            raise DomainRuleViolation("이미 존재하는 아이디입니다.")

        user = User(
            username=username,
            password_hash=hash_password(password),
            name=name,
            cash=settings.initial_cash,
        )
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        logger.info(f"Registered student {username}")
        return user

    def login(self, username: str, password: str) -> User:
        user = self._find_user(username)
        if not user or not verify_password(password, user.password_hash):
            raise AuthenticationFailed(INVALID_CREDENTIALS)
        return user

    def admin_login(self, username: str, password: str) -> Admin:
        admin = self._find_admin(username)
        if not admin or not verify_password(password, admin.password_hash):
            raise AuthenticationFailed(INVALID_CREDENTIALS)
        return admin

    def create_admin(self, username: str, password: str) -> Admin:
        if self._find_admin(username):
            raise DomainRuleViolation("이미 존재하는 관리자입니다.")
        admin = Admin(username=username, password_hash=hash_password(password))
        self.db.add(admin)
        self.db.commit()
        self.db.refresh(admin)
        return admin

    def require_admin(self, username: str | None) -> Admin:
        """Admin actions identify the acting admin by username."""
        admin = self._find_admin(username) if username else None
        if admin is None:
            raise PermissionDenied("권한이 없습니다.")
        return admin

    def change_password(self, user_id: int, old_password: str, new_password: str) -> None:
        user = self.db.get(User, user_id)
        if not user or not verify_password(old_password, user.password_hash):
            raise DomainRuleViolation("현재 비밀번호가 올바르지 않습니다.")
        user.password_hash = hash_password(new_password)
        user.password_changed = True
        self.db.commit()

    def get_user(self, user_id: int) -> User:
        user = self.db.get(User, user_id)
        if user is None:
            raise NotFound("사용자를 찾을 수 없습니다.")
        return user

    def leaderboard(self) -> List[dict]:
        """Users ranked by cash plus market value of their holdings."""
        stock_value = func.coalesce(func.sum(Holding.quantity * Stock.current_price), 0)
        rows = self.db.execute(
            select(User.id, User.username, User.name, User.cash, stock_value.label("stock_value"))
            .outerjoin(Holding, Holding.user_id == User.id)
            .outerjoin(Stock, Stock.id == Holding.stock_id)
            .group_by(User.id, User.username, User.name, User.cash)
        ).all()
        board = [
            {
                "id": row.id,
                "username": row.username,
                "name": row.name,
                "cash": row.cash,
                "stock_value": row.stock_value,
                "total_assets": row.cash + row.stock_value,
            }
            for row in rows
        ]
        board.sort(key=lambda entry: entry["total_assets"], reverse=True)
        return board

    def reset_all_users(self, admin_username: str, confirm_password: str) -> None:
        """
        Wipe trading state for the whole class.

        Deletes transactions, holdings and news receipts and resets every
        user's cash to the initial amount. The admin must re-enter their
        password.
        """
        admin = self._find_admin(admin_username)
        if not admin or not verify_password(confirm_password, admin.password_hash):
            raise PermissionDenied("관리자 인증에 실패했습니다.")

        self.db.execute(delete(Transaction))
        self.db.execute(delete(Holding))
        self.db.execute(update(User).values(cash=settings.initial_cash))
        self.db.execute(delete(NewsView))
        self.db.commit()
        logger.warning(f"All users reset to {settings.initial_cash:,.0f} by {admin_username}")

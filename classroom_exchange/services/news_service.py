"""
News Service
Handles posting articles and gating premium content behind purchases.
"""
import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import select, delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from classroom_exchange.core.errors import DomainRuleViolation, NotFound
from classroom_exchange.models.news import News, NewsView
from classroom_exchange.models.user import User
from classroom_exchange.services.event_publisher import event_publisher

logger = logging.getLogger(__name__)

FREE = "FREE"
PREMIUM = "PREMIUM"

LOCKED_TITLE = "🔒 잠긴 유료 뉴스"
LOCKED_LIST_CONTENT = "이 뉴스를 보려면 구매가 필요합니다."
LOCKED_DETAIL_CONTENT = "이 뉴스는 유료 뉴스입니다. 열람하려면 구매가 필요합니다."


def present_news(article: News, purchased: bool, detail: bool = False) -> dict:
    """
    What a viewer may see of an article.

    Free articles and purchased premium articles are shown in full. An
    unpurchased premium article hides its content; list views also hide
    the title.
    """
    visible = article.type == FREE or purchased
    data = {
        "id": article.id,
        "title": article.title,
        "content": article.content,
        "type": article.type,
        "price": article.price,
        "created_by": article.created_by,
        "created_at": article.created_at,
        "purchased": visible,
    }
    if not visible:
        if detail:
            data["content"] = LOCKED_DETAIL_CONTENT
        else:
            data["title"] = LOCKED_TITLE
            data["content"] = LOCKED_LIST_CONTENT
    return data


class NewsService:
    """Service for managing news articles and purchases."""

    def __init__(self, db: Session):
        self.db = db

    def _purchased_ids(self, user_id: int) -> set[int]:
        return set(self.db.scalars(select(NewsView.news_id).where(NewsView.user_id == user_id)).all())

    def has_purchased(self, user_id: int, news_id: int) -> bool:
        return self.db.scalar(
            select(NewsView.id).where(NewsView.user_id == user_id, NewsView.news_id == news_id)
        ) is not None

    def list_for_viewer(self, user_id: Optional[int] = None) -> List[dict]:
        """
        All articles, newest first, as the given user may see them.

        Without a user id premium articles are shown unmasked (public
        board and admin views).
        """
        articles = self.db.scalars(select(News).order_by(News.created_at.desc(), News.id.desc())).all()
        if user_id is None:
            return [present_news(a, purchased=True) for a in articles]

        purchased = self._purchased_ids(user_id)
        return [present_news(a, purchased=a.id in purchased) for a in articles]

    def get_for_viewer(self, news_id: int, user_id: int) -> dict:
        article = self.db.get(News, news_id)
        if article is None:
            raise NotFound("뉴스를 찾을 수 없습니다.")
        purchased = article.type == FREE or self.has_purchased(user_id, news_id)
        return present_news(article, purchased=purchased, detail=True)

    def create(self, title: str, content: str, news_type: str, price: int, created_by: str) -> News:
        """
        Post an article.

        Args:
            news_type: FREE or PREMIUM
            price: Purchase price for PREMIUM, ignored (stored as 0) for FREE
        """
        article = News(
            title=title,
            content=content,
            type=news_type,
            price=price if news_type == PREMIUM else 0,
            created_by=created_by,
            created_at=datetime.utcnow(),
        )
        self.db.add(article)
        self.db.commit()
        self.db.refresh(article)
        logger.info(f"News {article.id} ({article.type}) posted by {created_by}")

        headline = article.title if article.type == FREE else LOCKED_TITLE
        event_publisher.publish_news_posted(article.id, headline, article.type)
        return article

    def delete(self, news_id: int) -> bool:
        """
        Delete an article and its purchase receipts.

        Returns:
            True if deleted, False if not found
        """
        article = self.db.get(News, news_id)
        if article is None:
            return False
        self.db.execute(delete(NewsView).where(NewsView.news_id == news_id))
        self.db.delete(article)
        self.db.commit()
        return True

    def purchase(self, user_id: int, news_id: int) -> News:
        article = self.db.get(News, news_id)
        if article is None:
            raise NotFound("뉴스를 찾을 수 없습니다.")
        if article.type == FREE:
            raise DomainRuleViolation("무료 뉴스입니다.")
        if self.has_purchased(user_id, news_id):
            raise DomainRuleViolation("이미 구매한 뉴스입니다.")

        user = self.db.get(User, user_id)
        if user is None:
            raise NotFound("사용자를 찾을 수 없습니다.")
        if user.cash < article.price:
            raise DomainRuleViolation("잔액이 부족합니다.")

        user.cash = User.cash - article.price
        self.db.add(NewsView(user_id=user_id, news_id=news_id, created_at=datetime.utcnow()))
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise DomainRuleViolation("이미 구매한 뉴스입니다.")
        self.db.refresh(article)
        return article

"""
Event Publisher
Publishes events to the message broker after changes are committed
"""
from classroom_exchange.core.message_broker import message_broker


class EventPublisher:
    """Publishes events to message broker."""

    @staticmethod
    def publish_price_changed(stock_id: int, code: str, price: int, changed_by: str) -> None:
        """Publish a committed stock price change."""
        message_broker.publish('prices', {
            'event': 'price_changed',
            'data': {
                'stock_id': stock_id,
                'code': code,
                'price': price,
                'changed_by': changed_by,
            }
        })

    @staticmethod
    def publish_news_posted(news_id: int, title: str, news_type: str) -> None:
        """Publish a newly posted article (title only; premium content stays private)."""
        message_broker.publish('news', {
            'event': 'news_posted',
            'data': {
                'news_id': news_id,
                'title': title,
                'type': news_type,
            }
        })


event_publisher = EventPublisher()

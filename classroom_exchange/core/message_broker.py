"""
Message Broker Client for Publishing Events
Using Redis Pub/Sub so live boards can follow price changes
"""
import json
import logging
from typing import Any, Optional

import redis

from classroom_exchange.core.config import settings

logger = logging.getLogger(__name__)


class MessageBroker:
    """Redis-based message broker. The connection is opened on first use."""

    def __init__(self, host: str, port: int, enabled: bool = True):
        self.host = host
        self.port = port
        self.enabled = enabled
        self._client: Optional[redis.Redis] = None

    @property
    def redis_client(self) -> redis.Redis:
        if self._client is None:
            self._client = redis.Redis(
                host=self.host,
                port=self.port,
                db=0,
                decode_responses=True,
                socket_connect_timeout=1,
            )
        return self._client

    def publish(self, channel: str, message: dict[str, Any]) -> bool:
        """
        Publish a message to a channel.

        Args:
            channel: Channel name (e.g., 'prices', 'news')
            message: Message data as dictionary

        Returns:
            True if handed to redis, False if disabled or redis is unreachable
        """
        if not self.enabled:
            return False
        try:
            self.redis_client.publish(channel, json.dumps(message, default=str))
            return True
        except redis.RedisError as e:
            logger.warning(f"Could not publish to '{channel}': {e}")
            return False

    def close(self) -> None:
        """Close the connection."""
        if self._client is not None:
            self._client.close()
            self._client = None


# Global instance
message_broker = MessageBroker(
    host=settings.redis_host,
    port=settings.redis_port,
    enabled=settings.events_enabled,
)

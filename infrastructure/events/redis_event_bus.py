import json
import logging
from typing import Optional

import redis
from django.conf import settings
from django.core.serializers.json import DjangoJSONEncoder
from django.utils import timezone

from .event_bus_interface import EventBus


logger = logging.getLogger(__name__)


def build_envelope(event_type: str, payload: dict) -> dict:
    return {"event_type": event_type, "occurred_at": timezone.now().isoformat(), "payload": payload}


class RedisEventBus(EventBus):
    """Redis pub/sub implementation of event bus."""

    def __init__(self, redis_url: Optional[str] = None, client=None):
        self.redis_url = redis_url or getattr(settings, "CELERY_BROKER_URL", "redis://localhost:6379/0")
        if client is not None:
            self.redis_client = client
        else:
            try:
                self.redis_client = redis.from_url(self.redis_url)
            except (redis.RedisError, ValueError) as e:
                logger.error(f"Failed to configure Redis client for {self.redis_url}: {e}")
                self.redis_client = None

    def publish(self, event_type: str, payload: dict):
        """Publish event to the ``events.<type>`` channel."""
        if not self.redis_client:
            logger.warning(f"Redis client not available. Event {event_type} dropped.")
            return

        try:
            message = build_envelope(event_type, payload)
            self.redis_client.publish(f"events.{event_type}", json.dumps(message, cls=DjangoJSONEncoder))
            logger.info(f"Published event: {event_type}")
        except redis.RedisError as e:
            # Events are notifications; the state change they describe is already committed
            logger.error(f"Failed to publish event {event_type}: {str(e)}")
